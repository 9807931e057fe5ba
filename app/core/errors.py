from __future__ import annotations

from typing import Any, Dict, List, Optional


class ProxyError(Exception):
    """Base class for errors turned into JSON responses by the app."""

    status_code = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self)}


class ValidationError(ProxyError):
    """A required local input is missing (credentials, city/zip, parcel ids)."""

    status_code = 400


class UpstreamError(ProxyError):
    """The carrier answered with a non-success status or an unexpected body.

    ``body`` is relayed to the caller as-is so carrier error codes stay visible.
    """

    def __init__(self, status_code: int, body: Any, message: str = "") -> None:
        super().__init__(message or f"Carrier request failed with status {status_code}")
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.body, dict):
            return self.body
        return {"error": self.body if self.body is not None else str(self)}


class ResolutionFailure(UpstreamError):
    """Every site search attempt came back without a usable site id."""

    def __init__(
        self,
        city: Optional[str],
        post_code: Optional[str],
        attempts: List[Dict[str, Any]],
        last_response: Any,
        status_code: int = 422,
    ) -> None:
        super().__init__(status_code, last_response, "Could not resolve siteId for recipient address")
        self.city = city
        self.post_code = post_code
        self.attempts = attempts
        self.last_response = last_response

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": str(self),
            "city": self.city,
            "postCode": self.post_code,
            "attempts": self.attempts,
            "lastResponse": self.last_response,
        }
