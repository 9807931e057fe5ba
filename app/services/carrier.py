from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from app.core.errors import UpstreamError
from app.core.log import log_event
from app.core.settings import S, Settings
from app.metrics import record_carrier_call

logger = logging.getLogger(__name__)

SITE_SEARCH = "location/site/"
OFFICE_SEARCH = "location/office/"
CONTRACT_CLIENTS = "client/contract/"
SHIPMENT = "shipment/"
PRINT = "print/"

USERNAME_KEYS = ("userName", "username", "user")
PASSWORD_KEYS = ("password", "pass")
PDF_CONTENT_TYPES = ("application/pdf", "application/octet-stream")


@dataclass(frozen=True)
class CarrierCredentials:
    username: str
    password: str


def credentials_from_body(body: Any, settings: Settings = S) -> Optional[CarrierCredentials]:
    """Credentials from the request body, else from process configuration."""
    body = body if isinstance(body, Mapping) else {}
    username = next((str(body[k]) for k in USERNAME_KEYS if body.get(k)), "") or settings.speedy_username
    password = next((str(body[k]) for k in PASSWORD_KEYS if body.get(k)), "") or settings.speedy_password
    if not username or not password:
        return None
    return CarrierCredentials(username=username, password=password)


@dataclass(frozen=True)
class CarrierResponse:
    ok: bool
    status: int
    body: Any = None
    raw: str = ""
    content: Optional[bytes] = None

    def error_body(self) -> Any:
        return self.body if self.body is not None else {"error": self.raw}


class CarrierClient:
    def __init__(
        self,
        base_url: str,
        credentials: CarrierCredentials,
        language: str = "BG",
        timeout: float = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.language = language
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, credentials: CarrierCredentials) -> "CarrierClient":
        return cls(
            settings.speedy_base_url,
            credentials,
            language=settings.speedy_language,
            timeout=settings.speedy_timeout_seconds,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def with_auth(self, body: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        body = dict(body or {})
        language = body.pop("language", None) or self.language
        for key in USERNAME_KEYS + PASSWORD_KEYS:
            body.pop(key, None)
        return {
            "userName": self.credentials.username,
            "password": self.credentials.password,
            "language": language,
            **body,
        }

    def _post(self, path: str, body: Optional[Mapping[str, Any]]) -> requests.Response:
        return requests.post(
            self.url(path),
            headers={"Content-Type": "application/json"},
            json=self.with_auth(body),
            timeout=self.timeout,
        )

    def post_json(self, path: str, body: Optional[Mapping[str, Any]] = None) -> CarrierResponse:
        start = time.perf_counter()
        try:
            r = self._post(path, body)
        except requests.RequestException as exc:
            logger.warning("Speedy %s unreachable: %s", path, exc)
            record_carrier_call(path, False, time.perf_counter() - start)
            log_event("carrier_call", endpoint=path, ok=False, status=502, error=str(exc))
            return CarrierResponse(ok=False, status=502, body={"error": f"Carrier unreachable: {exc}"}, raw=str(exc))

        raw = r.text
        try:
            parsed = json.loads(raw) if raw else None
        except ValueError:
            parsed = None
        ok = 200 <= r.status_code < 300
        record_carrier_call(path, ok, time.perf_counter() - start)
        log_event("carrier_call", endpoint=path, ok=ok, status=r.status_code)
        if not ok:
            logger.info("Speedy %s returned %s: %s", path, r.status_code, raw[:500])
        return CarrierResponse(ok=ok, status=r.status_code, body=parsed, raw=raw)

    def post_pdf(self, path: str, body: Optional[Mapping[str, Any]] = None) -> CarrierResponse:
        """Label call; a 200 with a JSON error body is still a failure."""
        start = time.perf_counter()
        try:
            r = self._post(path, body)
        except requests.RequestException as exc:
            logger.warning("Speedy %s unreachable: %s", path, exc)
            record_carrier_call(path, False, time.perf_counter() - start)
            log_event("carrier_call", endpoint=path, ok=False, status=502, error=str(exc))
            return CarrierResponse(ok=False, status=502, raw=f"Carrier unreachable: {exc}")

        content_type = (r.headers.get("content-type") or "").lower()
        if not any(ct in content_type for ct in PDF_CONTENT_TYPES):
            record_carrier_call(path, False, time.perf_counter() - start)
            log_event("carrier_call", endpoint=path, ok=False, status=r.status_code, content_type=content_type)
            return CarrierResponse(ok=False, status=r.status_code, raw=r.text)

        ok = 200 <= r.status_code < 300
        record_carrier_call(path, ok, time.perf_counter() - start)
        log_event("carrier_call", endpoint=path, ok=ok, status=r.status_code, bytes=len(r.content))
        if not ok:
            return CarrierResponse(ok=False, status=r.status_code, raw=r.text)
        return CarrierResponse(ok=True, status=r.status_code, content=r.content)

    def call(self, path: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the parsed body or raise UpstreamError."""
        resp = self.post_json(path, body)
        if not resp.ok:
            raise UpstreamError(resp.status, resp.error_body())
        return resp.body if resp.body is not None else resp.raw
