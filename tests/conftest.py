from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.settings import Settings  # noqa: E402
from app.services.carrier import CarrierCredentials, CarrierResponse  # noqa: E402


class FakeCarrier:
    """Stands in for CarrierClient; replies are consumed in order."""

    def __init__(self, replies: List[CarrierResponse] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.credentials = CarrierCredentials("user", "secret")

    def _next(self) -> CarrierResponse:
        if self.replies:
            return self.replies.pop(0)
        return CarrierResponse(ok=True, status=200, body=[])

    def post_json(self, path, body=None):
        self.calls.append((path, dict(body or {})))
        return self._next()

    def post_pdf(self, path, body=None):
        self.calls.append((path, dict(body or {})))
        return self._next()

    def call(self, path, body=None):
        from app.core.errors import UpstreamError

        resp = self.post_json(path, body)
        if not resp.ok:
            raise UpstreamError(resp.status, resp.error_body())
        return resp.body


def sites(*candidates: Dict[str, Any], key: str = "sites") -> CarrierResponse:
    return CarrierResponse(ok=True, status=200, body={key: list(candidates)})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        speedy_username="user",
        speedy_password="secret",
        speedy_dropoff_office_id=0,
        speedy_country_id=0,
        audit_log_enabled=False,
    )


@pytest.fixture
def fake_carrier() -> FakeCarrier:
    return FakeCarrier()
