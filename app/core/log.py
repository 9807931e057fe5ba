from __future__ import annotations

import json
import logging
from typing import Any

from app.core.settings import S

AUDIT_LOGGER = "speedy.audit"
REDACTED_KEYS = {"password", "pass"}


def configure_logging(level: str = S.log_level) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    # Quiet noisy HTTP client loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: ("***" if k in REDACTED_KEYS else redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def log_event(event: str, **fields: Any) -> None:
    """One JSON line per carrier call / resolution / shipment outcome."""
    if not S.audit_log_enabled:
        return
    payload = {"event": event, **redact(fields)}
    logging.getLogger(AUDIT_LOGGER).info(
        json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False, default=str)
    )
