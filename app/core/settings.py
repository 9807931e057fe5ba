from __future__ import annotations

import os
from dataclasses import dataclass

FALLBACK_DROPOFF_OFFICE_ID = 55


def _flag(name: str, default: str = "1") -> bool:
    return os.environ.get(name, default) not in ("0", "false", "False")


@dataclass(frozen=True)
class Settings:
    # Speedy API
    speedy_base_url: str = os.environ.get("SPEEDY_BASE_URL", "https://api.speedy.bg/v1").rstrip("/")
    speedy_username: str = os.environ.get("SPEEDY_USERNAME", "")
    speedy_password: str = os.environ.get("SPEEDY_PASSWORD", "")
    speedy_language: str = os.environ.get("SPEEDY_LANGUAGE", "BG")
    speedy_timeout_seconds: int = int(os.environ.get("SPEEDY_TIMEOUT_SECONDS", "30"))

    # Shipment defaults (0 = not configured)
    speedy_dropoff_office_id: int = int(os.environ.get("SPEEDY_DROPOFF_OFFICE_ID", "0") or 0)
    speedy_country_id: int = int(os.environ.get("SPEEDY_COUNTRY_ID", "0") or 0)
    print_paper_size: str = os.environ.get("PRINT_PAPER_SIZE", "A6")

    # HTTP shell
    cors_allow_origins: str = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    max_body_bytes: int = int(os.environ.get("MAX_BODY_BYTES", str(10 * 1024 * 1024)))

    # Observability
    metrics_enabled: bool = _flag("METRICS_ENABLED")
    audit_log_enabled: bool = _flag("AUDIT_LOG_ENABLED")
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()] or ["*"]


S = Settings()
