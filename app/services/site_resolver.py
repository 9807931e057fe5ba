"""Resolve a free-text city / postal code into a Speedy site id.

Speedy's location search is inconsistent about casing and about whether the
postal code is sent along, so we walk a ladder of progressively broader
searches and stop at the first one that yields a usable candidate.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from app.core.log import log_event
from app.core.normalize import as_int, clean_str
from app.metrics import record_site_resolution
from app.services.carrier import SITE_SEARCH, CarrierClient

logger = logging.getLogger(__name__)

LOCALITY_PREFIX_RE = re.compile(r"^\s*(?:гр\.|гр\s|град\s)\s*", re.IGNORECASE)
CANDIDATE_LIST_KEYS = ("sites", "site", "results", "data", "items")


@dataclass
class SiteResolutionResult:
    site_id: int = 0
    match: Optional[Dict[str, Any]] = None
    attempt: Optional[Dict[str, Any]] = None
    candidates_seen: int = 0
    attempts: List[Dict[str, Any]] = field(default_factory=list)
    last_response: Any = None
    status: int = 200

    @property
    def resolved(self) -> bool:
        return self.site_id > 0

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "siteId": self.site_id,
            "match": self.match,
            "attempt": self.attempt,
            "candidatesSeen": self.candidates_seen,
            "attempts": self.attempts,
        }


def strip_locality_prefix(name: Optional[str]) -> str:
    return LOCALITY_PREFIX_RE.sub("", name or "").strip()


def search_attempts(name: str, post_code: str) -> List[Dict[str, str]]:
    """Ordered, de-duplicated search payloads, most specific first."""
    ladder = [
        {"name": name, "postCode": post_code},
        {"name": name},
        {"name": "", "postCode": post_code},
        {"name": name.upper(), "postCode": post_code},
        {"name": name.lower(), "postCode": post_code},
    ]
    out: List[Dict[str, str]] = []
    for attempt in ladder:
        attempt = {k: v for k, v in attempt.items() if k == "name" or v}
        if not attempt.get("name") and not attempt.get("postCode"):
            continue
        if attempt not in out:
            out.append(attempt)
    return out


def extract_candidates(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [c for c in payload if isinstance(c, dict)]
    if isinstance(payload, dict):
        for key in CANDIDATE_LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return [c for c in value if isinstance(c, dict)]
    return []


def _nested(candidate: Dict[str, Any], key: str) -> Any:
    inner = candidate.get("site")
    return inner.get(key) if isinstance(inner, dict) else None


def candidate_id(candidate: Dict[str, Any]) -> Optional[int]:
    for value in (candidate.get("id"), candidate.get("siteId"), _nested(candidate, "id")):
        n = as_int(value)
        if n is not None and n > 0:
            return n
    return None


def candidate_post_code(candidate: Dict[str, Any]) -> str:
    for value in (
        candidate.get("postCode"),
        candidate.get("postcode"),
        candidate.get("zip"),
        _nested(candidate, "postCode"),
    ):
        s = clean_str(value)
        if s:
            return s
    return ""


def pick_candidate(candidates: Iterable[Dict[str, Any]], post_code: str) -> Optional[Dict[str, Any]]:
    usable = [c for c in candidates if candidate_id(c) is not None]
    if post_code:
        for c in usable:
            if candidate_post_code(c).startswith(post_code):
                return c
    return usable[0] if usable else None


class SiteResolver:
    def __init__(self, client: CarrierClient, country_id: Optional[int] = None) -> None:
        self.client = client
        self.country_id = country_id or None

    def _search(self, attempt: Dict[str, str]) -> Any:
        body: Dict[str, Any] = dict(attempt)
        if self.country_id:
            body["countryId"] = self.country_id
        return self.client.post_json(SITE_SEARCH, body)

    def resolve(self, city: Optional[str], post_code: Optional[str]) -> SiteResolutionResult:
        name = strip_locality_prefix(clean_str(city))
        zip_code = clean_str(post_code) or ""
        result = SiteResolutionResult()

        for attempt in search_attempts(name, zip_code):
            result.attempts.append(attempt)
            resp = self._search(attempt)
            result.last_response = resp.body if resp.body is not None else resp.raw
            result.status = resp.status
            if not resp.ok:
                # a failed search call is not retried with other parameters
                logger.warning("Site search failed with status %s for %s", resp.status, attempt)
                record_site_resolution("error", len(result.attempts))
                log_event("site_resolution", outcome="error", city=name, postCode=zip_code, attempts=result.attempts)
                return result

            candidates = extract_candidates(resp.body)
            match = pick_candidate(candidates, zip_code)
            if match is not None:
                result.site_id = candidate_id(match) or 0
                result.match = match
                result.attempt = attempt
                result.candidates_seen = len(candidates)
                record_site_resolution("resolved", len(result.attempts))
                log_event(
                    "site_resolution",
                    outcome="resolved",
                    city=name,
                    postCode=zip_code,
                    siteId=result.site_id,
                    attempts=len(result.attempts),
                )
                return result

        logger.info("No site matched city=%r postCode=%r after %d attempts", name, zip_code, len(result.attempts))
        record_site_resolution("unresolved", len(result.attempts))
        log_event("site_resolution", outcome="unresolved", city=name, postCode=zip_code, attempts=result.attempts)
        return result
