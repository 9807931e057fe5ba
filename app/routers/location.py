from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from app.core.settings import S
from app.models import SiteResolveReq, SiteResolveResp
from app.services.carrier import OFFICE_SEARCH, SITE_SEARCH
from app.services.shipments import carrier_for, passthrough
from app.services.site_resolver import SiteResolver

router = APIRouter(prefix="/location", tags=["location"])


@router.post("/site")
def location_site(payload: Dict[str, Any] = Body(default_factory=dict)):
    return passthrough(SITE_SEARCH, payload)


# expects { siteId: <number> }
@router.post("/offices-by-site")
def location_offices_by_site(payload: Dict[str, Any] = Body(default_factory=dict)):
    return passthrough(OFFICE_SEARCH, payload)


@router.post("/office")
def location_office(payload: Dict[str, Any] = Body(default_factory=dict)):
    return passthrough(OFFICE_SEARCH, payload)


@router.post("/site/resolve", response_model=SiteResolveResp)
def location_site_resolve(body: SiteResolveReq):
    extra = body.model_extra or {}
    client = carrier_for(extra)
    resolver = SiteResolver(client, country_id=body.country_id or S.speedy_country_id)
    post_code = str(body.post_code) if body.post_code is not None else None
    result = resolver.resolve(body.city, post_code)
    return SiteResolveResp(
        site_id=result.site_id,
        resolved=result.resolved,
        match=result.match,
        attempt=result.attempt,
        candidates_seen=result.candidates_seen,
        attempts=result.attempts,
        last_response=result.last_response,
    )
