from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from app.core.errors import ResolutionFailure, UpstreamError, ValidationError
from app.core.log import log_event
from app.core.normalize import as_dict
from app.core.settings import S, Settings
from app.services.carrier import PRINT, SHIPMENT, CarrierClient, credentials_from_body
from app.services.print_normalizer import normalize_print_request
from app.services.shipment_normalizer import (
    NormalizerDefaults,
    is_door_delivery,
    normalize_shipment,
    pending_site,
    strip_internal,
    unwrap_envelope,
)
from app.services.site_resolver import SiteResolutionResult, SiteResolver

logger = logging.getLogger(__name__)


def carrier_for(payload: Any, settings: Settings = S) -> CarrierClient:
    # credentials may sit inside the legacy `shipment` envelope
    creds = credentials_from_body(unwrap_envelope(as_dict(payload)), settings)
    if creds is None:
        raise ValidationError("Missing Speedy credentials (userName/password in body or SPEEDY_USERNAME/SPEEDY_PASSWORD)")
    return CarrierClient.from_settings(settings, creds)


def resolve_recipient_site(
    body: Dict[str, Any],
    client: CarrierClient,
    settings: Settings = S,
) -> Optional[SiteResolutionResult]:
    """Fill ``recipient.address.siteId`` for door deliveries that lack one."""
    pending = pending_site(body)
    if not is_door_delivery(body) or pending is None:
        return None

    city, post_code = pending.get("name"), pending.get("postCode")
    if not city and not post_code:
        raise ValidationError("Door delivery needs recipient city or postCode to resolve siteId")

    result = SiteResolver(client, country_id=settings.speedy_country_id).resolve(city, post_code)
    if not result.resolved:
        logger.info("Rejecting door delivery: no siteId for city=%r postCode=%r", city, post_code)
        status = result.status if result.status >= 400 else 422
        raise ResolutionFailure(city, post_code, result.attempts, result.last_response, status_code=status)

    recipient = as_dict(body.get("recipient"))
    recipient["address"] = {**as_dict(recipient.get("address")), "siteId": result.site_id}
    body["recipient"] = recipient
    return result


def create_shipment(
    payload: Any,
    settings: Settings = S,
    client: Optional[CarrierClient] = None,
) -> Dict[str, Any]:
    """Normalize -> resolve site (door deliveries only) -> submit."""
    client = client or carrier_for(payload, settings)
    body = normalize_shipment(payload, NormalizerDefaults.from_settings(settings))
    resolution = resolve_recipient_site(body, client, settings)

    result = client.call(SHIPMENT, strip_internal(body))
    log_event("shipment_created", shipmentId=result.get("id") if isinstance(result, Mapping) else None)
    if resolution is None:
        return result if isinstance(result, dict) else {"result": result}
    out = dict(result) if isinstance(result, Mapping) else {"result": result}
    out["siteResolution"] = resolution.diagnostics()
    return out


def print_labels(
    payload: Any,
    settings: Settings = S,
    client: Optional[CarrierClient] = None,
    paper_size: Optional[str] = None,
) -> bytes:
    client = client or carrier_for(payload, settings)
    body = normalize_print_request(payload, paper_size or settings.print_paper_size)
    resp = client.post_pdf(PRINT, body)
    if not resp.ok:
        # Speedy answers some print errors with a 200 JSON body
        status = resp.status if resp.status >= 400 else 502
        raise UpstreamError(status, resp.raw, "Carrier did not return a PDF label")
    return resp.content or b""


def passthrough(
    path: str,
    payload: Any,
    settings: Settings = S,
    client: Optional[CarrierClient] = None,
) -> Any:
    client = client or carrier_for(payload, settings)
    return client.call(path, as_dict(payload))
