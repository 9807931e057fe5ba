from __future__ import annotations

from typing import Any, Dict, List, Mapping

from app.core.errors import ValidationError
from app.core.normalize import clean_str, without

DEFAULT_PAPER_SIZE = "A6"
DEFAULT_SENDER_COPY = "NONE"

ID_LIST_KEYS = ("parcels", "shipmentIds", "shipments", "parcelIds", "ids", "waybills")
SINGLE_ID_KEYS = ("shipmentId", "parcelId", "id")


def _parcel_id(item: Any) -> str | None:
    if isinstance(item, Mapping):
        parcel = item.get("parcel")
        if isinstance(parcel, Mapping):
            return clean_str(parcel.get("id"))
        return clean_str(item.get("id"))
    return clean_str(item)


def _raw_ids(payload: Mapping[str, Any]) -> List[Any]:
    for key in ID_LIST_KEYS:
        value = payload.get(key)
        if isinstance(value, list) and value:
            return value
        if value not in (None, "", []) and not isinstance(value, list):
            return [value]
    for key in SINGLE_ID_KEYS:
        if payload.get(key) not in (None, ""):
            return [payload[key]]
    return []


def normalize_print_request(payload: Any, default_paper_size: str = DEFAULT_PAPER_SIZE) -> Dict[str, Any]:
    """Build the ``print/`` body: ``{parcels: [{parcel: {id}}], paperSize, ...}``."""
    if isinstance(payload, Mapping):
        body = dict(payload)
    else:
        body = {"ids": payload}

    ids = [pid for pid in (_parcel_id(item) for item in _raw_ids(body)) if pid]
    if not ids:
        raise ValidationError("No shipment or parcel ids to print")

    out = without(body, ID_LIST_KEYS + SINGLE_ID_KEYS)
    out["parcels"] = [{"parcel": {"id": pid}} for pid in ids]
    out["paperSize"] = clean_str(body.get("paperSize")) or default_paper_size
    out["additionalWaybillSenderCopy"] = clean_str(body.get("additionalWaybillSenderCopy")) or DEFAULT_SENDER_COPY
    return out
