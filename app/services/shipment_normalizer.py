"""Shipment payload normalization.

Turns the loosely shaped shipment bodies our callers send into the body the
Speedy ``shipment/`` endpoint accepts. The work is an ordered pipeline of small
rules; every rule takes the current body and returns a new one, so each can be
exercised on its own and the order stays visible in ``RULES``.

Alias guessing lives in :class:`app.models.LegacyShipmentFields`, decoded from
the current body before each rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from app.core.normalize import INT32_MAX, as_dict, as_int, clean_str, prune_blank, without
from app.core.settings import FALLBACK_DROPOFF_OFFICE_ID, S, Settings
from app.models import LegacyShipmentFields

PAYERS = ("SENDER", "RECIPIENT", "THIRD_PARTY")
DEFAULT_PAYER = "SENDER"
DEFAULT_PACKAGE = "BOX"
PLACEHOLDER_CLIENT_NAME = "CLIENT"
PENDING_SITE_KEY = "_pendingSite"

SENDER_CLIENT_ALIASES = ("client_id", "contractClientId")
SENDER_DROPOFF_KEYS = ("dropoffOfficeId", "dropoffPointId", "dropoff_office_id")
SENDER_IDENTITY_FIELDS = ("clientName", "name", "contactName", "privatePerson")
OFFICE_RECIPIENT_DROPPED = ("contactName", "name", "address")
RECIPIENT_ADDRESS_ALIASES = ("city", "cityName", "postCode", "zip", "addressNote", "siteId")


@dataclass(frozen=True)
class NormalizerDefaults:
    dropoff_office_id: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "NormalizerDefaults":
        return cls(dropoff_office_id=settings.speedy_dropoff_office_id)


# ---------- sender identity ----------

@dataclass(frozen=True)
class ByAccount:
    client_id: int


@dataclass(frozen=True)
class ByDropoffPoint:
    office_id: int


SenderIdentity = Union[ByAccount, ByDropoffPoint]


def classify_dropoff_value(value: Any) -> Optional[SenderIdentity]:
    """Compatibility shim for legacy callers.

    Older clients put the contract client id into the drop-off office field.
    Office ids fit in a signed 32-bit int, client ids do not.
    """
    n = as_int(value)
    if n is None or n <= 0:
        return None
    if n > INT32_MAX:
        return ByAccount(n)
    return ByDropoffPoint(n)


def resolve_default_dropoff(override: Any, defaults: NormalizerDefaults) -> int:
    """request override > configured default > fallback constant"""
    for candidate in (override, defaults.dropoff_office_id):
        ident = classify_dropoff_value(candidate)
        if isinstance(ident, ByDropoffPoint):
            return ident.office_id
    return FALLBACK_DROPOFF_OFFICE_ID


# ---------- rules ----------

Rule = Callable[[Dict[str, Any], LegacyShipmentFields, NormalizerDefaults], Dict[str, Any]]


def unwrap_envelope(body: Mapping[str, Any]) -> Dict[str, Any]:
    shipment = body.get("shipment")
    if isinstance(shipment, Mapping):
        rest = without(body, ["shipment"])
        return unwrap_envelope({**rest, **shipment})
    return dict(body)


def adopt_sender_client_id(body, legacy, defaults):
    sender = as_dict(body.get("sender"))
    if as_int(sender.get("clientId")) is not None:
        return body
    client_id = as_int(legacy.client_id)
    if client_id is None:
        return body
    sender = without(sender, SENDER_CLIENT_ALIASES)
    return {**body, "sender": {**sender, "clientId": client_id}}


def dropoff_key(sender: Mapping[str, Any]) -> str:
    """The drop-off key the caller used; the snake_case alias folds into dropoffOfficeId."""
    if "dropoffPointId" in sender and "dropoffOfficeId" not in sender:
        return "dropoffPointId"
    return "dropoffOfficeId"


def disambiguate_dropoff(body, legacy, defaults):
    if "sender" not in body:
        return body
    raw = as_dict(body.get("sender"))
    key = dropoff_key(raw)
    sender = without(raw, SENDER_DROPOFF_KEYS)
    ident = classify_dropoff_value(legacy.dropoff_office_id)
    if isinstance(ident, ByAccount):
        if as_int(sender.get("clientId")) is None:
            sender["clientId"] = ident.client_id
        sender[key] = resolve_default_dropoff(legacy.dropoff_override, defaults)
    elif isinstance(ident, ByDropoffPoint):
        sender[key] = ident.office_id
    elif key in raw:
        # unusable value; default_dropoff refills it under the same key
        sender[key] = None
    return {**body, "sender": sender}


def default_dropoff(body, legacy, defaults):
    if "sender" not in body:
        return body
    sender = as_dict(body.get("sender"))
    key = dropoff_key(sender)
    if as_int(sender.get(key)):
        return body
    sender[key] = resolve_default_dropoff(legacy.dropoff_override, defaults)
    return {**body, "sender": sender}


def enforce_sender_exclusion(body, legacy, defaults):
    sender = as_dict(body.get("sender"))
    if as_int(sender.get("clientId")) is None:
        return body
    return {**body, "sender": without(sender, SENDER_IDENTITY_FIELDS)}


def normalize_payer(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_PAYER
    p = value.strip().upper()
    if p == "CONTRACT_CLIENT":
        return "SENDER"
    return p if p in PAYERS else DEFAULT_PAYER


def normalize_payment(body, legacy, defaults):
    payment = as_dict(body.get("payment"))
    payment["courierServicePayer"] = normalize_payer(legacy.payer)
    return {**body, "payment": payment}


def rename_pickup_date(body, legacy, defaults):
    service = body.get("service")
    if not isinstance(service, Mapping) or "pickupDate" not in service or "pickUpDate" in service:
        return body
    service = dict(service)
    service["pickUpDate"] = service.pop("pickupDate")
    return {**body, "service": service}


def default_content(body, legacy, defaults):
    content = as_dict(body.get("content"))
    if content.get("package"):
        return body
    return {**body, "content": {**content, "package": DEFAULT_PACKAGE}}


def _client_name(recipient: Mapping[str, Any], legacy: LegacyShipmentFields) -> str:
    first = clean_str(legacy.first_name) or ""
    last = clean_str(legacy.last_name) or ""
    return f"{first} {last}".strip() or clean_str(recipient.get("name")) or PLACEHOLDER_CLIENT_NAME


def normalize_recipient(body, legacy, defaults):
    if "recipient" not in body and legacy.pickup_office_id is None:
        return body
    recipient = as_dict(body.get("recipient"))
    office_id = as_int(legacy.pickup_office_id)
    if office_id:
        recipient = without(recipient, OFFICE_RECIPIENT_DROPPED + ("officeId",) + RECIPIENT_ADDRESS_ALIASES)
        recipient["pickupOfficeId"] = office_id

    if not recipient.get("clientName"):
        recipient["clientName"] = _client_name(recipient, legacy)

    phone = clean_str(legacy.phone)
    if not recipient.get("phone1") and phone:
        recipient["phone1"] = {"number": phone}
        recipient.pop("phone", None)
    return {**body, "recipient": recipient}


def stage_door_address(body, legacy, defaults):
    recipient = body.get("recipient")
    if not isinstance(recipient, Mapping) or recipient.get("pickupOfficeId"):
        return without(body, [PENDING_SITE_KEY])

    address = as_dict(recipient.get("address"))
    post_code = clean_str(legacy.post_code)
    note = clean_str(legacy.address_note)
    site_id = as_int(legacy.site_id)
    if post_code and not address.get("postCode"):
        address["postCode"] = post_code
    if note and not address.get("addressNote"):
        address["addressNote"] = note
    address.pop("siteName", None)

    out = without(body, [PENDING_SITE_KEY])
    if site_id:
        address["siteId"] = site_id
    else:
        address.pop("siteId", None)
        out[PENDING_SITE_KEY] = {"name": clean_str(legacy.city), "postCode": post_code}
    out["recipient"] = {**without(recipient, RECIPIENT_ADDRESS_ALIASES), "address": address}
    return out


RULES: Tuple[Rule, ...] = (
    adopt_sender_client_id,
    disambiguate_dropoff,
    default_dropoff,
    enforce_sender_exclusion,
    normalize_payment,
    rename_pickup_date,
    default_content,
    normalize_recipient,
    stage_door_address,
)


def decode_legacy_fields(body: Mapping[str, Any]) -> LegacyShipmentFields:
    # a null or blank key must not shadow a lower-priority alias
    return LegacyShipmentFields.model_validate(prune_blank(body))


def normalize_shipment(payload: Any, defaults: Optional[NormalizerDefaults] = None) -> Dict[str, Any]:
    """Apply every rule in order. Pure: the input is never modified."""
    defaults = defaults or NormalizerDefaults.from_settings(S)
    body = unwrap_envelope(payload if isinstance(payload, Mapping) else {})
    for rule in RULES:
        # aliases are re-read after each rule since earlier rules move fields
        body = rule(body, decode_legacy_fields(body), defaults)
    return body


def pending_site(body: Mapping[str, Any]) -> Optional[Dict[str, Optional[str]]]:
    pending = body.get(PENDING_SITE_KEY)
    return dict(pending) if isinstance(pending, Mapping) else None


def is_door_delivery(body: Mapping[str, Any]) -> bool:
    recipient = body.get("recipient")
    return isinstance(recipient, Mapping) and not recipient.get("pickupOfficeId")


def strip_internal(body: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in body.items() if not str(k).startswith("_")}
