from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field


class LegacyShipmentFields(BaseModel):
    """Every legacy alias the shipment rules look at, decoded in one place.

    Aliases are listed in priority order; the explicit carrier key comes first.
    Values are left untyped because callers send ints, digit strings and
    occasionally nested objects for the same field.
    """

    model_config = ConfigDict(extra="ignore")

    client_id: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("sender", "clientId"),
            AliasPath("sender", "client_id"),
            AliasPath("sender", "contractClientId"),
            "senderClientId",
            "sender_client_id",
            "contractClientId",
            "clientId",
            "client_id",
        ),
    )
    dropoff_office_id: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("sender", "dropoffOfficeId"),
            AliasPath("sender", "dropoffPointId"),
            AliasPath("sender", "dropoff_office_id"),
        ),
    )
    dropoff_override: Any = Field(
        default=None,
        validation_alias=AliasChoices("dropoffOfficeId", "defaultDropoffOfficeId", "dropoff_office_id"),
    )
    payer: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("payment", "courierServicePayer"),
            "courierServicePayer",
            "payer",
        ),
    )
    first_name: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            "delivery_first_name",
            "firstName",
            "first_name",
            AliasPath("recipient", "firstName"),
        ),
    )
    last_name: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            "delivery_last_name",
            "lastName",
            "last_name",
            AliasPath("recipient", "lastName"),
        ),
    )
    phone: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "phone"),
            "delivery_phone",
            "phone",
        ),
    )
    pickup_office_id: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "pickupOfficeId"),
            AliasPath("recipient", "officeId"),
            "pickupOfficeId",
            "officeId",
        ),
    )
    city: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "address", "siteName"),
            AliasPath("recipient", "city"),
            AliasPath("recipient", "cityName"),
            "delivery_city",
            "city",
            AliasPath("_pendingSite", "name"),
        ),
    )
    post_code: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "address", "postCode"),
            AliasPath("recipient", "postCode"),
            AliasPath("recipient", "zip"),
            "delivery_zip",
            "postCode",
            "zip",
            AliasPath("_pendingSite", "postCode"),
        ),
    )
    address_note: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "address", "addressNote"),
            AliasPath("recipient", "addressNote"),
            "delivery_address",
            "address1",
            "address",
            AliasPath("recipient", "address"),
        ),
    )
    site_id: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            AliasPath("recipient", "address", "siteId"),
            AliasPath("recipient", "siteId"),
            "siteId",
        ),
    )


class SiteResolveReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")
    city: Optional[str] = Field(default=None, validation_alias=AliasChoices("city", "name", "siteName"))
    post_code: Optional[Union[str, int]] = Field(default=None, validation_alias=AliasChoices("postCode", "post_code", "zip"))
    country_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("countryId", "country_id"))


class SiteResolveResp(BaseModel):
    site_id: int
    resolved: bool
    match: Optional[Dict[str, Any]] = None
    attempt: Optional[Dict[str, Any]] = None
    candidates_seen: int = 0
    attempts: List[Dict[str, Any]] = Field(default_factory=list)
    last_response: Any = None
