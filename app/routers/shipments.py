from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from app.services.shipments import create_shipment

router = APIRouter(tags=["shipment"])


@router.post("/shipment")
def shipment_create(payload: Dict[str, Any] = Body(default_factory=dict)):
    return create_shipment(payload)
