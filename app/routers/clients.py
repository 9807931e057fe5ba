from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from app.services.carrier import CONTRACT_CLIENTS
from app.services.shipments import passthrough

router = APIRouter(prefix="/client", tags=["client"])


# contract clients helper (sender clientId / objects)
@router.post("/contract")
def client_contract(payload: Dict[str, Any] = Body(default_factory=dict)):
    return passthrough(CONTRACT_CLIENTS, payload)
