from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def index():
    return "OK: speedy-proxy is live"


@router.get("/health")
async def health():
    return {"ok": True}
