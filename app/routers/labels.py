from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Response

from app.services.shipments import print_labels

router = APIRouter(tags=["print"])

LABEL_FILENAME = "speedy-label.pdf"


@router.post("/print")
def print_label(payload: Any = Body(default=None)):
    pdf = print_labels(payload)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{LABEL_FILENAME}"'},
    )
