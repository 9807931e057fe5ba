from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.errors import ProxyError
from app.core.log import configure_logging
from app.core.settings import S
from app.metrics import METRICS_ENABLED, metrics_endpoint, metrics_middleware, set_app_info
from app.routers.clients import router as clients_router
from app.routers.health import router as health_router
from app.routers.labels import router as labels_router
from app.routers.location import router as location_router
from app.routers.shipments import router as shipments_router

logger = logging.getLogger(__name__)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def body_size_guard(request: Request, call_next):
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > S.max_body_bytes:
        return JSONResponse(status_code=413, content={"error": "Request body too large"})
    return await call_next(request)


def create_app() -> FastAPI:
    configure_logging(S.log_level)
    app = FastAPI(title="Speedy Proxy", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=S.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(body_size_guard)
    if METRICS_ENABLED:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    app.add_exception_handler(ProxyError, proxy_error_handler)

    app.include_router(health_router)
    app.include_router(location_router)
    app.include_router(clients_router)
    app.include_router(shipments_router)
    app.include_router(labels_router)

    return app

app = create_app()
