"""Main entry point for the Huddle server."""

from __future__ import annotations

import logging
import ssl
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from huddle.api.errors import install_error_handlers
from huddle.api.v1 import (
    auth_router,
    banking_router,
    calls_router,
    friends_router,
    groups_router,
    messages_router,
    realtime_router,
    users_router,
)
from huddle.core.settings import settings
from huddle.db.session import create_tables, engine
from huddle.services.calls import shutdown_call_signaling
from huddle.services.registry import get_account_registry, get_chat_registry, get_video_registry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Huddle API",
    description="Real-time chat, presence and call signaling server",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

install_error_handlers(app)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(friends_router, prefix="/api/v1")
app.include_router(groups_router, prefix="/api/v1")
app.include_router(calls_router, prefix="/api/v1")
app.include_router(banking_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if engine.url.get_backend_name() == "sqlite":
        # SQLite deployments have no migration step; Alembic handles the rest.
        create_tables()
    logger.info(
        "%s %s listening on %s:%d (advertised as %s)",
        settings.app_name,
        settings.app_version,
        settings.server_host,
        settings.server_port,
        settings.advertised_host,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    shutdown_call_signaling()
    for registry in (get_chat_registry(), get_video_registry(), get_account_registry()):
        registry.clear()
    engine.dispose()
    logger.info("%s stopped", settings.app_name)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint describing the service and where clients should connect."""
    scheme = "https" if settings.tls_enabled else "http"
    ws_scheme = "wss" if settings.tls_enabled else "ws"
    base = f"{settings.advertised_host}:{settings.server_port}"
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "api": f"{scheme}://{base}/api/v1",
        "callbacks": {
            "chat": f"{ws_scheme}://{base}/api/v1/ws/chat",
            "calls": f"{ws_scheme}://{base}/api/v1/ws/calls",
            "accounts": f"{ws_scheme}://{base}/api/v1/ws/accounts/{{account_id}}",
        },
        "docs": "/docs",
    }


def serve() -> None:
    """Run the server with uvicorn using the configured bind address and TLS material."""
    import uvicorn

    options: dict[str, Any] = {
        "host": settings.server_host,
        "port": settings.server_port,
        "log_level": settings.log_level.lower(),
    }
    if settings.tls_enabled:
        options["ssl_certfile"] = settings.tls_cert_file
        options["ssl_keyfile"] = settings.tls_key_file
        if settings.tls_ca_file:
            options["ssl_ca_certs"] = settings.tls_ca_file
            options["ssl_cert_reqs"] = ssl.CERT_REQUIRED
    uvicorn.run(app, **options)


if __name__ == "__main__":
    serve()
