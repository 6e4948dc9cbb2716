"""
Mind-Map Relay
==============
FastAPI entry point.
  • POST / — authenticated topic → mind map (nodes + edges) via DeepSeek
  • OPTIONS / — CORS preflight, empty body
  • Every response is JSON with permissive CORS headers
  • Settings are loaded once at import; missing keys abort startup
"""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.cors import CORS_HEADERS
from app.api.v1.endpoints.mindmap import router as mindmap_router
from app.core.config import Settings, get_settings
from app.schemas.envelope import ApiResponse
from app.services.auth_service import IdentityClient
from app.services.completion_service import CompletionClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "Mind-Map Relay"
VERSION = "1.0.0"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    )


def create_app(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay around an already-loaded Settings object.
    ``transport`` is handed to every outbound httpx client.
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="Relays a study topic to a chat-completions API and returns a mind map graph.",
        version=VERSION,
    )
    app.state.settings = settings
    app.state.identity = IdentityClient(settings, transport=transport)
    app.state.completion = CompletionClient(settings, transport=transport)

    # ── Exception Handlers ───────────────────────────────────────────────────
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Router-level errors (404, 405) in the relay envelope."""
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        body = ApiResponse(success=False, error=message)
        headers = {**CORS_HEADERS, **(exc.headers or {})}
        return JSONResponse(status_code=exc.status_code, content=body.to_json(), headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all: every unhandled exception returns a clean JSON envelope."""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        body = ApiResponse(success=False, error="Internal server error")
        return JSONResponse(status_code=500, content=body.to_json(), headers=CORS_HEADERS)

    # ── Health Check ─────────────────────────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "operational", "service": SERVICE_NAME, "version": VERSION}

    app.include_router(mindmap_router, tags=["Mind Map"])

    logger.info(f"[INIT] ✓ Relay ready (model={settings.DEEPSEEK_MODEL})")
    return app


# ── App ──────────────────────────────────────────────────────────────────────
settings = get_settings()
configure_logging(settings.LOG_LEVEL)
app = create_app(settings)
