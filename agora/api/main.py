"""
agora.api.main — FastAPI application entry point
=================================================

Run with::

    uvicorn agora.api.main:app --reload --port 3000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from agora.api.auth import router as auth_router  # noqa: E402
from agora.api.deps import authenticate, get_config, get_engine  # noqa: E402
from agora.api.routes.discussions import router as discussions_router  # noqa: E402
from agora.api.routes.events import router as events_router  # noqa: E402
from agora.api.routes.questions import router as questions_router  # noqa: E402
from agora.api.routes.replies import router as replies_router  # noqa: E402
from agora.errors import AgoraError  # noqa: E402

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — apply log level and warm the DB engine."""
    cfg = get_config()
    logging.getLogger("agora").setLevel(cfg.log_level)

    engine = get_engine()
    logger.info("%s started — engine ready (%s)", cfg.app_name, engine.url.database)
    yield
    logger.info("%s shutting down", cfg.app_name)


app = FastAPI(
    title="Agora Forum API",
    version="1.0.0",
    lifespan=lifespan,
    dependencies=[Depends(authenticate)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Security headers (helmet-style defaults for a JSON API)
# ---------------------------------------------------------------------------
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
}

# Swagger UI pulls its assets from a CDN, so the docs pages skip the CSP.
_API_CSP = "default-src 'none'; frame-ancestors 'self'"


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if request.url.path not in (app.docs_url, app.redoc_url):
        response.headers.setdefault("Content-Security-Policy", _API_CSP)
    return response


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------
@app.exception_handler(AgoraError)
async def agora_error_handler(request: Request, exc: AgoraError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed ids, dates and missing query params are client errors, not 422s.
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Bad Request"})


# Mount routers
app.include_router(auth_router)
app.include_router(discussions_router)
app.include_router(questions_router)
app.include_router(events_router)
app.include_router(replies_router)


@app.get("/health")
def health():
    return {"status": "ok"}
