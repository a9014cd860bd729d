"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from panda.api.v1 import v1_router
from panda.core.config import get_settings
from panda.core.database import init_db
from panda.core.errors import InternalFailure, PandaError, ValidationFailed
from panda.core.logging import configure_logging

logger = logging.getLogger(__name__)

_settings = get_settings()
configure_logging(_settings.log_level.upper())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    yield


app = FastAPI(
    title="PANDA Pod",
    version="0.1.0",
    description="Tunnel service registry and frpc client configuration",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}


# ── Error handlers ───────────────────────────────────────────

@app.exception_handler(PandaError)
async def panda_error_handler(request: Request, exc: PandaError) -> JSONResponse:
    return exc.to_response()


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        # Drop the "body"/"path"/"query" prefix
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.setdefault(loc[0] if loc else "_form", []).append(err["msg"])
    return ValidationFailed(details).to_response()


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return InternalFailure().to_response()
