"""
FastAPI application - primary inbound adapter.
"""
from __future__ import annotations

import logging
import math
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.src.infrastructure.config import Settings
from backend.src.infrastructure.logging_config import setup_logging

logger = logging.getLogger(__name__)

settings = Settings()

VERSION = "0.1.0"

# Auth-exempt paths (no Bearer token needed)
_AUTH_EXEMPT_PREFIXES = (
    "/api/health",
    "/ws/",
    "/docs", "/openapi.json", "/redoc",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    setup_logging(settings.logging.level, settings.logging.file)
    settings.validate_production()
    logger.info("Banana Studio backend starting up...")
    from backend.src.infrastructure.container import ApplicationContainer
    app.state.container = ApplicationContainer(settings)
    await app.state.container.startup()
    yield
    logger.info("Banana Studio backend shutting down...")
    await app.state.container.shutdown()


app = FastAPI(
    title="Banana Studio API",
    description="Frame editing, AI image/video generation and ad scripting",
    version=VERSION,
    lifespan=lifespan,
)

_origins = ["*"] if settings.app_env != "production" else settings.web.cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Retry-After"],
)


def _auth_error(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"cache-control": "no-store, no-cache, must-revalidate"},
    )


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Authenticate via Bearer token or legacy API key.

    Attaches ``request.state.user`` when authentication succeeds.
    """
    path = request.url.path

    if request.method == "OPTIONS":
        return await call_next(request)
    if path == "/" or any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES):
        return await call_next(request)

    user_auth = request.app.state.container.user_auth()

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        user = await user_auth.verify_token(token)
        if not user:
            logger.warning("Auth: token rejected for %s", path)
            return _auth_error("Invalid or expired token")
        request.state.user = user
        return await call_next(request)

    api_key = request.app.state.container.settings.api_key
    if api_key:
        if request.headers.get("X-API-Key", "") != api_key:
            return _auth_error("Invalid or missing API key")
        from backend.src.core.entities.user import User
        request.state.user = User(id="apikey-user", display_name="API Key User")
        return await call_next(request)

    # No credentials configured (dev mode): attach the dev user
    user = await user_auth.verify_token("")
    if user:
        request.state.user = user
    return await call_next(request)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log each request with method, path, status, and duration."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    if request.url.path.startswith("/api"):
        response.headers["cache-control"] = "no-store, no-cache, must-revalidate"
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


from backend.src.core.exceptions import (
    FrameExtractionError,
    GenerationError,
    InputValidationError,
    JobStateError,
    JobTimeoutError,
    NotFoundError,
    RateLimitError,
)


@app.exception_handler(InputValidationError)
async def input_validation_handler(request: Request, exc: InputValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(FrameExtractionError)
async def frame_extraction_handler(request: Request, exc: FrameExtractionError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    return JSONResponse(
        status_code=429,
        content={"detail": str(exc)},
        headers={"Retry-After": str(max(1, math.ceil(exc.remaining_seconds)))},
    )


@app.exception_handler(JobTimeoutError)
async def job_timeout_handler(request: Request, exc: JobTimeoutError):
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.warning("Generation error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(JobStateError)
async def job_state_handler(request: Request, exc: JobStateError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ── API routes ─────────────────────────────────────────────────

from backend.src.adapters.inbound.api.ads import router as ads_router
from backend.src.adapters.inbound.api.frames import router as frames_router
from backend.src.adapters.inbound.api.generation import router as generation_router
from backend.src.adapters.inbound.api.projects import router as projects_router

app.include_router(projects_router, prefix="/api/projects", tags=["projects"])
app.include_router(frames_router, prefix="/api/frames", tags=["frames"])
app.include_router(generation_router, prefix="/api/generation", tags=["generation"])
app.include_router(ads_router, prefix="/api/ads", tags=["ads"])


@app.get("/api/health")
async def health(request: Request):
    container = request.app.state.container
    cfg = container.settings
    return {
        "status": "ok",
        "version": VERSION,
        "persistence_backend": cfg.persistence_backend,
        "ad_writer": cfg.ads.backend,
        "providers": sorted(kind.value for kind in container.providers_by_kind()),
        "frame_vision": bool(cfg.gemini.api_key),
    }


async def _authenticate_websocket(websocket: WebSocket, token: str, api_key: str):
    """Resolve the caller the same way the HTTP auth middleware does."""
    container = websocket.app.state.container
    if token:
        return await container.user_auth().verify_token(token)
    expected_key = container.settings.api_key
    if expected_key:
        if api_key != expected_key:
            return None
        from backend.src.core.entities.user import User
        return User(id="apikey-user", display_name="API Key User")
    return await container.user_auth().verify_token("")


@app.websocket("/ws/jobs/{user_id}")
async def job_updates(websocket: WebSocket, user_id: str, token: str = "", api_key: str = ""):
    """Push progress, completion and error events for a user's jobs.

    The ``token`` query parameter must resolve to ``user_id``; otherwise the
    socket is closed with policy-violation code 1008.
    """
    user = await _authenticate_websocket(websocket, token, api_key)
    if user is None or user.id != user_id:
        logger.warning("WebSocket refused for channel %s", user_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    notifier = websocket.app.state.container.notification()
    await notifier.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await notifier.disconnect(user_id, websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.src.adapters.inbound.fastapi_app:app",
        host=settings.web.host,
        port=settings.web.port,
        log_level=settings.logging.level.lower(),
    )
