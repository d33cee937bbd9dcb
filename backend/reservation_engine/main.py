"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from secure import Secure

from reservation_engine.api import api_router
from reservation_engine.core.config import get_settings
from reservation_engine.core.errors import ReservationError
from reservation_engine.core.logging import configure_logging
from reservation_engine.db.session import dispose_engine, get_sessionmaker
from reservation_engine.services.expiry_reaper import ExpiryReaper

logger = logging.getLogger(__name__)

settings = get_settings()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    reaper: ExpiryReaper | None = None
    if settings.reaper_enabled:
        reaper = ExpiryReaper(get_sessionmaker(), settings=settings)
        reaper.start()
    app.state.reaper = reaper
    try:
        yield
    finally:
        if reaper is not None:
            await reaper.stop()
        await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID", "X-User-ID", "X-User-Role"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    return response


@app.exception_handler(ReservationError)
async def _reservation_error_handler(
    request: Request, exc: ReservationError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": settings.app_name}
