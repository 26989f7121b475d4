# backend/rsvp_api/main.py

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rsvp_api import __version__
from rsvp_api.api import admin, health, public
from rsvp_api.core.background import BackgroundTaskRegistry
from rsvp_api.core.config import Settings, get_settings
from rsvp_api.core.cors import SiteCORSMiddleware
from rsvp_api.core.email import RsvpNotifier
from rsvp_api.core.errors import (
    NotFoundError,
    RsvpError,
    ServerError,
    ValidationError,
    error_payload,
    install_request_id_logging,
    log_exception_with_context,
)
from rsvp_api.core.rate_limit import SimpleRateLimiter, client_ip
from rsvp_api.core.request_context import set_request_id
from rsvp_api.core.security import TokenService
from rsvp_api.db.init_db import create_tables
from rsvp_api.db.session import build_engine, build_session_factory

logger = logging.getLogger("rsvp")

_logging_configured = False


def configure_logging(settings: Settings) -> None:
    """
    Structured single-line logs with the request id on every record.
    Idempotent so repeated create_app() calls (tests) don't stack handlers.
    """
    global _logging_configured
    if _logging_configured:
        logging.getLogger().setLevel(settings.log_level.upper())
        return

    # A LogRecordFactory runs for EVERY record, so %(request_id)s never raises
    # KeyError even for third-party loggers the filter is not attached to.
    old_factory = logging.getLogRecordFactory()

    def _record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return record

    logging.setLogRecordFactory(_record_factory)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s request_id=%(request_id)s %(message)s",
    )
    install_request_id_logging()
    _logging_configured = True


def _get_request_id(request: Request) -> str:
    """
    Use an incoming request id if present (common in proxies),
    otherwise generate one.
    """
    incoming = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")
    if incoming and incoming.strip():
        return incoming.strip()[:128]
    return uuid.uuid4().hex


# --- Exception handlers ({"error": message} contract) ---

async def rsvp_error_handler(request: Request, exc: RsvpError):
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Exact method+path dispatch: a known path with the wrong method is just "not found".
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content=error_payload(NotFoundError.default_message))

    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return JSONResponse(status_code=exc.status_code, content=error_payload(message))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=error_payload(ValidationError.default_message))


async def request_observability(request: Request, call_next):
    """
    Request id + timing + one key=value log line per request.

    Also the single top-level catch for unanticipated failures: they are
    logged with traceback and turned into a generic 500 (no details leak).
    """
    request_id = _get_request_id(request)
    request.state.request_id = request_id
    set_request_id(request_id)

    start = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception:
        log_exception_with_context(
            "Unhandled error",
            extra={"method": request.method, "path": request.url.path},
        )
        response = JSONResponse(status_code=500, content=error_payload(ServerError.default_message))
        status_code = 500
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "req method=%s path=%s status=%s duration_ms=%.2f ip=%s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            client_ip(request),
        )
        set_request_id(None)

    response.headers["X-Request-ID"] = request_id
    return response


def create_app(
    settings: Optional[Settings] = None,
    *,
    notifier: Optional[RsvpNotifier] = None,
) -> FastAPI:
    """
    Build the application. Settings are resolved once here and every service
    is constructed from them and parked on app.state.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings.database_url)
    task_registry = BackgroundTaskRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.auto_create_tables:
            create_tables(engine)
        task_registry.start()
        logger.info("Startup: environment=%s site_origin=%s", settings.environment, settings.site_origin)
        try:
            yield
        finally:
            # Notifications scheduled by RSVPs must settle before the worker goes away
            await task_registry.drain(timeout=settings.background_drain_timeout_seconds)
            engine.dispose()
            logger.info("Shutdown complete")

    app = FastAPI(
        title="RSVP API",
        version=__version__,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.debug else None,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService.from_settings(settings)
    app.state.notifier = notifier or RsvpNotifier(settings)
    app.state.task_registry = task_registry
    app.state.login_limiter = SimpleRateLimiter(
        "login", settings.login_rate_limit, settings.login_rate_window
    )

    app.add_exception_handler(RsvpError, rsvp_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Last added runs first: CORS wraps the observability layer so even its 500s carry the headers.
    app.middleware("http")(request_observability)
    app.add_middleware(SiteCORSMiddleware, site_origin=settings.site_origin)

    app.include_router(public.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("rsvp_api.main:create_app", factory=True, host="0.0.0.0", port=8000)
