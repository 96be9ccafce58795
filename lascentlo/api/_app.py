"""
FastAPI application factory.

Every failure leaves as {"error": {"kind", "message", "retryable"}}. Domain
errors keep their message; anything unexpected is logged with its traceback
and answered with a generic internal error.
"""

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lascentlo.db import create_database
from lascentlo.errors import ErrorKind, ShopError
from lascentlo.log import configure_logging
from lascentlo.notify import LogNotifier, Notifier
from lascentlo.payments import PaymentProcessor, StripeProcessor
from lascentlo.settings import Settings
from lascentlo.api._deps import Services, build_services
from lascentlo.api import _accounts, _orders, _products

log = structlog.get_logger(__name__)

HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_SIZE: 400,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.STOCK_EXHAUSTED: 409,
    ErrorKind.PAYMENT_PROCESSOR: 502,
    ErrorKind.PAYMENT_UNAVAILABLE: 503,
    ErrorKind.PAYMENT_NOT_SETTLED: 402,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.ILLEGAL_TRANSITION: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE: 500,
}


def error_body(kind: str, message: str, retryable: bool = False, **extra: object) -> dict:
    return {"error": {"kind": kind, "message": message, "retryable": retryable, **extra}}


async def _shop_error(request: Request, exc: ShopError) -> JSONResponse:
    code = HTTP_STATUS[exc.kind]
    log.info("request_failed", kind=exc.kind.value, status=code, reason=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        error_body(exc.kind.value, exc.message, exc.retryable),
        status_code=code,
        headers=headers,
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    first = problems[0] if problems else {"field": "", "message": "Invalid request"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return JSONResponse(
        error_body(ErrorKind.VALIDATION.value, message, problems=problems),
        status_code=400,
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = ErrorKind.NOT_FOUND.value if exc.status_code == 404 else "http_error"
    return JSONResponse(
        error_body(kind, str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path)
    return JSONResponse(error_body("internal", "Internal server error"), status_code=500)


def create_app(
    settings: Settings | None = None,
    *,
    services: Services | None = None,
    processor: PaymentProcessor | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    """
    Build the HTTP app.

    With services given (tests), they are used as-is. Otherwise the lifespan
    opens the database and wires Stripe plus the logging notifier.
    """
    settings = settings or (services.settings if services is not None else Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            yield
            return

        configure_logging(settings.log_level, settings.log_json)
        session_factory, engine = await create_database(settings.database_url)
        app.state.services = build_services(
            settings,
            session_factory,
            processor=processor
            or StripeProcessor(settings.stripe_secret_key, timeout=settings.payment_timeout_seconds),
            notifier=notifier or LogNotifier(settings.client_url),
        )
        log.info("app_started", database=engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            await engine.dispose()
            log.info("app_stopped")

    app = FastAPI(title="lascentlo", version="0.1.0", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request.headers.get("x-request-id") or uuid.uuid4().hex[:16],
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        response = await call_next(request)
        log.info(
            "request_completed",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    app.add_exception_handler(ShopError, _shop_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unexpected)

    app.include_router(_accounts.auth)
    app.include_router(_accounts.users)
    app.include_router(_products.router)
    app.include_router(_orders.router)

    @app.get("/api/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ("HTTP_STATUS", "error_body", "create_app")
