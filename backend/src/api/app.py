"""
FastAPI application for the C.F.T. Hub counter.

Wires the POS routers, the error handlers and request tracing together, and
serves `/health` and `/metrics` for the shop's monitoring.
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import admin, auth, customers, services, transactions
from src.api.middleware.error_handler import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from src.lib.logging import get_logger, reset_correlation_id, set_correlation_id
from src.lib.metrics import get_metrics_collector
from src.lib.settings import settings

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a correlation id and log how it went.

    A till may send its own `X-Correlation-ID`; otherwise one is generated.
    The id is echoed on the response, stored on `request.state` for the error
    handlers, and bound to the logging context while the request runs.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            logger.info(
                f"{request.method} {request.url.path}",
                extra={"client": request.client.host if request.client else None},
            )
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            logger.info(
                "Request finished",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            return response
        finally:
            reset_correlation_id(token)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{settings.app_name} ready", extra={"business": settings.business_name})
    yield
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description=f"Point of sale APIs for {settings.business_name}: barbing, charging and computer services",
    lifespan=lifespan,
)

# The counter UI runs in a browser on the shop machine
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER, "Retry-After"],
)
app.add_middleware(CorrelationIdMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

for module in (auth, services, customers, transactions, admin):
    app.include_router(module.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
def metrics_endpoint():
    """
    Prometheus text exposition of the sales counters.

    transactions_settled_total and transaction_failures_total are labelled by
    category; revenue_total and the cashback_* counters are in naira.
    """
    return PlainTextResponse(
        content=get_metrics_collector().export_prometheus(),
        media_type=PROMETHEUS_CONTENT_TYPE,
    )
