"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from card_billing.api.middleware import RequestIDMiddleware, MetricsMiddleware
from card_billing.api.dependencies import get_request_id
from card_billing.api.v1 import cards, invoices, purchases
from card_billing.domain.exceptions import (
    DomainException,
    ForbiddenError,
    InvalidReferenceError,
    InvalidStatusTransitionError,
    LimitExceededError,
    NotFoundError,
)
from card_billing.infrastructure.observability.logging import setup_logging
from card_billing.config import settings

# Setup structured logging
setup_logging(settings.log_level)

ERROR_STATUS = {
    NotFoundError: 404,
    ForbiddenError: 403,
    LimitExceededError: 400,
    InvalidReferenceError: 400,
    InvalidStatusTransitionError: 409,
}


def install_error_handlers(app: FastAPI) -> None:
    """Translate domain and store failures into JSON error responses"""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        status_code = ERROR_STATUS.get(type(exc), 400)
        logging.warning(
            f"{exc.code}: {exc.message}",
            extra={"request_id": get_request_id(request), "path": request.url.path},
        )
        return JSONResponse(status_code=status_code, content={"error": exc.message, "code": exc.code})

    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: SQLAlchemyError):
        logging.error(f"Store error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(
            status_code=503,
            content={"error": "Storage temporarily unavailable", "code": "STORE_UNAVAILABLE"},
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Card Billing Engine",
        description="Credit card invoices, installments, limits and payments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    install_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(invoices.router, prefix="/v1", tags=["invoices"])
    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])

    return app


app = create_app()
