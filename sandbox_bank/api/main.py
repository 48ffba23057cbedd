"""FastAPI application factory"""

import logging
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.responses import Response

from sandbox_bank.api.middleware import RequestIDMiddleware, MetricsMiddleware
from sandbox_bank.api.v1 import accounts, scheduled_transfers
from sandbox_bank.config import settings
from sandbox_bank.domain.exceptions import (
    AccountNotFoundError,
    DomainException,
    InvalidTransitionError,
    TransferNotFoundError,
    ValidationError,
)
from sandbox_bank.infrastructure.database.session import get_db
from sandbox_bank.infrastructure.observability.logging import setup_logging

setup_logging(settings.log_level)

# Fallback mapping for domain errors a route does not translate itself
STATUS_BY_EXCEPTION = [
    (ValidationError, 422),
    (TransferNotFoundError, 404),
    (AccountNotFoundError, 404),
    (InvalidTransitionError, 409),
]


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = next((code for cls, code in STATUS_BY_EXCEPTION if isinstance(exc, cls)), 400)
    logging.warning(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Sandbox Bank",
        description="Synthetic account provisioning and scheduled transfer service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added runs first: request ID is set before metrics are recorded
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(DomainException, domain_exception_handler)

    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
            database = "ok"
        except Exception as e:
            logging.error(f"Database health check failed: {e}")
            database = "unavailable"

        return {
            "status": "ok" if database == "ok" else "degraded",
            "service": settings.service_name,
            "database": database,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(scheduled_transfers.router, prefix="/v1", tags=["scheduled-transfers"])

    return app


app = create_app()
