"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from telco_gateway.calls.router import router as calls_router
from telco_gateway.config import get_settings
from telco_gateway.messaging.router import router as sms_router
from telco_gateway.shared.database import get_database_manager
from telco_gateway.shared.exceptions import GatewayError
from telco_gateway.shared.logging import get_logger, setup_logging
from telco_gateway.telephony.factory import close_providers
from telco_gateway.telephony.interface import (
    AllProvidersFailedError,
    ConfigurationError,
    ProviderError,
)
from telco_gateway.webhooks.router import router as webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()

    logger.info("Application starting", extra={"env": settings.app_env})

    yield

    logger.info("Shutting down application")
    close_providers()
    await get_database_manager().close()
    logger.info("Application shutdown complete")


def _error_body(exc: GatewayError) -> dict[str, dict[str, str]]:
    return {"detail": {"code": exc.code, "message": exc.message}}


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Telco Gateway API",
        description="SMS and bridged voice calls over interchangeable carriers",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Map domain exceptions to HTTP responses
    @app.exception_handler(ConfigurationError)
    async def _misconfigured(_: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(
            "Carrier misconfiguration",
            extra={"provider": exc.provider, "error_code": exc.code, "error": exc.message},
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(ProviderError)
    async def _provider_failed(_: Request, exc: ProviderError) -> JSONResponse:
        logger.warning(
            "Carrier request failed",
            extra={"provider": exc.provider, "error_code": exc.code, "error": exc.message},
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(AllProvidersFailedError)
    async def _all_failed(_: Request, exc: AllProvidersFailedError) -> JSONResponse:
        logger.error(
            "All SMS providers failed",
            extra={"providers": [f.provider for f in exc.failures]},
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(GatewayError)
    async def _gateway_error(_: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": errors,
                }
            },
        )

    app.include_router(sms_router)
    app.include_router(calls_router)
    app.include_router(webhooks_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
