"""
FastAPI application entrypoint for the tenant connector.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import root_router
from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.errors import ConfigurationError, MissingParameterError
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _missing_parameter_handler(
    request: Request, exc: MissingParameterError
) -> JSONResponse:
    return JSONResponse(status_code=HTTPStatus.BAD_REQUEST, content={"error": str(exc)})


async def _configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": "OAuth not configured"},
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="LearnAlchemy Connector",
        version="0.1.0",
        description="OAuth onboarding and GraphQL access for connected course sites.",
    )
    app.add_exception_handler(MissingParameterError, _missing_parameter_handler)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.include_router(api_router, prefix="/api")
    app.include_router(root_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
