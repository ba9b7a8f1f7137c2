"""
FastAPI application entrypoint for the care administration API.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careadmin.api.records import router as records_router
from careadmin.api.routes import health_router
from careadmin.api.routes import router as api_router
from careadmin.core.config import get_settings
from careadmin.core.logging import configure_logging
from careadmin.core.middleware import RequestIdMiddleware, handle_unhandled_exception

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    missing = settings.azure_ad.missing_required()
    if missing:
        logger.warning(
            "Azure AD settings missing (%s); authorize URLs and token calls will be malformed",
            ", ".join(missing),
        )

    app = FastAPI(
        title="Care Administration API",
        version="0.1.0",
        description="Patient, contact and ancillary records with an Azure AD OAuth proxy.",
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, handle_unhandled_exception)
    app.include_router(health_router)
    app.include_router(api_router, prefix="/api")
    app.include_router(records_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
