"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes import health_router, ingredient_router
from app.core.config import settings
from app.core.cors import get_cors_middleware
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Kosmetik Labor AI Backend",
        description=(
            "Relay that describes cosmetic ingredients: send a name and/or INCI "
            "name and receive a structured JSON record (description, usage "
            "concentration, storage, incorporation phase, skin types, effect, "
            "categories) generated by Google Gemini. Rate limited per client."
        ),
        version="1.0.0",
    )

    # Middleware (CORS added last so it wraps the request-id middleware)
    app.middleware("http")(request_id_middleware)
    cors_class, cors_options = get_cors_middleware()
    app.add_middleware(cors_class, **cors_options)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(ingredient_router)

    logger.info(
        "app.configured",
        extra={
            "app_env": settings.app_env,
            "model": settings.gemini.model,
            "rate_limit_requests": settings.app.rate_limit_requests,
            "rate_limit_window_s": settings.app.rate_limit_window_seconds,
        },
    )
    if not settings.gemini.api_key:
        logger.warning(
            "app.gemini_api_key_missing",
            extra={"hint": "Set GEMINI_API_KEY; ingredient requests will fail with 500"},
        )

    return app
