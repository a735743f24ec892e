"""CORS configuration for the Kosmetik Labor frontend.

Origins come from APP_CORS_ALLOWED_ORIGINS (comma-separated). Credentials are
allowed, so wildcard origins are never used.
"""

from __future__ import annotations

from typing import Any

from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings


def get_cors_middleware() -> tuple[type[CORSMiddleware], dict[str, Any]]:
    """Return the CORS middleware class and its keyword options."""
    origins = [origin for origin in settings.app.cors_origins if origin != "*"]
    return CORSMiddleware, {
        "allow_origins": origins,
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["Content-Type", settings.log.request_id_header],
        "expose_headers": [
            settings.log.request_id_header,
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        "max_age": 600,
    }
