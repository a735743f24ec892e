from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.ingredient import router as ingredient_router

__all__ = ["health_router", "ingredient_router"]
