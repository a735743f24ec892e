from fastapi import APIRouter, Body, Depends

from app.adapters.llm.factory import create_llm_client
from app.core.rate_limit import enforce_rate_limit
from app.schemas.ingredient import EnrichmentResponse, ErrorResponse, IngredientQuery
from app.services.ingredient_service import IngredientService

router = APIRouter(tags=["Ingredients"])

_ingredient_service = IngredientService(llm_factory=create_llm_client)


def get_ingredient_service() -> IngredientService:
    """Dependency returning the process-wide enrichment service."""
    return _ingredient_service


@router.post(
    "/api/ai-ingredient",
    response_model=EnrichmentResponse,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        400: {"model": ErrorResponse, "description": "Neither name nor INCI given"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Configuration or AI service failure"},
    },
)
async def enrich_ingredient(
    query: IngredientQuery | None = Body(default=None),
    service: IngredientService = Depends(get_ingredient_service),
) -> EnrichmentResponse:
    """Describe a cosmetic ingredient with the help of the AI model.

    Accepts a name and/or INCI name and returns a structured record with
    description, usage concentration, storage, incorporation phase, suitable
    skin types, effect and categories.

    Errors are rendered by the global exception handlers as
    ``{"success": false, "error": ...}``.
    """
    return await service.enrich(query or IngredientQuery())
