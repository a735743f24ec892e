"""Ingredient enrichment service orchestrating validation, the LLM call and parsing.

This service turns an ingredient name/INCI pair into a structured record:
- Input validation (at least one lookup key)
- Prompt construction with the closed label sets
- One upstream generation call (no retries)
- Code-fence cleaning and JSON parsing of the model reply
- Auditing of enum-valued fields against the label sets (logged only)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError, UpstreamAppError, ValidationAppError
from app.schemas.ingredient import (
    CATEGORY_OPTIONS,
    PHASE_OPTIONS,
    SKIN_TYPE_OPTIONS,
    STORAGE_OPTIONS,
    EnrichmentResponse,
    IngredientQuery,
    IngredientRecord,
)
from app.utils.text_cleaning import strip_code_fences, truncate

logger = logging.getLogger(__name__)

UPSTREAM_UNAVAILABLE = "AI service temporarily unavailable"

# Longest slice of an unparsable model reply written to the log
MAX_LOGGED_OUTPUT_CHARS = 500

# IngredientRecord attributes restricted to a closed label set
_ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "storage": STORAGE_OPTIONS,
    "incorporation_phase": PHASE_OPTIONS,
    "skin_types": SKIN_TYPE_OPTIONS,
    "categories": CATEGORY_OPTIONS,
}


def build_prompt(name: str | None, inci: str | None) -> str:
    """Build the ingredient analysis prompt.

    Lists the seven record keys with their allowed labels and asks for a bare
    JSON reply. Deterministic for a given name/INCI pair.

    Args:
        name: Ingredient name, if known.
        inci: INCI name, if known.

    Returns:
        Formatted prompt string for the LLM.
    """
    return f"""Du bist ein Experte für kosmetische Inhaltsstoffe. Analysiere die folgende Zutat und gib die Informationen im JSON-Format zurück:

Zutat: {name or ""}
INCI: {inci or ""}

Bitte gib folgende Informationen zurück:
{{
  "beschreibung": "Detaillierte Beschreibung der Zutat",
  "einsatzkonzentration": "Typische Konzentration (z.B. 1-5%)",
  "lagerung": "Eine der Optionen: {', '.join(STORAGE_OPTIONS)}",
  "einarbeitungsphase": "Eine der Optionen: {', '.join(PHASE_OPTIONS)}",
  "hauttyp": ["Array mit passenden Hauttypen: {', '.join(SKIN_TYPE_OPTIONS)}"],
  "wirkung": "Beschreibung der Wirkung auf die Haut",
  "kategorie": ["Array mit passenden Kategorien: {', '.join(CATEGORY_OPTIONS)}"]
}}

Antworte nur mit dem JSON, ohne zusätzlichen Text."""


def parse_model_output(text: str) -> dict[str, Any]:
    """Clean a model reply and parse it as a JSON object.

    Raises:
        LLMAppError: If the cleaned text is not a JSON object.
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error(
            "ingredient.model_output_unparsable",
            extra={
                "parse_error": str(exc),
                "model_output": truncate(cleaned, MAX_LOGGED_OUTPUT_CHARS),
            },
        )
        raise LLMAppError(
            code="llm_invalid_json",
            message="Invalid JSON response from AI",
        ) from exc

    if not isinstance(parsed, dict):
        logger.error(
            "ingredient.model_output_not_object",
            extra={"json_type": type(parsed).__name__},
        )
        raise LLMAppError(
            code="llm_invalid_json",
            message="AI response is not a JSON object",
        )
    return parsed


def find_enum_violations(data: dict[str, Any]) -> list[str]:
    """List enum-valued fields whose values fall outside the label sets.

    Returns:
        Human-readable violations such as ``"lagerung: 'Gefroren'"``.
    """
    violations: list[str] = []
    for attr, options in _ENUM_FIELDS.items():
        key = IngredientRecord.model_fields[attr].alias
        value = data.get(key)
        if value is None:
            continue
        values = value if isinstance(value, list) else [value]
        violations.extend(f"{key}: {item!r}" for item in values if item not in options)
    return violations


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(instant: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return instant.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class IngredientService:
    """Service enriching ingredient queries through a text-generation model.

    Attributes:
        llm_factory: Callable returning a configured LLM client. Invoked per
            request after input validation, so configuration problems surface
            as request failures.
        clock: Source of the completion timestamp.
    """

    def __init__(
        self,
        llm_factory: Callable[[], AbstractLLMClient],
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.llm_factory = llm_factory
        self.clock = clock

    def _validate(self, query: IngredientQuery) -> None:
        if query.is_empty:
            raise ValidationAppError(
                code="ingredient_query_empty",
                message="name or INCI required",
            )

    async def _generate(self, llm: AbstractLLMClient, query: IngredientQuery) -> dict[str, Any]:
        prompt = build_prompt(query.name, query.inci)
        try:
            text = await llm.generate_text(prompt)
            return parse_model_output(text)
        except LLMAppError as exc:
            raise UpstreamAppError(
                code=exc.code,
                message=UPSTREAM_UNAVAILABLE,
                details=exc.message,
            ) from exc

    async def enrich(self, query: IngredientQuery) -> EnrichmentResponse:
        """Enrich an ingredient query into a structured record.

        Args:
            query: Name and/or INCI of the ingredient.

        Returns:
            EnrichmentResponse with the parsed record under ``data``.

        Raises:
            ValidationAppError: If neither name nor INCI is given.
            ConfigurationAppError: If the LLM client cannot be configured.
            UpstreamAppError: If the model call fails or its reply is unusable.
        """
        # Step 1: Validate inputs
        self._validate(query)

        # Step 2: Resolve the client (raises when configuration is missing)
        llm = self.llm_factory()

        # Step 3: Call the model and parse its reply
        data = await self._generate(llm, query)

        # Step 4: Audit closed label sets without altering the record
        violations = find_enum_violations(data)
        if violations:
            logger.warning(
                "ingredient.enum_violations",
                extra={"ingredient": query.label, "violations": violations},
            )

        logger.info(
            "ingredient.enriched",
            extra={"ingredient_name": query.name, "ingredient_inci": query.inci},
        )

        return EnrichmentResponse(data=data, timestamp=format_timestamp(self.clock()))
