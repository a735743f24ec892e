"""Pydantic schemas for ingredient enrichment requests and responses.

The ingredient record keeps the German field names expected by the Kosmetik
Labor frontend on the wire; attributes use English names via aliases.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

STORAGE_OPTIONS: tuple[str, ...] = (
    "Kühl & trocken",
    "Kühlschrank",
    "Raumtemperatur",
    "Dunkel & kühl",
    "Vor Licht schützen",
    "Luftdicht verschlossen",
)

PHASE_OPTIONS: tuple[str, ...] = (
    "Fettphase",
    "Wasserphase",
    "Wirkstoffphase",
    "Kühlphase",
    "Kaltphase",
    "Beliebig",
)

SKIN_TYPE_OPTIONS: tuple[str, ...] = (
    "Alle Hauttypen",
    "Normale Haut",
    "Trockene Haut",
    "Fettige Haut",
    "Mischhaut",
    "Sensible Haut",
    "Reife Haut",
    "Problemhaut",
)

CATEGORY_OPTIONS: tuple[str, ...] = (
    "Basis",
    "Öl",
    "Butter",
    "Wachs",
    "Emulgator",
    "Wirkstoff",
    "Konservierung",
    "Duft",
    "Farbstoff",
    "Sonstiges",
)


class IngredientQuery(BaseModel):
    """Lookup keys for an ingredient; at least one must be non-empty."""

    name: str | None = Field(
        default=None,
        description="Trade or common name of the ingredient (e.g., 'Jojobaöl').",
        examples=["Jojobaöl"],
    )
    inci: str | None = Field(
        default=None,
        description="INCI name of the ingredient.",
        examples=["Simmondsia Chinensis Seed Oil"],
    )

    @field_validator("name", "inci")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.inci

    @property
    def label(self) -> str:
        """Best human-readable identifier for logs."""
        return self.name or self.inci or ""


class IngredientRecord(BaseModel):
    """Structured description of a cosmetic ingredient.

    Enum-valued fields are typed as plain strings: the closed label sets are
    requested from the model in the prompt and audited after parsing, but not
    enforced.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    description: str | None = Field(
        default=None,
        alias="beschreibung",
        description="Detailed description of the ingredient.",
    )
    usage_concentration: str | None = Field(
        default=None,
        alias="einsatzkonzentration",
        description="Typical usage concentration (e.g., '1-5%').",
    )
    storage: str | None = Field(
        default=None,
        alias="lagerung",
        description=f"One of: {', '.join(STORAGE_OPTIONS)}.",
    )
    incorporation_phase: str | None = Field(
        default=None,
        alias="einarbeitungsphase",
        description=f"One of: {', '.join(PHASE_OPTIONS)}.",
    )
    skin_types: list[str] = Field(
        default_factory=list,
        alias="hauttyp",
        description=f"Subset of: {', '.join(SKIN_TYPE_OPTIONS)}.",
    )
    effect: str | None = Field(
        default=None,
        alias="wirkung",
        description="Effect of the ingredient on the skin.",
    )
    categories: list[str] = Field(
        default_factory=list,
        alias="kategorie",
        description=f"Subset of: {', '.join(CATEGORY_OPTIONS)}.",
    )


class EnrichmentResponse(BaseModel):
    """Successful enrichment envelope."""

    success: Literal[True] = True
    # Returned verbatim; the schema documents the expected record keys
    data: dict[str, Any] = Field(
        ...,
        description="Ingredient record as parsed from the model reply.",
        json_schema_extra={
            "properties": IngredientRecord.model_json_schema(by_alias=True)["properties"],
        },
    )
    timestamp: str = Field(
        ...,
        description="ISO-8601 UTC instant the enrichment completed.",
    )


class ErrorResponse(BaseModel):
    """Failure envelope shared by every error path."""

    success: Literal[False] = False
    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str
