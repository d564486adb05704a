"""Pydantic schemas for the Cookbook API.

Request/response models for:
- Ingredients
- Recipes (nested ingredient lines and steps, delta updates)
- Suggestions (including votes)
- Search and wipe

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Annotated, ClassVar, Literal, Optional

from pydantic import (
    AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel


Unit = Literal[
    "g", "kg", "mg", "ml", "l",
    "tsp", "tbsp", "cup", "fl_oz", "oz", "lb",
    "piece", "pinch", "dash", "clove", "slice", "can", "bunch",
    "to_taste", "free_text",
]
SuggestionCategory = Literal["feature", "bug", "improvement", "other"]
SuggestionPriority = Literal["low", "medium", "high"]
SuggestionStatus = Literal["submitted", "under-review", "accepted", "rejected", "implemented"]

_http_url = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    """Accept any http(s) URL but keep the caller's text as sent."""
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        raise ValueError("must be a valid http(s) URL") from None
    return value


SourceUrl = Annotated[str, AfterValidator(_check_http_url)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PartialModel(CamelModel):
    """Request whose optional fields only apply when present in the body.

    ``model_fields_set`` tells "sent" apart from "omitted", so an explicit
    ``[]`` is honoured. Sending ``null`` for a field listed in
    ``NON_NULLABLE`` is rejected.
    """

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        nulls = sorted(
            to_camel(name)
            for name in self.model_fields_set
            if name in self.NON_NULLABLE and getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self

    def provided(self, *names: str) -> list[str]:
        """Names from ``names`` that were present in the request body."""
        return [n for n in names if n in self.model_fields_set]


# --- Shared ---

class IdRequest(CamelModel):
    id: str = Field(..., min_length=1)


class MessageOut(CamelModel):
    message: str


class DocumentOut(CamelModel):
    """Audit envelope shared by every stored document."""
    id: str
    created_at: datetime
    updated_at: datetime
    created_by_group_id: str
    updated_by_group_id: str
    is_archived: bool
    variant_of: Optional[str] = None
    can_be_edited_by_you: Optional[bool] = None


# --- Ingredient ---

class NutritionalInfo(CamelModel):
    """Macros per 100 g."""
    calories: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    carbohydrates: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    sugar: Optional[float] = Field(None, ge=0)
    sodium: Optional[float] = Field(None, ge=0)


class UnitConversion(CamelModel):
    from_unit: Unit = Field(..., alias="from")
    to_unit: Unit = Field(..., alias="to")
    factor: float = Field(..., gt=0)


class IngredientCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    aliases: list[str] = []
    categories: list[str] = []
    allergens: list[str] = []
    nutrition: Optional[NutritionalInfo] = None
    metadata: Optional[dict[str, str]] = None
    supported_units: list[Unit] = []
    unit_conversions: list[UnitConversion] = []


class IngredientUpdate(PartialModel):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({
        "name", "aliases", "categories", "allergens", "supported_units", "unit_conversions",
    })
    FIELDS: ClassVar[tuple[str, ...]] = (
        "name", "aliases", "categories", "allergens", "nutrition",
        "metadata", "supported_units", "unit_conversions",
    )

    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    aliases: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    allergens: Optional[list[str]] = None
    nutrition: Optional[NutritionalInfo] = None
    metadata: Optional[dict[str, str]] = None
    supported_units: Optional[list[Unit]] = None
    unit_conversions: Optional[list[UnitConversion]] = None


class IngredientDuplicate(IngredientUpdate):
    """Same shape as an update: every field present overrides the original."""


class IngredientListRequest(CamelModel):
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class IngredientOut(DocumentOut):
    slug: str
    name: str
    aliases: list[str] = []
    categories: list[str] = []
    allergens: list[str] = []
    nutrition: Optional[NutritionalInfo] = None
    metadata: Optional[dict[str, str]] = Field(
        None,
        validation_alias=AliasChoices("metadata_", "metadata"),
        serialization_alias="metadata",
    )
    supported_units: list[str] = []
    unit_conversions: list[UnitConversion] = []


class IngredientPage(CamelModel):
    items: list[IngredientOut]
    has_more: bool


# --- Recipe ---

class RecipeIngredientLine(CamelModel):
    ingredient_id: str = Field(..., min_length=1)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Unit
    # Authoritative amount when unit == "free_text", e.g. "a handful"
    quantity_text: Optional[str] = None
    note: Optional[str] = None

    @model_validator(mode="after")
    def _free_text_needs_text(self):
        if self.unit == "free_text" and not self.quantity_text:
            raise ValueError("quantityText is required when unit is 'free_text'")
        return self


class RecipeStep(CamelModel):
    text: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    equipment: Optional[list[str]] = None


class RecipeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str
    servings: int = Field(..., ge=1)
    ingredients: list[RecipeIngredientLine]
    steps: list[RecipeStep]
    tags: list[str] = []
    categories: list[str] = []
    source_url: Optional[SourceUrl] = None
    generate_image: bool = False


class RecipeDuplicate(PartialModel):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({
        "name", "description", "servings", "ingredients", "steps", "tags", "categories",
    })
    FIELDS: ClassVar[tuple[str, ...]] = (
        "name", "description", "servings", "ingredients", "steps",
        "tags", "categories", "source_url",
    )

    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1)
    ingredients: Optional[list[RecipeIngredientLine]] = None
    steps: Optional[list[RecipeStep]] = None
    tags: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    source_url: Optional[SourceUrl] = None


class RecipeUpdate(RecipeDuplicate):
    NON_NULLABLE: ClassVar[frozenset[str]] = RecipeDuplicate.NON_NULLABLE | frozenset({
        "add_tags", "remove_tags", "add_categories", "remove_categories",
        "add_ingredients", "remove_ingredient_ids", "add_steps", "remove_step_indexes",
        "generate_image",
    })

    # Array deltas; mutually exclusive with the matching full field
    add_tags: Optional[list[str]] = None
    remove_tags: Optional[list[str]] = None
    add_categories: Optional[list[str]] = None
    remove_categories: Optional[list[str]] = None
    add_ingredients: Optional[list[RecipeIngredientLine]] = None
    remove_ingredient_ids: Optional[list[str]] = None
    add_steps: Optional[list[RecipeStep]] = None
    remove_step_indexes: Optional[list[int]] = None

    generate_image: bool = False

    @model_validator(mode="after")
    def _non_negative_indexes(self):
        if any(i < 0 for i in self.remove_step_indexes or []):
            raise ValueError("removeStepIndexes must be non-negative")
        return self


class RecipeListRequest(CamelModel):
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class RecipeOut(DocumentOut):
    slug: str
    name: str
    description: str
    servings: int
    ingredients: list[RecipeIngredientLine] = []
    steps: list[RecipeStep] = []
    tags: list[str] = []
    categories: list[str] = []
    source_url: Optional[str] = None
    image_url: Optional[str] = None


class RecipePage(CamelModel):
    items: list[RecipeOut]
    has_more: bool


# --- Suggestion ---

class SuggestionCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: SuggestionCategory = "feature"
    priority: SuggestionPriority = "medium"
    related_recipe_id: Optional[str] = None


class SuggestionDuplicate(PartialModel):
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({"title", "description", "category", "priority"})
    FIELDS: ClassVar[tuple[str, ...]] = ("title", "description", "category", "priority", "related_recipe_id")

    id: str = Field(..., min_length=1)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[SuggestionCategory] = None
    priority: Optional[SuggestionPriority] = None
    related_recipe_id: Optional[str] = None


class SuggestionUpdate(SuggestionDuplicate):
    NON_NULLABLE: ClassVar[frozenset[str]] = SuggestionDuplicate.NON_NULLABLE | frozenset({"status"})
    FIELDS: ClassVar[tuple[str, ...]] = SuggestionDuplicate.FIELDS + ("status",)

    status: Optional[SuggestionStatus] = None


class SuggestionListRequest(CamelModel):
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)
    status: Optional[SuggestionStatus] = None


class SuggestionOut(DocumentOut):
    title: str
    description: str
    category: str
    priority: str
    status: str
    votes: int
    voted_by_groups: list[str] = []
    related_recipe_id: Optional[str] = None


class SuggestionVoteOut(SuggestionOut):
    voted: bool  # True if the caller's vote is now counted


class SuggestionPage(CamelModel):
    items: list[SuggestionOut]
    has_more: bool


# --- Search ---

class KeywordSearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    ingredients: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    limit: int = Field(20, ge=1, le=50)


class KeywordSearchOut(CamelModel):
    items: list[RecipeOut]
    total_found: int
    query: str


class SemanticSearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    top_k: int = Field(8, ge=1, le=50)


class SemanticSearchOut(CamelModel):
    items: list[RecipeOut]
    query: str
    top_k: int


# --- Wipe ---

class WipeRequest(CamelModel):
    confirm: bool = False


class WipeOut(CamelModel):
    message: str
    archived_counts: dict[str, int]
    total_archived: int
