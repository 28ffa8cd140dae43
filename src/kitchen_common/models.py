"""
Shared data models for the ingredient reconciliation engine.

All models use Pydantic v2 and are frozen: the ledger and the lifecycle
helpers return updated copies instead of mutating records in place.
Field names are snake_case; camelCase aliases ("ingredientName",
"isArchived", ...) are accepted on input and produced by
``model_dump(by_alias=True)`` so records from the UI layer validate as-is.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from kitchen_common.matching import normalise_ingredient_name
from kitchen_common.units import Unit


RECORD_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class FrequencyOfUse(str, Enum):
    """How often a household uses a stocked item."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    OCCASIONAL = "occasional"
    RARELY = "rarely"
    OTHER = "other"


class ShoppingListStatus(str, Enum):
    """Lifecycle state of a shopping list."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class FailureReason(str, Enum):
    """Why an ingredient could not be matched, converted or deducted."""

    INCOMPATIBLE_UNITS = "incompatible_units"
    NOT_FOUND = "not_found"
    INSUFFICIENT_QUANTITY = "insufficient_quantity"
    INVALID_QUANTITY = "invalid_quantity"


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class InventoryMetadata(BaseModel):
    """
    Descriptive fields a caller may supply when stocking an item.

    Only the fields explicitly set are merged into an existing record.
    """

    model_config = RECORD_CONFIG

    low_stock_threshold: float | None = Field(default=None, ge=0)
    expiration_date: date | None = Field(default=None)
    frequency_of_use: FrequencyOfUse | None = Field(default=None)
    default_store_id: str | None = Field(default=None)
    brand: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    custom_tags: list[str] = Field(default_factory=list)
    category_id: str | None = Field(default=None)


class InventoryItem(BaseModel):
    """
    One stocked ingredient.

    Identity is ``id``; matching uses ``(ingredient_name, unit)``. An
    archived item always holds a quantity of zero.
    """

    model_config = RECORD_CONFIG

    id: str = Field(..., description="Opaque identifier")
    ingredient_name: str = Field(..., description="Normalised ingredient name")
    quantity: float = Field(..., ge=0, description="Amount on hand, in `unit`")
    unit: Unit = Field(default=Unit.NONE)

    # Archive state
    is_archived: bool = Field(default=False)
    original_quantity: float | None = Field(
        default=None,
        description="Last positive quantity, captured when archived",
    )
    archived_date: datetime | None = Field(default=None)

    # Timestamps owned by the ledger
    added_date: datetime
    last_updated: datetime

    # Descriptive metadata
    low_stock_threshold: float | None = Field(default=None, ge=0)
    expiration_date: date | None = Field(default=None)
    frequency_of_use: FrequencyOfUse | None = Field(default=None)
    default_store_id: str | None = Field(default=None)
    brand: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    custom_tags: list[str] = Field(default_factory=list)
    category_id: str | None = Field(default=None)

    # Usage statistics
    times_restocked: int = Field(default=0, ge=0)
    total_consumed: float = Field(default=0.0, ge=0)
    average_consumption_rate: float | None = Field(default=None)
    last_used_date: datetime | None = Field(default=None)

    @field_validator("ingredient_name")
    @classmethod
    def _normalise_name(cls, value: str) -> str:
        return normalise_ingredient_name(value)

    @model_validator(mode="after")
    def _check_archive_state(self) -> "InventoryItem":
        if self.is_archived and self.quantity != 0:
            raise ValueError("archived inventory items must have zero quantity")
        return self

    @property
    def is_active(self) -> bool:
        """Check if the item counts towards active inventory."""
        return not self.is_archived

    @property
    def is_low_stock(self) -> bool:
        """Check if stock is below the low-stock threshold."""
        if self.low_stock_threshold is None:
            return False
        return self.quantity < self.low_stock_threshold

    @property
    def is_expired(self) -> bool:
        """Check if the item is past its expiration date today."""
        return self.expired_on(date.today())

    def expired_on(self, today: date) -> bool:
        """Check if the item is past its expiration date on ``today``."""
        if self.expiration_date is None:
            return False
        return self.expiration_date < today

    def is_expiring_soon(self, days: int = 7, today: date | None = None) -> bool:
        """Check if the item expires today or within the next ``days`` days."""
        if self.expiration_date is None:
            return False
        remaining = (self.expiration_date - (today or date.today())).days
        return 0 <= remaining <= days


class ItemTemplate(BaseModel):
    """Re-stock template derived from an inventory item."""

    model_config = RECORD_CONFIG

    id: str
    ingredient_name: str
    unit: Unit
    category_id: str | None = Field(default=None)
    default_store_id: str | None = Field(default=None)
    brand: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    average_quantity: float = Field(..., gt=0, description="Typical purchase quantity")
    typical_low_stock_threshold: float | None = Field(default=None)
    frequency_of_use: FrequencyOfUse | None = Field(default=None)
    times_used: int = Field(default=0, ge=0)
    last_used_date: datetime
    created_from: Literal["manual", "archive"]
    source_item_id: str | None = Field(default=None)


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------


class RecipeIngredient(BaseModel):
    """An ingredient line of a recipe, quantified per ``default_servings``."""

    model_config = RECORD_CONFIG

    ingredient_name: str = Field(..., description="Raw ingredient text")
    quantity: float = Field(..., ge=0)
    unit: Unit = Field(default=Unit.NONE)
    is_optional: bool = Field(default=False)

    @property
    def key(self) -> str:
        """Normalised matching key."""
        return normalise_ingredient_name(self.ingredient_name)


class Recipe(BaseModel):
    """Recipe record handed to the engine by the recipe screens."""

    model_config = RECORD_CONFIG

    id: str
    name: str
    default_servings: int = Field(..., gt=0)
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    instructions: str = Field(default="")

    # Timing and source metadata
    prep_time: str | None = Field(default=None)
    cook_time: str | None = Field(default=None)
    source_name: str | None = Field(default=None)
    source_url: str | None = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = Field(default=None)

    @property
    def required_ingredients(self) -> list[RecipeIngredient]:
        """Get all non-optional ingredients."""
        return [i for i in self.ingredients if not i.is_optional]

    @property
    def optional_ingredients(self) -> list[RecipeIngredient]:
        """Get all optional ingredients."""
        return [i for i in self.ingredients if i.is_optional]


class RecipeSelection(BaseModel):
    """
    One recipe chosen for shopping-list generation.

    ``target_servings`` defaults to the recipe's own servings;
    ``selected_optional`` holds the optional ingredients to include,
    matched by normalised name.
    """

    model_config = RECORD_CONFIG

    recipe: Recipe
    target_servings: int | None = Field(default=None, gt=0)
    selected_optional: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("selected_optional", mode="before")
    @classmethod
    def _normalise_selection(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(normalise_ingredient_name(str(v)) for v in value)
        return value

    @property
    def servings(self) -> int:
        return self.target_servings or self.recipe.default_servings

    @property
    def scale_factor(self) -> float:
        return self.servings / self.recipe.default_servings

    def includes(self, ingredient: RecipeIngredient) -> bool:
        """Check whether an ingredient takes part in this selection."""
        if not ingredient.is_optional:
            return True
        return ingredient.key in self.selected_optional


# ---------------------------------------------------------------------------
# Shopping lists
# ---------------------------------------------------------------------------


class RecipeSource(BaseModel):
    """Traceability entry: which recipe asked for how much."""

    model_config = RECORD_CONFIG

    recipe_name: str
    quantity: float


class ShoppingListItem(BaseModel):
    """A single line to buy."""

    model_config = RECORD_CONFIG

    id: str
    ingredient_name: str = Field(..., description="Normalised ingredient name")
    needed_quantity: float = Field(..., ge=0)
    unit: Unit = Field(default=Unit.NONE)
    recipe_sources: list[RecipeSource] = Field(default_factory=list)
    purchased: bool = Field(default=False)
    store_id: str | None = Field(default=None)

    @field_validator("ingredient_name")
    @classmethod
    def _normalise_name(cls, value: str) -> str:
        key = normalise_ingredient_name(value)
        if not key:
            raise ValueError("shopping list items need an ingredient name")
        return key


class ShoppingList(BaseModel):
    """
    A shopping list and its lifecycle state.

    ``status`` is ``completed`` exactly when the list has items and all of
    them are purchased; ``archived`` is only reachable from ``completed``.
    """

    model_config = RECORD_CONFIG

    id: str
    name: str
    created_at: datetime
    items: list[ShoppingListItem] = Field(default_factory=list)
    notes: str | None = Field(default=None)
    status: ShoppingListStatus = Field(default=ShoppingListStatus.ACTIVE)
    completed_at: datetime | None = Field(default=None)
    archived_at: datetime | None = Field(default=None)

    @property
    def is_complete(self) -> bool:
        """Check if the list has items and all of them are purchased."""
        return bool(self.items) and all(item.purchased for item in self.items)

    @model_validator(mode="after")
    def _check_status(self) -> "ShoppingList":
        if self.status == ShoppingListStatus.ACTIVE and self.is_complete:
            raise ValueError("a list with every item purchased must be completed")
        if self.status != ShoppingListStatus.ACTIVE and not self.is_complete:
            raise ValueError(
                f"a {self.status.value} list needs items that are all purchased"
            )
        return self

    @property
    def pending_items(self) -> list[ShoppingListItem]:
        """Get items not yet purchased."""
        return [i for i in self.items if not i.purchased]


# ---------------------------------------------------------------------------
# Results returned by the engine
# ---------------------------------------------------------------------------


class DeductionResult(BaseModel):
    """Outcome of a single ledger deduction."""

    model_config = RECORD_CONFIG

    success: bool
    ingredient_name: str
    requested_quantity: float
    requested_unit: Unit
    deducted_quantity: float = Field(
        default=0.0,
        description="Amount removed, in the inventory item's unit",
    )
    item: InventoryItem | None = Field(
        default=None,
        description="The inventory record after the deduction",
    )
    reason: FailureReason | None = Field(default=None)
    archived: bool = Field(default=False)


class MissingIngredient(BaseModel):
    """An ingredient the inventory cannot (fully) cover."""

    model_config = RECORD_CONFIG

    name: str
    needed: float
    available: float
    unit: Unit
    reason: FailureReason


class PreparationCheck(BaseModel):
    """Result of validating a recipe against the inventory."""

    model_config = RECORD_CONFIG

    can_prepare: bool
    missing_ingredients: list[MissingIngredient] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DeductedIngredient(BaseModel):
    """One ingredient removed from inventory while preparing a recipe."""

    model_config = RECORD_CONFIG

    name: str
    amount_deducted: float = Field(..., description="In the recipe's unit")
    unit: Unit
    remaining_in_inventory: float = Field(..., description="In the inventory unit")
    inventory_unit: Unit


class PreparationResult(BaseModel):
    """Result of committing a recipe preparation."""

    model_config = RECORD_CONFIG

    success: bool
    deducted_ingredients: list[DeductedIngredient] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class AggregationWarning(BaseModel):
    """A recipe contribution or stock level the aggregator could not use."""

    model_config = RECORD_CONFIG

    ingredient_name: str
    recipe_name: str | None = Field(default=None)
    quantity: float
    unit: Unit
    target_unit: Unit
    reason: FailureReason = Field(default=FailureReason.INCOMPATIBLE_UNITS)
    message: str


class AggregationResult(BaseModel):
    """Items still to buy for a set of recipes, plus diagnostics."""

    model_config = RECORD_CONFIG

    items: list[ShoppingListItem] = Field(default_factory=list)
    warnings: list[AggregationWarning] = Field(default_factory=list)

    @property
    def nothing_to_buy(self) -> bool:
        """True when inventory already covers every selected recipe."""
        return not self.items


Readiness = Literal["ready", "mostly-ready", "partially-ready", "not-ready"]


class RecipeInventoryAnalysis(BaseModel):
    """How well the current inventory covers a recipe."""

    model_config = RECORD_CONFIG

    recipe_id: str
    total_ingredients: int = Field(..., ge=0)
    available_ingredients: int = Field(..., ge=0)
    missing_ingredients: list[MissingIngredient] = Field(default_factory=list)
    completion_percentage: int = Field(..., ge=0, le=100)
    max_possible_servings: float = Field(..., ge=0)
    has_all_ingredients: bool

    @property
    def readiness(self) -> Readiness:
        """Coarse readiness label for recipe cards."""
        if self.completion_percentage == 100:
            return "ready"
        if self.completion_percentage >= 75:
            return "mostly-ready"
        if self.completion_percentage >= 50:
            return "partially-ready"
        return "not-ready"

    @property
    def is_unbounded(self) -> bool:
        """True when the recipe has no required ingredients at all."""
        return math.isinf(self.max_possible_servings)
