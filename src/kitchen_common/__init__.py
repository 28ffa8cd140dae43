"""
kitchen-common: Ingredient reconciliation engine for household kitchens.

Provides unit conversion, ingredient name normalisation, the inventory
ledger, shopping-list aggregation and recipe preparation planning shared
by the recipe, inventory and shopping screens.
"""

from kitchen_common.models import (
    FrequencyOfUse,
    ShoppingListStatus,
    FailureReason,
    InventoryMetadata,
    InventoryItem,
    ItemTemplate,
    RecipeIngredient,
    Recipe,
    RecipeSelection,
    RecipeSource,
    ShoppingListItem,
    ShoppingList,
    DeductionResult,
    MissingIngredient,
    PreparationCheck,
    DeductedIngredient,
    PreparationResult,
    AggregationWarning,
    AggregationResult,
    RecipeInventoryAnalysis,
)
from kitchen_common.units import (
    Unit,
    UnitCategory,
    parse_unit,
    are_compatible,
    convert_unit,
    convert_unit_strict,
    is_discrete_unit,
)
from kitchen_common.matching import (
    normalise_ingredient_name,
    names_match,
    match_string,
    best_match,
    suggest_names,
)
from kitchen_common.ledger import InventoryLedger, InventorySnapshot
from kitchen_common.protocols import InventoryReader
from kitchen_common.aggregation import aggregate_shopping_list, ShoppingListAggregator
from kitchen_common.planner import PreparationPlanner
from kitchen_common.restock import suggest_restock_items, merge_shopping_items
from kitchen_common.lists import (
    new_shopping_list,
    add_item,
    set_item_purchased,
    purchase_all,
    archive_shopping_list,
    unarchive_shopping_list,
)
from kitchen_common.scaling import (
    ScaledIngredient,
    scaling_factor,
    scale_ingredients,
    format_quantity,
    to_mixed_number,
    validate_serving_size,
)
from kitchen_common.config import KitchenSettings, get_settings, load_settings
from kitchen_common.logging_utils import configure_logging
from kitchen_common.exceptions import (
    KitchenCommonError,
    UnitConversionError,
    ValidationError,
    ConfigurationError,
    NotFoundError,
    ShoppingListStateError,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "FrequencyOfUse",
    "ShoppingListStatus",
    "FailureReason",
    "InventoryMetadata",
    "InventoryItem",
    "ItemTemplate",
    "RecipeIngredient",
    "Recipe",
    "RecipeSelection",
    "RecipeSource",
    "ShoppingListItem",
    "ShoppingList",
    "DeductionResult",
    "MissingIngredient",
    "PreparationCheck",
    "DeductedIngredient",
    "PreparationResult",
    "AggregationWarning",
    "AggregationResult",
    "RecipeInventoryAnalysis",
    # Units
    "Unit",
    "UnitCategory",
    "parse_unit",
    "are_compatible",
    "convert_unit",
    "convert_unit_strict",
    "is_discrete_unit",
    # Matching
    "normalise_ingredient_name",
    "names_match",
    "match_string",
    "best_match",
    "suggest_names",
    # Inventory
    "InventoryLedger",
    "InventorySnapshot",
    "InventoryReader",
    # Shopping lists
    "aggregate_shopping_list",
    "ShoppingListAggregator",
    "suggest_restock_items",
    "merge_shopping_items",
    "new_shopping_list",
    "add_item",
    "set_item_purchased",
    "purchase_all",
    "archive_shopping_list",
    "unarchive_shopping_list",
    # Preparation
    "PreparationPlanner",
    # Scaling
    "ScaledIngredient",
    "scaling_factor",
    "scale_ingredients",
    "format_quantity",
    "to_mixed_number",
    "validate_serving_size",
    # Configuration
    "KitchenSettings",
    "get_settings",
    "load_settings",
    "configure_logging",
    # Exceptions
    "KitchenCommonError",
    "UnitConversionError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "ShoppingListStateError",
]
