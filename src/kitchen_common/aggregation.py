"""
Shopping-list aggregation across several recipes.

The pipeline is a left fold over a mapping keyed by normalised ingredient
name: scale each recipe line, convert it into the unit fixed by the first
contributor, then subtract what the inventory already holds.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from kitchen_common.config import KitchenSettings, get_settings
from kitchen_common.ledger import new_id
from kitchen_common.models import (
    AggregationResult,
    AggregationWarning,
    FailureReason,
    Recipe,
    RecipeSelection,
    RecipeSource,
    ShoppingListItem,
)
from kitchen_common.protocols import InventoryReader
from kitchen_common.units import Unit, convert_unit


logger = logging.getLogger(__name__)


@dataclass
class _Need:
    """Running total for one aggregation key."""

    unit: Unit
    total: float = 0.0
    sources: list[RecipeSource] = field(default_factory=list)
    store_id: str | None = None


def _store_hint(inventory: InventoryReader, key: str) -> str | None:
    """First default store among the active records for ``key``."""
    for item in inventory.active_items():
        if item.ingredient_name == key and item.default_store_id:
            return item.default_store_id
    return None


def aggregate_shopping_list(
    selections: Iterable[RecipeSelection],
    inventory: InventoryReader,
    *,
    settings: KitchenSettings | None = None,
    id_factory: Callable[[], str] = new_id,
) -> AggregationResult:
    """
    Compute what still has to be bought for a set of recipes.

    Args:
        selections: Recipes with serving overrides and chosen optional
            ingredients
        inventory: Read access to stock (a ledger or a snapshot)
        settings: Epsilon and rounding; defaults to ``get_settings()``
        id_factory: Generates ShoppingListItem ids

    Returns:
        AggregationResult with the items to buy (possibly none) and a
        warning for every contribution or stock level that could not be
        converted into the aggregation unit
    """
    settings = settings or get_settings()
    needs: dict[str, _Need] = {}
    warnings: list[AggregationWarning] = []

    for selection in selections:
        recipe = selection.recipe
        factor = selection.scale_factor

        for ingredient in recipe.ingredients:
            if not selection.includes(ingredient):
                continue

            key = ingredient.key
            if not key:
                logger.debug("Skipping unnamed ingredient in %s", recipe.name)
                continue

            scaled = ingredient.quantity * factor
            need = needs.get(key)
            if need is None:
                need = needs[key] = _Need(
                    unit=ingredient.unit,
                    store_id=_store_hint(inventory, key),
                )

            converted = convert_unit(scaled, ingredient.unit, need.unit)
            if converted is not None:
                need.total += converted
            elif need.total == 0:
                # Nothing summed yet, so the new unit becomes the baseline
                need.unit = ingredient.unit
                need.total = scaled
            else:
                message = (
                    f"{recipe.name}: {scaled:g} {ingredient.unit.value} of {key} "
                    f"cannot be added to {need.unit.value}; left out of the total"
                )
                logger.warning(message, extra={"ingredient": key, "recipe": recipe.name})
                warnings.append(
                    AggregationWarning(
                        ingredient_name=key,
                        recipe_name=recipe.name,
                        quantity=scaled,
                        unit=ingredient.unit,
                        target_unit=need.unit,
                        reason=FailureReason.INCOMPATIBLE_UNITS,
                        message=message,
                    )
                )

            need.sources.append(RecipeSource(recipe_name=recipe.name, quantity=scaled))

    items: list[ShoppingListItem] = []
    for key, need in needs.items():
        on_hand = 0.0
        stock = inventory.lookup_active(key, need.unit)
        if stock is not None:
            converted = convert_unit(stock.quantity, stock.unit, need.unit)
            if converted is None:
                message = (
                    f"{stock.quantity:g} {stock.unit.value} of {key} in stock "
                    f"cannot be compared with {need.unit.value}; buying the full amount"
                )
                logger.warning(message, extra={"ingredient": key})
                warnings.append(
                    AggregationWarning(
                        ingredient_name=key,
                        quantity=stock.quantity,
                        unit=stock.unit,
                        target_unit=need.unit,
                        reason=FailureReason.INCOMPATIBLE_UNITS,
                        message=message,
                    )
                )
            else:
                on_hand = converted

        needed = round(need.total - on_hand, settings.quantity_decimals)
        if needed <= settings.purchase_epsilon:
            logger.debug("%s covered by inventory", key)
            continue

        items.append(
            ShoppingListItem(
                id=id_factory(),
                ingredient_name=key,
                needed_quantity=needed,
                unit=need.unit,
                recipe_sources=need.sources,
                store_id=need.store_id,
            )
        )

    logger.info(
        "Aggregated %d ingredient(s) into %d item(s) to buy", len(needs), len(items)
    )
    return AggregationResult(items=items, warnings=warnings)


class ShoppingListAggregator:
    """
    Builds shopping lists from recipes against an inventory.

    Thin stateful wrapper around ``aggregate_shopping_list``.
    """

    def __init__(
        self,
        inventory: InventoryReader,
        settings: KitchenSettings | None = None,
    ):
        self._inventory = inventory
        self._settings = settings or get_settings()

    def build(self, selections: Iterable[RecipeSelection]) -> AggregationResult:
        return aggregate_shopping_list(
            selections,
            self._inventory,
            settings=self._settings,
        )

    def build_for_recipes(
        self,
        recipes: Iterable[Recipe],
        servings: Mapping[str, int] | None = None,
        optional: Mapping[str, Iterable[str]] | None = None,
    ) -> AggregationResult:
        """
        Aggregate recipes using per-recipe overrides keyed by recipe id.

        Args:
            recipes: Selected recipes
            servings: Serving overrides by recipe id
            optional: Chosen optional ingredient names by recipe id
        """
        servings = servings or {}
        optional = optional or {}
        selections = [
            RecipeSelection(
                recipe=recipe,
                target_servings=servings.get(recipe.id),
                selected_optional=frozenset(optional.get(recipe.id, ())),
            )
            for recipe in recipes
        ]
        return self.build(selections)
