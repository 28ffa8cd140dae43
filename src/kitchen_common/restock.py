"""
Inventory-driven restock suggestions.

Suggestions do not depend on any recipe. Each inventory record produces at
most one suggestion, checked in this order: low stock, expiring soon,
frequently used and running low.
"""

import logging
from datetime import date
from typing import Callable, Iterable

from kitchen_common.config import KitchenSettings, get_settings
from kitchen_common.ledger import new_id
from kitchen_common.models import (
    FrequencyOfUse,
    InventoryItem,
    RecipeSource,
    ShoppingListItem,
)
from kitchen_common.protocols import InventoryReader
from kitchen_common.units import Unit


logger = logging.getLogger(__name__)

LOW_STOCK_SOURCE = "Low Stock Alert"
EXPIRING_SOURCE = "Expiring Soon"
FREQUENT_SOURCE = "Frequently Used"

FREQUENT_USES = frozenset({FrequencyOfUse.DAILY, FrequencyOfUse.WEEKLY})
FREQUENT_HEADROOM = 1.5
LOW_STOCK_MINIMUM_SHARE = 0.5


def _suggestion(
    item: InventoryItem,
    quantity: float,
    source: str,
    id_factory: Callable[[], str],
) -> ShoppingListItem:
    return ShoppingListItem(
        id=id_factory(),
        ingredient_name=item.ingredient_name,
        needed_quantity=quantity,
        unit=item.unit,
        recipe_sources=[RecipeSource(recipe_name=source, quantity=quantity)],
        store_id=item.default_store_id,
    )


def _restock_quantity(
    item: InventoryItem,
    today: date,
    settings: KitchenSettings,
) -> tuple[float, str] | None:
    """Quantity and source label for one record, or None if it needs nothing."""
    if item.expired_on(today):
        return None

    threshold = item.low_stock_threshold
    if threshold and item.quantity < threshold:
        return (
            max(threshold - item.quantity, threshold * LOW_STOCK_MINIMUM_SHARE),
            LOW_STOCK_SOURCE,
        )

    if item.is_active and item.is_expiring_soon(settings.expiring_soon_days, today):
        return max(item.quantity, threshold or item.quantity), EXPIRING_SOURCE

    if item.frequency_of_use in FREQUENT_USES:
        target = (threshold or settings.frequent_use_floor) * FREQUENT_HEADROOM
        if item.quantity < target:
            return target - item.quantity, FREQUENT_SOURCE

    return None


def suggest_restock_items(
    inventory: InventoryReader,
    today: date | None = None,
    *,
    settings: KitchenSettings | None = None,
    id_factory: Callable[[], str] = new_id,
) -> list[ShoppingListItem]:
    """
    Suggest items to buy based on stock levels, expiry and usage.

    Archived records take part too: a zero-stock item with a low-stock
    threshold or a daily/weekly frequency is a prime restock candidate.

    Args:
        inventory: Ledger or snapshot to inspect
        today: Reference date for expiry checks; defaults to today
        settings: Expiry window, default threshold and rounding
        id_factory: Generates ShoppingListItem ids

    Returns:
        Suggested items, one per inventory record at most
    """
    settings = settings or get_settings()
    today = today or date.today()

    suggestions: list[ShoppingListItem] = []
    for item in [*inventory.active_items(), *inventory.archived_items()]:
        found = _restock_quantity(item, today, settings)
        if found is None:
            continue

        quantity, source = found
        quantity = round(quantity, settings.quantity_decimals)
        if quantity <= settings.purchase_epsilon:
            continue

        logger.debug("Suggesting %s %s %s (%s)", quantity, item.unit.value, item.ingredient_name, source)
        suggestions.append(_suggestion(item, quantity, source, id_factory))

    return suggestions


def merge_shopping_items(items: Iterable[ShoppingListItem]) -> list[ShoppingListItem]:
    """
    Merge entries for the same ingredient and unit.

    Quantities add up and recipe sources are concatenated; the first entry
    keeps its id, and the first known store wins.
    """
    merged: dict[tuple[str, Unit], ShoppingListItem] = {}
    for item in items:
        slot = (item.ingredient_name, item.unit)
        current = merged.get(slot)
        if current is None:
            merged[slot] = item
            continue

        merged[slot] = ShoppingListItem.model_validate(
            {
                **current.model_dump(),
                "needed_quantity": current.needed_quantity + item.needed_quantity,
                "recipe_sources": [*current.recipe_sources, *item.recipe_sources],
                "purchased": current.purchased and item.purchased,
                "store_id": current.store_id or item.store_id,
            }
        )
    return list(merged.values())
