"""
Shopping-list lifecycle.

Lists are frozen models; every function here returns a new list. Status is
recomputed after each change, so a list is ``completed`` exactly when it has
items and all of them are purchased. Archived lists are read-only until
they are unarchived.
"""

import logging
from typing import Callable, Iterable

from kitchen_common.exceptions import NotFoundError, ShoppingListStateError
from kitchen_common.ledger import Clock, InventoryLedger, new_id, utc_now
from kitchen_common.models import ShoppingList, ShoppingListItem, ShoppingListStatus


logger = logging.getLogger(__name__)


def _rebuild(
    shopping_list: ShoppingList,
    items: list[ShoppingListItem],
    clock: Clock,
) -> ShoppingList:
    """Return a copy with new items and a status that matches them."""
    complete = bool(items) and all(item.purchased for item in items)
    if complete:
        status = ShoppingListStatus.COMPLETED
        completed_at = shopping_list.completed_at or clock()
    else:
        status = ShoppingListStatus.ACTIVE
        completed_at = None

    return ShoppingList.model_validate(
        {
            **shopping_list.model_dump(),
            "items": items,
            "status": status,
            "completed_at": completed_at,
            "archived_at": None,
        }
    )


def _ensure_editable(shopping_list: ShoppingList) -> None:
    if shopping_list.status == ShoppingListStatus.ARCHIVED:
        raise ShoppingListStateError(
            f"Shopping list {shopping_list.id} is archived; unarchive it first"
        )


def new_shopping_list(
    name: str,
    items: Iterable[ShoppingListItem],
    *,
    notes: str | None = None,
    clock: Clock = utc_now,
    id_factory: Callable[[], str] = new_id,
) -> ShoppingList | None:
    """
    Create an active shopping list.

    Returns:
        The new list, or None when there is nothing to purchase
    """
    items = list(items)
    if not items:
        logger.info("Nothing to purchase; no list created for %r", name)
        return None

    now = clock()
    draft = ShoppingList(
        id=id_factory(),
        name=name,
        created_at=now,
        items=[],
        notes=notes,
    )
    return _rebuild(draft, items, clock)


def add_item(
    shopping_list: ShoppingList,
    item: ShoppingListItem,
    *,
    clock: Clock = utc_now,
) -> ShoppingList:
    """
    Add an item, merging it into a pending entry for the same name and unit.

    Raises:
        ShoppingListStateError: If the list is archived
    """
    _ensure_editable(shopping_list)

    items = list(shopping_list.items)
    for index, existing in enumerate(items):
        if (
            not existing.purchased
            and existing.ingredient_name == item.ingredient_name
            and existing.unit == item.unit
        ):
            items[index] = ShoppingListItem.model_validate(
                {
                    **existing.model_dump(),
                    "needed_quantity": existing.needed_quantity + item.needed_quantity,
                    "recipe_sources": [*existing.recipe_sources, *item.recipe_sources],
                    "store_id": existing.store_id or item.store_id,
                }
            )
            break
    else:
        items.append(item)

    return _rebuild(shopping_list, items, clock)


def set_item_purchased(
    shopping_list: ShoppingList,
    item_id: str,
    purchased: bool = True,
    *,
    ledger: InventoryLedger | None = None,
    clock: Clock = utc_now,
) -> ShoppingList:
    """
    Mark one item as purchased (or not yet purchased).

    When a ledger is given, a purchase restocks the inventory with the
    item's quantity. Un-marking an item does not remove stock again.

    Args:
        shopping_list: List to update
        item_id: Id of the item to mark
        purchased: New purchased flag
        ledger: Inventory to restock on purchase
        clock: Returns the current time

    Returns:
        Updated list

    Raises:
        NotFoundError: If the list has no item with ``item_id``
        ShoppingListStateError: If the list is archived
    """
    _ensure_editable(shopping_list)

    items = list(shopping_list.items)
    for index, item in enumerate(items):
        if item.id == item_id:
            break
    else:
        raise NotFoundError(f"No item {item_id} on shopping list {shopping_list.id}")

    if item.purchased == purchased:
        return shopping_list

    if purchased and ledger is not None:
        _restock(ledger, item)

    items[index] = item.model_copy(update={"purchased": purchased})
    return _rebuild(shopping_list, items, clock)


def purchase_all(
    shopping_list: ShoppingList,
    *,
    ledger: InventoryLedger | None = None,
    clock: Clock = utc_now,
) -> ShoppingList:
    """
    Mark every pending item as purchased, restocking the ledger if given.

    Items always carry a non-blank name, so no restock can fail part way
    through the list.

    Raises:
        ShoppingListStateError: If the list is archived
    """
    _ensure_editable(shopping_list)
    if not shopping_list.pending_items:
        return shopping_list

    items: list[ShoppingListItem] = []
    for item in shopping_list.items:
        if not item.purchased:
            if ledger is not None:
                _restock(ledger, item)
            item = item.model_copy(update={"purchased": True})
        items.append(item)

    return _rebuild(shopping_list, items, clock)


def archive_shopping_list(
    shopping_list: ShoppingList,
    *,
    clock: Clock = utc_now,
) -> ShoppingList:
    """
    Archive a completed list. Archiving an archived list is a no-op.

    Raises:
        ShoppingListStateError: If the list is still active
    """
    if shopping_list.status == ShoppingListStatus.ARCHIVED:
        return shopping_list
    if shopping_list.status != ShoppingListStatus.COMPLETED:
        raise ShoppingListStateError(
            f"Only completed lists can be archived; {shopping_list.id} is "
            f"{shopping_list.status.value}"
        )

    return shopping_list.model_copy(
        update={"status": ShoppingListStatus.ARCHIVED, "archived_at": clock()}
    )


def unarchive_shopping_list(
    shopping_list: ShoppingList,
    *,
    clock: Clock = utc_now,
) -> ShoppingList:
    """Move an archived list back to the status its items imply."""
    if shopping_list.status != ShoppingListStatus.ARCHIVED:
        return shopping_list
    return _rebuild(shopping_list, list(shopping_list.items), clock)


def _restock(ledger: InventoryLedger, item: ShoppingListItem) -> None:
    metadata = {"default_store_id": item.store_id} if item.store_id else None
    stored = ledger.restock(item.ingredient_name, item.needed_quantity, item.unit, metadata)
    logger.info(
        "Restocked %s to %s %s from shopping list",
        stored.ingredient_name,
        stored.quantity,
        stored.unit.value,
    )
