"""
Inventory ledger: the owned collection of inventory records.

Records move between two states, ACTIVE and ARCHIVED. All mutation goes
through ``upsert``, ``deduct``, ``archive`` and ``unarchive``; records are
frozen models, so each operation stores a validated replacement and the
caller only ever sees immutable copies.

At most one active and one archived record exist for a given
``(normalised name, unit)`` pair.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator

from kitchen_common.config import KitchenSettings, get_settings
from kitchen_common.exceptions import ValidationError
from kitchen_common.matching import normalise_ingredient_name
from kitchen_common.models import (
    DeductionResult,
    FailureReason,
    InventoryItem,
    InventoryMetadata,
    ItemTemplate,
)
from kitchen_common.units import Unit, are_compatible, convert_unit


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Remainders this small after a converted deduction are rounding noise
ZERO_TOLERANCE = 1e-9


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def _replace(item: InventoryItem, **changes: Any) -> InventoryItem:
    """Return a re-validated copy of ``item`` with ``changes`` applied."""
    return InventoryItem.model_validate({**item.model_dump(), **changes})


def _prefer_unit(
    candidates: list[InventoryItem],
    unit: Unit | None,
) -> InventoryItem | None:
    """Pick the exact unit first, then the first convertible unit, then any."""
    if not candidates:
        return None
    if unit is None:
        return candidates[0]
    for item in candidates:
        if item.unit == unit:
            return item
    for item in candidates:
        if are_compatible(item.unit, unit):
            return item
    return candidates[0]


class _InventoryIndex(ABC):
    """Name-based lookups shared by the ledger and its snapshots."""

    @abstractmethod
    def _records(self) -> Iterable[InventoryItem]:
        """Yield every record, active and archived, in insertion order."""
        ...

    def items(self) -> list[InventoryItem]:
        """All records, active and archived, in insertion order."""
        return list(self._records())

    def active_items(self) -> list[InventoryItem]:
        return [i for i in self._records() if not i.is_archived]

    def archived_items(self) -> list[InventoryItem]:
        return [i for i in self._records() if i.is_archived]

    def find_by_name(
        self,
        name: str,
        archived: bool | None = None,
    ) -> list[InventoryItem]:
        """
        List records whose normalised name matches, in any unit.

        Args:
            name: Raw or normalised ingredient name
            archived: Restrict to archived (True) or active (False) records
        """
        key = normalise_ingredient_name(name)
        return [
            item
            for item in self._records()
            if item.ingredient_name == key
            and (archived is None or item.is_archived == archived)
        ]

    def lookup_active(
        self,
        name: str,
        unit: Unit | None = None,
    ) -> InventoryItem | None:
        return _prefer_unit(self.find_by_name(name, archived=False), unit)

    def lookup_any(
        self,
        name: str,
        unit: Unit | None = None,
    ) -> InventoryItem | None:
        active = self.lookup_active(name, unit)
        if active is not None:
            return active
        return _prefer_unit(self.find_by_name(name, archived=True), unit)

    def active_names(self) -> list[str]:
        """Distinct normalised names of active records."""
        return list(dict.fromkeys(i.ingredient_name for i in self.active_items()))

    def _find_exact(
        self,
        key: str,
        unit: Unit,
        archived: bool,
    ) -> InventoryItem | None:
        for item in self._records():
            if (
                item.ingredient_name == key
                and item.unit == unit
                and item.is_archived == archived
            ):
                return item
        return None


class InventorySnapshot(_InventoryIndex):
    """Immutable point-in-time view of a ledger."""

    def __init__(self, items: Iterable[InventoryItem]):
        self._items: tuple[InventoryItem, ...] = tuple(items)

    def _records(self) -> Iterable[InventoryItem]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)


class InventoryLedger(_InventoryIndex):
    """
    Owns the household's inventory records and their lifecycle.

    Args:
        items: Existing records to load (e.g. from persistence)
        clock: Returns the current time; defaults to UTC now
        settings: Thresholds; defaults to ``get_settings()``

    Raises:
        ValidationError: If ``items`` contains duplicate ids or more than one
            active (or archived) record for the same name and unit
    """

    def __init__(
        self,
        items: Iterable[InventoryItem] | None = None,
        *,
        clock: Clock | None = None,
        settings: KitchenSettings | None = None,
    ):
        self._clock: Clock = clock or utc_now
        self._settings = settings or get_settings()
        self._items: dict[str, InventoryItem] = {}

        seen: set[tuple[str, Unit, bool]] = set()
        for item in items or []:
            if item.id in self._items:
                raise ValidationError(f"Duplicate inventory id: {item.id}")
            slot = (item.ingredient_name, item.unit, item.is_archived)
            if slot in seen:
                state = "archived" if item.is_archived else "active"
                raise ValidationError(
                    f"More than one {state} record for "
                    f"{item.ingredient_name!r} in {item.unit.value}"
                )
            seen.add(slot)
            self._items[item.id] = item

    def _records(self) -> Iterable[InventoryItem]:
        return self._items.values()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[InventoryItem]:
        return iter(list(self._items.values()))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: str) -> InventoryItem | None:
        return self._items.get(item_id)

    def snapshot(self) -> InventorySnapshot:
        """Freeze the current records for pure, repeatable reads."""
        return InventorySnapshot(self._items.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(
        self,
        name: str,
        quantity: float,
        unit: Unit,
        metadata: InventoryMetadata | dict[str, Any] | None = None,
        *,
        overwrite_metadata: bool = True,
    ) -> InventoryItem:
        """
        Add stock for an ingredient, creating or reviving a record.

        Looks for a record with the same normalised name and unit, active
        first, then archived. Quantities add up; an archived record becomes
        active again once the result is positive. A new record created with
        a quantity of zero or less starts archived.

        Args:
            name: Raw ingredient name
            quantity: Amount to add (may be zero or negative)
            unit: Unit of ``quantity``
            metadata: Descriptive fields to merge; only explicitly set
                fields are applied
            overwrite_metadata: When False, supplied fields only fill gaps
                on an existing record (purchase-driven restock)

        Returns:
            The stored record

        Raises:
            ValidationError: If the name is blank
        """
        key = normalise_ingredient_name(name)
        if not key:
            raise ValidationError("Ingredient name must not be blank")

        meta = self._coerce_metadata(metadata)
        now = self._clock()

        existing = self._find_exact(key, unit, archived=False) or self._find_exact(
            key, unit, archived=True
        )
        if existing is None:
            return self._create(key, quantity, unit, meta, now)

        changes = self._merge_metadata(existing, meta, overwrite_metadata)
        changes["last_updated"] = now

        if existing.is_active:
            total = existing.quantity + quantity
            if total > 0:
                changes["quantity"] = total
            else:
                changes.update(self._archive_changes(existing, now))
        elif quantity > 0:
            changes.update(
                quantity=quantity,
                is_archived=False,
                archived_date=None,
                original_quantity=None,
                times_restocked=existing.times_restocked + 1,
            )
            logger.info("Restocked archived item %s (%s %s)", key, quantity, unit.value)

        return self._store(_replace(existing, **changes))

    def restock(
        self,
        name: str,
        quantity: float,
        unit: Unit,
        metadata: InventoryMetadata | dict[str, Any] | None = None,
    ) -> InventoryItem:
        """Purchase-driven upsert that keeps existing metadata."""
        return self.upsert(name, quantity, unit, metadata, overwrite_metadata=False)

    def deduct(self, name: str, quantity: float, unit: Unit) -> DeductionResult:
        """
        Consume stock of an ingredient, clamping at zero.

        The request is converted into the active record's unit. A shortfall
        does not block the deduction: the record drops to zero and is
        archived. Use ``PreparationPlanner.validate`` for a strict check.

        Returns:
            DeductionResult; on failure no record is changed
        """
        key = normalise_ingredient_name(name)

        def failed(reason: FailureReason, item: InventoryItem | None = None) -> DeductionResult:
            logger.warning("Deduction of %s %s %s failed: %s", quantity, unit.value, key, reason.value)
            return DeductionResult(
                success=False,
                ingredient_name=key,
                requested_quantity=quantity,
                requested_unit=unit,
                item=item,
                reason=reason,
            )

        if quantity <= 0:
            return failed(FailureReason.INVALID_QUANTITY)

        item = self.lookup_active(key, unit)
        if item is None:
            return failed(FailureReason.NOT_FOUND)

        amount = convert_unit(quantity, unit, item.unit)
        if amount is None:
            return failed(FailureReason.INCOMPATIBLE_UNITS, item)

        now = self._clock()
        previous = item.quantity
        remaining = previous - amount
        if remaining <= ZERO_TOLERANCE:
            remaining = 0.0

        total_consumed = item.total_consumed + amount
        changes: dict[str, Any] = {
            "quantity": remaining,
            "total_consumed": total_consumed,
            "average_consumption_rate": self._consumption_rate(item, total_consumed, now),
            "last_used_date": now,
            "last_updated": now,
        }
        archived = remaining <= 0
        if archived:
            changes.update(
                is_archived=True,
                archived_date=now,
                original_quantity=previous,
            )
            logger.info("Archived %s after deduction (was %s %s)", key, previous, item.unit.value)

        updated = self._store(_replace(item, **changes))
        return DeductionResult(
            success=True,
            ingredient_name=key,
            requested_quantity=quantity,
            requested_unit=unit,
            deducted_quantity=amount,
            item=updated,
            archived=archived,
        )

    def archive(self, item_id: str) -> InventoryItem | None:
        """
        Force a record into the archived state. Idempotent.

        Returns:
            The archived record, or None for an unknown id
        """
        item = self._items.get(item_id)
        if item is None:
            logger.debug("archive: no inventory item %s", item_id)
            return None
        if item.is_archived:
            return item

        now = self._clock()
        changes = self._archive_changes(item, now)
        changes["last_updated"] = now
        return self._store(_replace(item, **changes))

    def unarchive(self, item_id: str, quantity: float | None = None) -> InventoryItem | None:
        """
        Bring an archived record back into active inventory.

        The restored quantity is ``quantity`` when positive, else the
        archived snapshot, else the configured default (1).

        Returns:
            The active record, the unchanged record if it was already active,
            or None for an unknown id
        """
        item = self._items.get(item_id)
        if item is None:
            logger.debug("unarchive: no inventory item %s", item_id)
            return None
        if item.is_active:
            return item

        if quantity is not None and quantity > 0:
            restored = quantity
        elif item.original_quantity:
            restored = item.original_quantity
        else:
            restored = self._settings.unarchive_default_quantity

        now = self._clock()
        active = self._find_exact(item.ingredient_name, item.unit, archived=False)
        if active is not None:
            # Fold into the existing active record to keep one per name and unit
            del self._items[item.id]
            logger.info(
                "Merged archived %s into active record %s", item.id, active.id
            )
            return self._store(
                _replace(
                    active,
                    quantity=active.quantity + restored,
                    times_restocked=active.times_restocked + 1,
                    last_updated=now,
                )
            )

        return self._store(
            _replace(
                item,
                quantity=restored,
                is_archived=False,
                archived_date=None,
                original_quantity=None,
                times_restocked=item.times_restocked + 1,
                last_updated=now,
            )
        )

    def create_template(self, item_id: str) -> ItemTemplate | None:
        """Derive a re-stock template from an inventory record."""
        item = self._items.get(item_id)
        if item is None:
            return None

        if item.is_archived:
            average = item.original_quantity or 1.0
        else:
            average = item.quantity if item.quantity > 0 else 1.0

        return ItemTemplate(
            id=new_id(),
            ingredient_name=item.ingredient_name,
            unit=item.unit,
            category_id=item.category_id,
            default_store_id=item.default_store_id,
            brand=item.brand,
            notes=item.notes,
            average_quantity=average,
            typical_low_stock_threshold=item.low_stock_threshold,
            frequency_of_use=item.frequency_of_use,
            last_used_date=self._clock(),
            created_from="archive" if item.is_archived else "manual",
            source_item_id=item.id,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create(
        self,
        key: str,
        quantity: float,
        unit: Unit,
        meta: InventoryMetadata | None,
        now: datetime,
    ) -> InventoryItem:
        fields: dict[str, Any] = meta.model_dump(exclude_unset=True) if meta else {}
        fields.update(
            id=new_id(),
            ingredient_name=key,
            unit=unit,
            added_date=now,
            last_updated=now,
        )
        if quantity > 0:
            fields["quantity"] = quantity
        else:
            fields.update(
                quantity=0.0,
                is_archived=True,
                archived_date=now,
                original_quantity=max(quantity, 0.0),
            )
            logger.debug("Created %s directly archived (quantity %s)", key, quantity)
        return self._store(InventoryItem.model_validate(fields))

    def _store(self, item: InventoryItem) -> InventoryItem:
        if item.is_archived:
            # A newer archived record supersedes an older one for the same slot
            stale = [
                other.id
                for other in self._items.values()
                if other.id != item.id
                and other.is_archived
                and other.ingredient_name == item.ingredient_name
                and other.unit == item.unit
            ]
            for stale_id in stale:
                logger.debug("Dropping superseded archived record %s", stale_id)
                del self._items[stale_id]
        self._items[item.id] = item
        return item

    @staticmethod
    def _archive_changes(item: InventoryItem, now: datetime) -> dict[str, Any]:
        if item.quantity > 0:
            original = item.quantity
        else:
            original = item.original_quantity or 0.0
        return {
            "quantity": 0.0,
            "is_archived": True,
            "archived_date": now,
            "original_quantity": original,
        }

    @staticmethod
    def _coerce_metadata(
        metadata: InventoryMetadata | dict[str, Any] | None,
    ) -> InventoryMetadata | None:
        if metadata is None or isinstance(metadata, InventoryMetadata):
            return metadata
        return InventoryMetadata.model_validate(metadata)

    @staticmethod
    def _merge_metadata(
        item: InventoryItem,
        meta: InventoryMetadata | None,
        overwrite: bool,
    ) -> dict[str, Any]:
        if meta is None:
            return {}
        changes: dict[str, Any] = {}
        for field in meta.model_fields_set:
            current = getattr(item, field)
            if overwrite or current is None or current == []:
                changes[field] = getattr(meta, field)
        return changes

    @staticmethod
    def _consumption_rate(item: InventoryItem, total: float, now: datetime) -> float:
        """Average amount consumed per day since the item was added."""
        added = item.added_date
        if (added.tzinfo is None) != (now.tzinfo is None):
            added = added.replace(tzinfo=now.tzinfo)
        days = max((now - added).days, 1)
        return total / days
