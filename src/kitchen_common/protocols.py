"""
Read-only inventory protocol shared by the aggregator and the planner.

Both ``InventoryLedger`` and its immutable ``InventorySnapshot`` satisfy
it, so the shopping-list aggregation can run against a frozen snapshot
without a live ledger.
"""

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from kitchen_common.models import InventoryItem
from kitchen_common.units import Unit


@runtime_checkable
class InventoryReader(Protocol):
    """
    Protocol for anything that can answer inventory lookups.

    Implemented by: InventoryLedger, InventorySnapshot
    """

    @abstractmethod
    def active_items(self) -> list[InventoryItem]:
        """
        List all active (non-archived) inventory items.

        Returns:
            Active items in insertion order
        """
        ...

    @abstractmethod
    def archived_items(self) -> list[InventoryItem]:
        """
        List all archived inventory items.

        Returns:
            Archived items in insertion order
        """
        ...

    @abstractmethod
    def lookup_active(
        self,
        name: str,
        unit: Unit | None = None,
    ) -> InventoryItem | None:
        """
        Find the active item for an ingredient name.

        Args:
            name: Raw or normalised ingredient name
            unit: Preferred unit; an exact unit match wins, then the first
                convertible unit, then any unit

        Returns:
            Matching active item or None
        """
        ...

    @abstractmethod
    def lookup_any(
        self,
        name: str,
        unit: Unit | None = None,
    ) -> InventoryItem | None:
        """
        Find an item by name, preferring an active match over an archived one.

        Args:
            name: Raw or normalised ingredient name
            unit: Preferred unit, as for lookup_active

        Returns:
            Matching item or None
        """
        ...
