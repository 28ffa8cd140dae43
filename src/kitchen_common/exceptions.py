"""
Exception types for kitchen-common.

All exceptions inherit from KitchenCommonError for easy catching
of any library-related errors.

The reconciliation algorithms themselves report incompatible units,
missing stock and shortfalls as data (see ``FailureReason`` in
``kitchen_common.models``); these exceptions cover bad boundary input
and misuse of the shopping-list lifecycle.
"""


class KitchenCommonError(Exception):
    """Base exception for all kitchen-common errors."""

    pass


class UnitConversionError(KitchenCommonError):
    """Raised when a unit is unknown or a strict conversion fails."""

    pass


class ValidationError(KitchenCommonError):
    """Raised when data validation fails."""

    pass


class ConfigurationError(KitchenCommonError):
    """Raised when configuration is invalid."""

    pass


class NotFoundError(KitchenCommonError):
    """Raised when a requested record is not found."""

    pass


class ShoppingListStateError(KitchenCommonError):
    """Raised when a shopping list transition is not allowed."""

    pass
