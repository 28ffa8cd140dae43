"""
Configuration management for kitchen-common.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from kitchen_common.exceptions import ConfigurationError


ENV_PREFIX = "KITCHEN_"


class KitchenSettings(BaseModel):
    """Tunable thresholds and logging options."""

    model_config = ConfigDict(frozen=True)

    purchase_epsilon: float = Field(
        default=0.01,
        ge=0,
        description="Needs at or below this amount are not worth buying",
    )
    quantity_decimals: int = Field(
        default=2,
        ge=0,
        le=6,
        description="Decimal places kept on shopping list quantities",
    )
    unarchive_default_quantity: float = Field(
        default=1.0,
        gt=0,
        description="Quantity restored when neither a value nor a snapshot exists",
    )
    expiring_soon_days: int = Field(
        default=7,
        ge=0,
        description="Window used by restock suggestions for expiring items",
    )
    frequent_use_floor: float = Field(
        default=10.0,
        gt=0,
        description="Assumed threshold for frequently used items without one",
    )
    suggestion_threshold: float = Field(
        default=0.8,
        ge=0,
        le=1,
        description="Minimum fuzzy score for 'did you mean' hints",
    )
    log_level: str = Field(default="INFO", description="DEBUG/INFO/WARNING/ERROR")
    log_format: str = Field(default="plain", description="plain or json")


def _load_from_env() -> dict[str, str]:
    """Collect KITCHEN_* overrides keyed by settings field name."""
    payload: dict[str, str] = {}
    for name in KitchenSettings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value:
            payload[name] = value.strip()
    return payload


def load_settings() -> KitchenSettings:
    """
    Build settings from the environment.

    Environment variables:
        KITCHEN_PURCHASE_EPSILON, KITCHEN_QUANTITY_DECIMALS,
        KITCHEN_UNARCHIVE_DEFAULT_QUANTITY, KITCHEN_EXPIRING_SOON_DAYS,
        KITCHEN_FREQUENT_USE_FLOOR, KITCHEN_SUGGESTION_THRESHOLD,
        KITCHEN_LOG_LEVEL, KITCHEN_LOG_FORMAT

    Returns:
        KitchenSettings instance

    Raises:
        ConfigurationError: If a variable holds an invalid value
    """
    payload = _load_from_env()
    try:
        settings = KitchenSettings.model_validate(payload)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid kitchen settings: {e}") from e

    if settings.log_format.lower() not in {"plain", "json"}:
        raise ConfigurationError(
            f"KITCHEN_LOG_FORMAT must be 'plain' or 'json', got {settings.log_format!r}"
        )
    return settings


@lru_cache
def get_settings() -> KitchenSettings:
    """Return cached settings loaded from the environment."""
    return load_settings()
