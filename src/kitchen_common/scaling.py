"""
Recipe scaling and quantity display helpers.
"""

import math

from pydantic import Field

from kitchen_common.models import RecipeIngredient
from kitchen_common.units import Unit


# Units shown as whole numbers
WHOLE_NUMBER_UNITS = frozenset({Unit.PIECE, Unit.NONE})

# Common cooking fractions, as (decimal, display)
COOKING_FRACTIONS: tuple[tuple[float, str], ...] = (
    (0.125, "1/8"),
    (0.25, "1/4"),
    (0.333, "1/3"),
    (0.375, "3/8"),
    (0.5, "1/2"),
    (0.625, "5/8"),
    (0.667, "2/3"),
    (0.75, "3/4"),
    (0.875, "7/8"),
)
FRACTION_TOLERANCE = 0.05

MIN_SERVINGS = 1
MAX_SERVINGS = 50


class ScaledIngredient(RecipeIngredient):
    """A recipe ingredient with its quantity for a chosen serving size."""

    scaled_quantity: float = Field(..., ge=0)
    display_quantity: str


def _trim(text: str) -> str:
    """Drop trailing zeros (and a bare decimal point) from a fixed-point string."""
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def scaling_factor(current_servings: float, default_servings: float) -> float:
    """Ratio between the requested and the recipe's own serving count."""
    return current_servings / default_servings


def format_quantity(quantity: float, unit: Unit | None = None) -> str:
    """
    Format a quantity for display.

    Discrete units are rounded to whole numbers; continuous quantities keep
    three, two or one decimal place depending on magnitude, and two above
    ten. Trailing zeros are dropped.

    Example:
        >>> format_quantity(0.0421, Unit.CUP)
        '0.042'
        >>> format_quantity(2.5, Unit.PIECE)
        '2'
    """
    if quantity < 0.001:
        return "0"

    if unit is None or unit in WHOLE_NUMBER_UNITS:
        return str(round(quantity))

    if quantity < 0.1:
        return _trim(f"{quantity:.3f}")
    if quantity < 1:
        return _trim(f"{quantity:.2f}")
    if quantity < 10:
        return _trim(f"{quantity:.1f}")
    return _trim(f"{quantity:.2f}")


def to_mixed_number(quantity: float, unit: Unit = Unit.CUP) -> str:
    """
    Render a quantity as a whole number plus a cooking fraction.

    Falls back to ``format_quantity`` when no common fraction lies within
    0.05 of the fractional part.

    Example:
        >>> to_mixed_number(1.5)
        '1 1/2'
        >>> to_mixed_number(0.33)
        '1/3'
    """
    if quantity < 0.125:
        return format_quantity(quantity, unit)

    whole = math.floor(quantity)
    fraction = quantity - whole

    decimal, display = min(COOKING_FRACTIONS, key=lambda f: abs(f[0] - fraction))
    if abs(decimal - fraction) < FRACTION_TOLERANCE:
        return display if whole == 0 else f"{whole} {display}"

    return format_quantity(quantity, unit)


def scale_ingredients(
    ingredients: list[RecipeIngredient],
    current_servings: float,
    default_servings: float,
) -> list[ScaledIngredient]:
    """
    Scale a recipe's ingredient lines to a new serving count.

    Args:
        ingredients: Lines quantified for ``default_servings``
        current_servings: Servings to cook
        default_servings: Servings the quantities were written for

    Returns:
        One ScaledIngredient per input line, in order
    """
    factor = scaling_factor(current_servings, default_servings)
    scaled: list[ScaledIngredient] = []
    for ingredient in ingredients:
        quantity = ingredient.quantity * factor
        scaled.append(
            ScaledIngredient(
                **ingredient.model_dump(),
                scaled_quantity=quantity,
                display_quantity=format_quantity(quantity, ingredient.unit),
            )
        )
    return scaled


def validate_serving_size(
    servings: object,
    min_servings: int = MIN_SERVINGS,
    max_servings: int = MAX_SERVINGS,
) -> bool:
    """Check that a serving size is a whole number within bounds."""
    if isinstance(servings, bool) or not isinstance(servings, int):
        return False
    return min_servings <= servings <= max_servings
