"""
Unit conversion utilities for kitchen measurements.

Every unit belongs to exactly one category. Conversion is only defined
inside a category, via that category's base unit:
- Volume: millilitres
- Weight: grams
- Count: pieces

``Unit.NONE`` (unspecified or uncountable amounts such as "salt to taste")
only converts to itself.
"""

from enum import Enum

from kitchen_common.exceptions import UnitConversionError


class UnitCategory(str, Enum):
    """Physical category a unit measures."""

    VOLUME = "volume"
    WEIGHT = "weight"
    COUNT = "count"
    NONE = "none"


class Unit(str, Enum):
    """Measurement units understood by the engine."""

    # Volume
    MILLILITER = "ml"
    LITER = "l"
    TEASPOON = "tsp"
    TABLESPOON = "tbsp"
    CUP = "cup"
    FLUID_OUNCE = "fl_oz"
    PINT = "pt"
    QUART = "qt"
    GALLON = "gal"

    # Weight
    GRAM = "g"
    KILOGRAM = "kg"
    OUNCE = "oz"  # weight ounce
    POUND = "lb"

    # Count
    PIECE = "piece"
    DOZEN = "dozen"

    NONE = "none"

    @property
    def category(self) -> UnitCategory:
        """The physical category of this unit."""
        return UNIT_CATEGORIES[self]


UNIT_CATEGORIES: dict[Unit, UnitCategory] = {
    Unit.MILLILITER: UnitCategory.VOLUME,
    Unit.LITER: UnitCategory.VOLUME,
    Unit.TEASPOON: UnitCategory.VOLUME,
    Unit.TABLESPOON: UnitCategory.VOLUME,
    Unit.CUP: UnitCategory.VOLUME,
    Unit.FLUID_OUNCE: UnitCategory.VOLUME,
    Unit.PINT: UnitCategory.VOLUME,
    Unit.QUART: UnitCategory.VOLUME,
    Unit.GALLON: UnitCategory.VOLUME,
    Unit.GRAM: UnitCategory.WEIGHT,
    Unit.KILOGRAM: UnitCategory.WEIGHT,
    Unit.OUNCE: UnitCategory.WEIGHT,
    Unit.POUND: UnitCategory.WEIGHT,
    Unit.PIECE: UnitCategory.COUNT,
    Unit.DOZEN: UnitCategory.COUNT,
    Unit.NONE: UnitCategory.NONE,
}

# Conversion constants to the base unit of each category (US customary volumes)
UNIT_FACTORS: dict[Unit, float] = {
    Unit.MILLILITER: 1.0,
    Unit.LITER: 1000.0,
    Unit.TEASPOON: 4.92892,
    Unit.TABLESPOON: 14.7868,
    Unit.CUP: 236.588,
    Unit.FLUID_OUNCE: 29.5735,
    Unit.PINT: 473.176,
    Unit.QUART: 946.353,
    Unit.GALLON: 3785.41,
    Unit.GRAM: 1.0,
    Unit.KILOGRAM: 1000.0,
    Unit.OUNCE: 28.3495,
    Unit.POUND: 453.592,
    Unit.PIECE: 1.0,
    Unit.DOZEN: 12.0,
}

BASE_UNITS: dict[UnitCategory, Unit] = {
    UnitCategory.VOLUME: Unit.MILLILITER,
    UnitCategory.WEIGHT: Unit.GRAM,
    UnitCategory.COUNT: Unit.PIECE,
}

# Free-text spellings accepted by parse_unit, besides the enum values
UNIT_ALIASES: dict[str, Unit] = {
    "milliliter": Unit.MILLILITER,
    "milliliters": Unit.MILLILITER,
    "millilitre": Unit.MILLILITER,
    "millilitres": Unit.MILLILITER,
    "liter": Unit.LITER,
    "liters": Unit.LITER,
    "litre": Unit.LITER,
    "litres": Unit.LITER,
    "teaspoon": Unit.TEASPOON,
    "teaspoons": Unit.TEASPOON,
    "tablespoon": Unit.TABLESPOON,
    "tablespoons": Unit.TABLESPOON,
    "cups": Unit.CUP,
    "fl oz": Unit.FLUID_OUNCE,
    "fl. oz": Unit.FLUID_OUNCE,
    "fluid ounce": Unit.FLUID_OUNCE,
    "fluid ounces": Unit.FLUID_OUNCE,
    "pint": Unit.PINT,
    "pints": Unit.PINT,
    "quart": Unit.QUART,
    "quarts": Unit.QUART,
    "gallon": Unit.GALLON,
    "gallons": Unit.GALLON,
    "gram": Unit.GRAM,
    "grams": Unit.GRAM,
    "kilogram": Unit.KILOGRAM,
    "kilograms": Unit.KILOGRAM,
    "ounce": Unit.OUNCE,
    "ounces": Unit.OUNCE,
    "pound": Unit.POUND,
    "pounds": Unit.POUND,
    "lbs": Unit.POUND,
    "pieces": Unit.PIECE,
    "pc": Unit.PIECE,
    "pcs": Unit.PIECE,
    "dozens": Unit.DOZEN,
    "": Unit.NONE,
}

DISCRETE_UNITS = frozenset({Unit.PIECE, Unit.DOZEN, Unit.NONE})


def parse_unit(value: Unit | str) -> Unit:
    """
    Resolve a unit from an enum member or free text.

    Args:
        value: A Unit, its value ("tbsp") or a common spelling ("Tablespoons")

    Returns:
        The matching Unit

    Raises:
        UnitConversionError: If the text names no known unit
    """
    if isinstance(value, Unit):
        return value

    text = " ".join(value.lower().split())
    try:
        return Unit(text)
    except ValueError:
        pass

    unit = UNIT_ALIASES.get(text)
    if unit is None:
        raise UnitConversionError(f"Unknown unit: {value}")
    return unit


def are_compatible(from_unit: Unit, to_unit: Unit) -> bool:
    """Check whether two units can be converted into each other."""
    if from_unit == to_unit:
        return True
    category = from_unit.category
    return category != UnitCategory.NONE and category == to_unit.category


def convert_unit(
    quantity: float,
    from_unit: Unit,
    to_unit: Unit,
) -> float | None:
    """
    Convert a quantity between two units of the same category.

    Args:
        quantity: The amount to convert
        from_unit: Source unit
        to_unit: Target unit

    Returns:
        Converted amount, or None if the units belong to different
        categories (including ``Unit.NONE`` against any other unit)

    Example:
        >>> convert_unit(1, Unit.DOZEN, Unit.PIECE)
        12.0
        >>> convert_unit(1, Unit.CUP, Unit.GRAM) is None
        True
    """
    if from_unit == to_unit:
        return quantity

    if not are_compatible(from_unit, to_unit):
        return None

    # Convert via the category base unit
    base = quantity * UNIT_FACTORS[from_unit]
    return base / UNIT_FACTORS[to_unit]


def convert_unit_strict(
    quantity: float,
    from_unit: Unit | str,
    to_unit: Unit | str,
) -> float:
    """
    Convert between units, raising instead of returning None.

    Accepts free-text units like the ones parse_unit understands.

    Raises:
        UnitConversionError: If a unit is unknown or the categories differ
    """
    source = parse_unit(from_unit)
    target = parse_unit(to_unit)

    converted = convert_unit(quantity, source, target)
    if converted is None:
        raise UnitConversionError(
            f"Cannot convert {source.value} ({source.category.value}) "
            f"to {target.value} ({target.category.value})"
        )
    return converted


def is_discrete_unit(unit: Unit) -> bool:
    """Check whether a unit counts things rather than measuring them."""
    return unit in DISCRETE_UNITS


# Convenience functions for common conversions
def cups_to_ml(cups: float) -> float:
    """Convert US cups to millilitres."""
    return convert_unit_strict(cups, Unit.CUP, Unit.MILLILITER)


def ml_to_cups(ml: float) -> float:
    """Convert millilitres to US cups."""
    return convert_unit_strict(ml, Unit.MILLILITER, Unit.CUP)


def lb_to_g(lb: float) -> float:
    """Convert pounds to grams."""
    return convert_unit_strict(lb, Unit.POUND, Unit.GRAM)


def g_to_lb(g: float) -> float:
    """Convert grams to pounds."""
    return convert_unit_strict(g, Unit.GRAM, Unit.POUND)
