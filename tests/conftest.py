"""
Shared fixtures for kitchen-common tests.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from kitchen_common.config import KitchenSettings
from kitchen_common.ledger import InventoryLedger
from kitchen_common.models import Recipe, RecipeIngredient
from kitchen_common.units import Unit


NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
TODAY = date(2026, 1, 10)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    return KitchenSettings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock, settings):
    return InventoryLedger(clock=clock, settings=settings)


@pytest.fixture
def ids():
    """Deterministic id factory."""
    counter = iter(range(1, 10_000))
    return lambda: f"id-{next(counter)}"


def make_recipe(
    name: str,
    servings: int,
    *ingredients: tuple,
    recipe_id: str | None = None,
) -> Recipe:
    """Build a recipe from (name, quantity, unit[, optional]) tuples."""
    lines = []
    for line in ingredients:
        ingredient_name, quantity, unit = line[:3]
        optional = line[3] if len(line) > 3 else False
        lines.append(
            RecipeIngredient(
                ingredient_name=ingredient_name,
                quantity=quantity,
                unit=unit,
                is_optional=optional,
            )
        )
    return Recipe(
        id=recipe_id or name.lower().replace(" ", "-"),
        name=name,
        default_servings=servings,
        ingredients=lines,
    )


@pytest.fixture
def pancakes():
    return make_recipe(
        "Pancakes",
        4,
        ("Flour", 1.5, Unit.CUP),
        ("Milk", 1.25, Unit.CUP),
        ("Eggs", 2, Unit.PIECE),
        ("Blueberries", 0.5, Unit.CUP, True),
    )


@pytest.fixture
def omelette():
    return make_recipe(
        "Omelette",
        4,
        ("eggs", 3, Unit.PIECE),
        ("Butter", 1, Unit.TABLESPOON),
    )
