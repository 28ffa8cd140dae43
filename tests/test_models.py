"""
Tests for kitchen-common models.
"""

import math
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from kitchen_common.models import (
    InventoryItem,
    Recipe,
    RecipeIngredient,
    RecipeInventoryAnalysis,
    RecipeSelection,
    ShoppingList,
    ShoppingListItem,
    ShoppingListStatus,
)
from kitchen_common.units import Unit

from conftest import NOW, TODAY, make_recipe


def make_item(**overrides) -> InventoryItem:
    fields = {
        "id": "inv-1",
        "ingredient_name": "Flour",
        "quantity": 2.0,
        "unit": Unit.CUP,
        "added_date": NOW,
        "last_updated": NOW,
    }
    fields.update(overrides)
    return InventoryItem(**fields)


class TestInventoryItem:
    """Tests for InventoryItem model."""

    def test_name_is_normalised(self):
        item = make_item(ingredient_name="  Cherry Tomatoes ")
        assert item.ingredient_name == "cherry tomato"

    def test_camel_case_aliases(self):
        item = InventoryItem.model_validate(
            {
                "id": "inv-2",
                "ingredientName": "Eggs",
                "quantity": 6,
                "unit": "piece",
                "isArchived": False,
                "addedDate": NOW.isoformat(),
                "lastUpdated": NOW.isoformat(),
                "lowStockThreshold": 4,
            }
        )
        assert item.ingredient_name == "egg"
        assert item.low_stock_threshold == 4
        assert item.model_dump(by_alias=True)["ingredientName"] == "egg"

    def test_frozen(self):
        item = make_item()
        with pytest.raises(PydanticValidationError):
            item.quantity = 5

    def test_negative_quantity_rejected(self):
        with pytest.raises(PydanticValidationError):
            make_item(quantity=-1)

    def test_archived_requires_zero(self):
        with pytest.raises(PydanticValidationError):
            make_item(is_archived=True, quantity=1)

    def test_is_low_stock(self):
        assert make_item(quantity=1, low_stock_threshold=2).is_low_stock
        assert not make_item(quantity=3, low_stock_threshold=2).is_low_stock
        assert not make_item(quantity=0).is_low_stock

    def test_expiry(self):
        item = make_item(expiration_date=date(2026, 1, 15))
        assert not item.expired_on(TODAY)
        assert item.is_expiring_soon(7, today=TODAY)
        assert not item.is_expiring_soon(3, today=TODAY)
        assert item.expired_on(date(2026, 1, 16))

    def test_no_expiration_date(self):
        item = make_item()
        assert not item.is_expired
        assert not item.is_expiring_soon(today=TODAY)


class TestRecipe:
    """Tests for Recipe and RecipeSelection models."""

    def test_required_and_optional(self, pancakes):
        assert [i.key for i in pancakes.required_ingredients] == ["flour", "milk", "egg"]
        assert [i.key for i in pancakes.optional_ingredients] == ["blueberry"]

    def test_default_servings_positive(self):
        with pytest.raises(PydanticValidationError):
            Recipe(id="r", name="Empty", default_servings=0)

    def test_ingredient_key(self):
        line = RecipeIngredient(ingredient_name="Bay Leaves", quantity=2, unit=Unit.PIECE)
        assert line.key == "bay leaf"

    def test_selection_defaults_to_recipe_servings(self, pancakes):
        selection = RecipeSelection(recipe=pancakes)
        assert selection.servings == 4
        assert selection.scale_factor == 1.0

    def test_selection_scale_factor(self, pancakes):
        selection = RecipeSelection(recipe=pancakes, target_servings=6)
        assert selection.scale_factor == 1.5

    def test_selection_optional_normalised(self, pancakes):
        selection = RecipeSelection(recipe=pancakes, selected_optional=["Blueberries"])
        assert selection.selected_optional == frozenset({"blueberry"})
        assert selection.includes(pancakes.optional_ingredients[0])

    def test_optional_excluded_by_default(self, pancakes):
        selection = RecipeSelection(recipe=pancakes)
        assert not selection.includes(pancakes.optional_ingredients[0])
        assert all(selection.includes(i) for i in pancakes.required_ingredients)


class TestShoppingList:
    """Tests for the shopping list status invariant."""

    def _item(self, purchased: bool) -> ShoppingListItem:
        return ShoppingListItem(
            id="item",
            ingredient_name="milk",
            needed_quantity=1,
            unit=Unit.CUP,
            purchased=purchased,
        )

    def test_active_with_pending_items(self):
        lst = ShoppingList(id="l", name="Week", created_at=NOW, items=[self._item(False)])
        assert lst.status == ShoppingListStatus.ACTIVE
        assert not lst.is_complete
        assert len(lst.pending_items) == 1

    def test_active_but_complete_rejected(self):
        with pytest.raises(PydanticValidationError):
            ShoppingList(id="l", name="Week", created_at=NOW, items=[self._item(True)])

    def test_completed_requires_items(self):
        with pytest.raises(PydanticValidationError):
            ShoppingList(
                id="l",
                name="Week",
                created_at=NOW,
                status=ShoppingListStatus.COMPLETED,
            )

    @pytest.mark.parametrize("name", ["", "   "])
    def test_item_name_required(self, name):
        with pytest.raises(PydanticValidationError):
            ShoppingListItem(id="item", ingredient_name=name, needed_quantity=1)


class TestRecipeInventoryAnalysis:
    """Tests for readiness labels."""

    @pytest.mark.parametrize(
        "percentage,label",
        [
            (100, "ready"),
            (80, "mostly-ready"),
            (75, "mostly-ready"),
            (50, "partially-ready"),
            (49, "not-ready"),
            (0, "not-ready"),
        ],
    )
    def test_readiness(self, percentage, label):
        analysis = RecipeInventoryAnalysis(
            recipe_id="r",
            total_ingredients=4,
            available_ingredients=0,
            completion_percentage=percentage,
            max_possible_servings=0,
            has_all_ingredients=percentage == 100,
        )
        assert analysis.readiness == label

    def test_unbounded(self):
        analysis = RecipeInventoryAnalysis(
            recipe_id="r",
            total_ingredients=0,
            available_ingredients=0,
            completion_percentage=100,
            max_possible_servings=math.inf,
            has_all_ingredients=True,
        )
        assert analysis.is_unbounded


def test_make_recipe_helper():
    recipe = make_recipe("Toast", 2, ("Bread", 2, Unit.PIECE))
    assert recipe.id == "toast"
    assert recipe.ingredients[0].unit == Unit.PIECE
