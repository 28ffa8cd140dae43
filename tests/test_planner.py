"""
Tests for recipe preparation planning.
"""

import math

import pytest

from kitchen_common.models import FailureReason
from kitchen_common.planner import PreparationPlanner, describe_missing
from kitchen_common.units import Unit

from conftest import make_recipe


@pytest.fixture
def planner(ledger, settings):
    return PreparationPlanner(ledger, settings=settings)


class TestValidate:
    """Tests for the read-only preparation check."""

    def test_insufficient_eggs(self, ledger, planner, omelette):
        ledger.upsert("eggs", 2, Unit.PIECE)
        ledger.upsert("butter", 10, Unit.TABLESPOON)

        check = planner.validate(omelette, 6)

        assert not check.can_prepare
        assert len(check.missing_ingredients) == 1
        missing = check.missing_ingredients[0]
        assert missing.name == "eggs"
        assert missing.needed == 4.5
        assert missing.available == 2
        assert missing.unit == Unit.PIECE
        assert missing.reason == FailureReason.INSUFFICIENT_QUANTITY

    def test_can_prepare(self, ledger, planner, omelette):
        ledger.upsert("eggs", 12, Unit.PIECE)
        ledger.upsert("butter", 0.5, Unit.CUP)
        check = planner.validate(omelette, 4)
        assert check.can_prepare
        assert check.missing_ingredients == []

    def test_not_found(self, planner, omelette):
        check = planner.validate(omelette, 4)
        reasons = {m.name: m.reason for m in check.missing_ingredients}
        assert reasons == {
            "eggs": FailureReason.NOT_FOUND,
            "Butter": FailureReason.NOT_FOUND,
        }
        assert all(m.available == 0 for m in check.missing_ingredients)

    def test_plural_stock_matches_by_name(self, ledger, planner, omelette):
        ledger.upsert("eggs", 12, Unit.PIECE)
        ledger.upsert("Butters", 1, Unit.GRAM)
        check = planner.validate(omelette, 4)
        assert check.missing_ingredients[0].reason == FailureReason.INCOMPATIBLE_UNITS

    def test_did_you_mean(self, ledger, planner):
        recipe = make_recipe("Salad", 1, ("tomatoe", 1, Unit.PIECE))
        ledger.upsert("tomato", 3, Unit.PIECE)
        check = planner.validate(recipe, 1)
        assert check.missing_ingredients[0].reason == FailureReason.NOT_FOUND
        assert any("did you mean tomato" in w for w in check.warnings)

    def test_incompatible_units(self, ledger, planner):
        recipe = make_recipe("Bread", 1, ("flour", 2, Unit.CUP))
        ledger.upsert("flour", 1000, Unit.GRAM)
        check = planner.validate(recipe, 1)
        missing = check.missing_ingredients[0]
        assert missing.reason == FailureReason.INCOMPATIBLE_UNITS
        assert missing.available == 0
        assert len(check.warnings) == 1

    def test_converts_stock_into_recipe_unit(self, ledger, planner):
        recipe = make_recipe("Tea", 1, ("milk", 1, Unit.CUP))
        ledger.upsert("milk", 473.176, Unit.MILLILITER)
        check = planner.validate(recipe, 2)
        assert check.can_prepare

    def test_optional_ingredients_ignored(self, ledger, planner, pancakes):
        ledger.upsert("flour", 5, Unit.CUP)
        ledger.upsert("milk", 5, Unit.CUP)
        ledger.upsert("eggs", 6, Unit.PIECE)
        assert planner.validate(pancakes, 4).can_prepare

    def test_does_not_mutate(self, ledger, planner, omelette):
        ledger.upsert("eggs", 2, Unit.PIECE)
        before = ledger.items()
        planner.validate(omelette, 6)
        assert ledger.items() == before


class TestCommit:
    """Tests for deducting a prepared recipe."""

    def test_failed_validation_changes_nothing(self, ledger, planner, omelette):
        ledger.upsert("eggs", 2, Unit.PIECE)
        ledger.upsert("butter", 10, Unit.TABLESPOON)
        before = ledger.items()

        result = planner.commit(omelette, 6)

        assert not result.success
        assert result.deducted_ingredients == []
        assert len(result.errors) == 1
        assert "eggs" in result.errors[0]
        assert ledger.items() == before

    def test_double_servings_archives_exhausted(self, ledger, planner, omelette):
        ledger.upsert("eggs", 6, Unit.PIECE)
        ledger.upsert("butter", 0.25, Unit.CUP)

        result = planner.commit(omelette, 8)

        assert result.success
        assert result.errors == []
        deducted = {d.name: d for d in result.deducted_ingredients}
        assert deducted["eggs"].amount_deducted == 6
        assert deducted["eggs"].remaining_in_inventory == 0
        assert deducted["Butter"].unit == Unit.TABLESPOON
        assert deducted["Butter"].inventory_unit == Unit.CUP
        assert abs(deducted["Butter"].remaining_in_inventory - (0.25 - 2 * 14.7868 / 236.588)) < 1e-6

        eggs = ledger.lookup_any("eggs")
        assert eggs.is_archived
        assert eggs.original_quantity == 6
        assert ledger.lookup_active("butter") is not None

    def test_optional_never_deducted(self, ledger, planner, pancakes):
        ledger.upsert("flour", 5, Unit.CUP)
        ledger.upsert("milk", 5, Unit.CUP)
        ledger.upsert("eggs", 6, Unit.PIECE)
        ledger.upsert("blueberries", 2, Unit.CUP)

        result = planner.commit(pancakes, 4)

        assert result.success
        assert ledger.lookup_active("blueberry").quantity == 2
        assert {d.name for d in result.deducted_ingredients} == {"Flour", "Milk", "Eggs"}

    def test_repeated_ingredient_partially_applied(self, ledger, planner):
        """Known limitation: atomicity is only guaranteed at validation.

        An ingredient listed twice is validated line by line, so both lines
        pass on their own; the second deduction then clamps at zero instead
        of being rejected.
        """
        recipe = make_recipe(
            "Frittata",
            1,
            ("eggs", 4, Unit.PIECE),
            ("cheese", 1, Unit.CUP),
            ("eggs", 4, Unit.PIECE),
        )
        ledger.upsert("eggs", 6, Unit.PIECE)
        ledger.upsert("cheese", 2, Unit.CUP)

        result = planner.commit(recipe, 1)

        assert result.success
        assert len(result.deducted_ingredients) == 3
        assert ledger.lookup_active("cheese").quantity == 1
        assert ledger.lookup_active("eggs") is None


class TestAnalyze:
    """Tests for recipe coverage analysis."""

    def test_fully_stocked(self, ledger, planner, omelette):
        ledger.upsert("eggs", 12, Unit.PIECE)
        ledger.upsert("butter", 0.5, Unit.CUP)
        analysis = planner.analyze(omelette)
        assert analysis.has_all_ingredients
        assert analysis.completion_percentage == 100
        assert analysis.readiness == "ready"
        # eggs limit the recipe: 12 * 4 / 3
        assert analysis.max_possible_servings == 16

    def test_partial(self, ledger, planner, omelette):
        ledger.upsert("eggs", 1, Unit.PIECE)
        analysis = planner.analyze(omelette)
        assert analysis.total_ingredients == 2
        assert analysis.available_ingredients == 0
        assert analysis.completion_percentage == 0
        assert analysis.max_possible_servings == 0
        eggs = next(m for m in analysis.missing_ingredients if m.name == "eggs")
        assert eggs.available == 1

    def test_half_available(self, ledger, planner, omelette):
        ledger.upsert("eggs", 3, Unit.PIECE)
        analysis = planner.analyze(omelette)
        assert analysis.completion_percentage == 50
        assert analysis.readiness == "partially-ready"
        assert analysis.max_possible_servings == 0

    def test_no_required_ingredients(self, planner):
        recipe = make_recipe("Garnish", 1, ("parsley", 1, Unit.PIECE, True))
        analysis = planner.analyze(recipe)
        assert analysis.is_unbounded
        assert math.isinf(analysis.max_possible_servings)
        assert analysis.readiness == "ready"


def test_describe_missing(ledger, planner, omelette):
    ledger.upsert("eggs", 2, Unit.PIECE)
    check = planner.validate(omelette, 6)
    messages = [describe_missing(m) for m in check.missing_ingredients]
    assert messages[0] == "eggs: need 4.5 piece, only 2 piece available"
    assert messages[1] == "Butter: not in inventory (need 1.5 tbsp)"
