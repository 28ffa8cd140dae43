"""
Recipe preparation against the inventory ledger.

Preparation is a two-phase protocol: ``validate`` checks every required
ingredient without touching the ledger, and ``commit`` re-validates and only
then deducts. A failed validation never mutates anything.
"""

import logging
import math

from kitchen_common.config import KitchenSettings, get_settings
from kitchen_common.ledger import ZERO_TOLERANCE, InventoryLedger
from kitchen_common.matching import suggest_names
from kitchen_common.models import (
    DeductedIngredient,
    FailureReason,
    MissingIngredient,
    PreparationCheck,
    PreparationResult,
    Recipe,
    RecipeIngredient,
    RecipeInventoryAnalysis,
)
from kitchen_common.units import convert_unit


logger = logging.getLogger(__name__)


def scaled_need(ingredient: RecipeIngredient, recipe: Recipe, servings: float) -> float:
    """Quantity of ``ingredient`` required for ``servings`` portions."""
    return (ingredient.quantity / recipe.default_servings) * servings


def describe_missing(missing: MissingIngredient) -> str:
    """Human-readable explanation of why an ingredient is missing."""
    unit = missing.unit.value
    if missing.reason == FailureReason.NOT_FOUND:
        return f"{missing.name}: not in inventory (need {missing.needed:g} {unit})"
    if missing.reason == FailureReason.INCOMPATIBLE_UNITS:
        return f"{missing.name}: stock cannot be measured in {unit}"
    return (
        f"{missing.name}: need {missing.needed:g} {unit}, "
        f"only {missing.available:g} {unit} available"
    )


class PreparationPlanner:
    """
    Validates and performs recipe preparation.

    Args:
        ledger: Inventory to check and deduct from
        settings: Thresholds; defaults to ``get_settings()``
    """

    def __init__(
        self,
        ledger: InventoryLedger,
        settings: KitchenSettings | None = None,
    ):
        self._ledger = ledger
        self._settings = settings or get_settings()

    def validate(self, recipe: Recipe, requested_servings: float) -> PreparationCheck:
        """
        Check whether the active inventory covers a recipe.

        Every required ingredient is matched by normalised name and its
        stock converted into the recipe's unit. An ingredient is missing
        when no record exists, when the units cannot be converted, or when
        the stock falls short.

        Args:
            recipe: Recipe to prepare
            requested_servings: Number of portions

        Returns:
            PreparationCheck; ``can_prepare`` is True iff nothing is missing
        """
        missing: list[MissingIngredient] = []
        warnings: list[str] = []

        for ingredient in recipe.required_ingredients:
            needed = scaled_need(ingredient, recipe, requested_servings)
            item = self._ledger.lookup_active(ingredient.key, ingredient.unit)

            if item is None:
                missing.append(
                    MissingIngredient(
                        name=ingredient.ingredient_name,
                        needed=needed,
                        available=0.0,
                        unit=ingredient.unit,
                        reason=FailureReason.NOT_FOUND,
                    )
                )
                hints = suggest_names(
                    ingredient.ingredient_name,
                    self._ledger.active_names(),
                    threshold=self._settings.suggestion_threshold,
                )
                if hints:
                    warnings.append(
                        f"No {ingredient.ingredient_name} in inventory; "
                        f"did you mean {', '.join(hints)}?"
                    )
                continue

            available = convert_unit(item.quantity, item.unit, ingredient.unit)
            if available is None:
                warnings.append(
                    f"Cannot convert {item.unit.value} to {ingredient.unit.value} "
                    f"for {ingredient.ingredient_name}"
                )
                missing.append(
                    MissingIngredient(
                        name=ingredient.ingredient_name,
                        needed=needed,
                        available=0.0,
                        unit=ingredient.unit,
                        reason=FailureReason.INCOMPATIBLE_UNITS,
                    )
                )
                continue

            if available + ZERO_TOLERANCE < needed:
                missing.append(
                    MissingIngredient(
                        name=ingredient.ingredient_name,
                        needed=needed,
                        available=available,
                        unit=ingredient.unit,
                        reason=FailureReason.INSUFFICIENT_QUANTITY,
                    )
                )

        return PreparationCheck(
            can_prepare=not missing,
            missing_ingredients=missing,
            warnings=warnings,
        )

    def commit(self, recipe: Recipe, prepared_servings: float) -> PreparationResult:
        """
        Deduct a prepared recipe's ingredients from the inventory.

        Re-runs ``validate`` first and changes nothing if it fails. After a
        passing validation each required ingredient is deducted on its own;
        a failure on one ingredient is reported and the others still go
        ahead. Optional ingredients are never deducted.

        Returns:
            PreparationResult; ``success`` is False if any error occurred
        """
        check = self.validate(recipe, prepared_servings)
        if not check.can_prepare:
            logger.info(
                "Not preparing %s: %d ingredient(s) missing",
                recipe.name,
                len(check.missing_ingredients),
            )
            return PreparationResult(
                success=False,
                errors=[describe_missing(m) for m in check.missing_ingredients],
            )

        deducted: list[DeductedIngredient] = []
        errors: list[str] = []

        for ingredient in recipe.required_ingredients:
            needed = scaled_need(ingredient, recipe, prepared_servings)
            if needed <= 0:
                continue

            result = self._ledger.deduct(ingredient.key, needed, ingredient.unit)
            if not result.success or result.item is None:
                reason = result.reason.value if result.reason else "unknown"
                errors.append(f"Could not deduct {ingredient.ingredient_name}: {reason}")
                continue

            deducted.append(
                DeductedIngredient(
                    name=ingredient.ingredient_name,
                    amount_deducted=needed,
                    unit=ingredient.unit,
                    remaining_in_inventory=result.item.quantity,
                    inventory_unit=result.item.unit,
                )
            )

        if errors:
            logger.warning("Partial preparation of %s: %s", recipe.name, "; ".join(errors))
        else:
            logger.info("Prepared %s x%s", recipe.name, prepared_servings)

        return PreparationResult(
            success=not errors,
            deducted_ingredients=deducted,
            errors=errors,
        )

    def max_servings(self, recipe: Recipe) -> float:
        """
        Largest whole number of servings the inventory supports.

        Returns ``math.inf`` when no required ingredient limits the recipe.
        """
        best = math.inf
        for ingredient in recipe.required_ingredients:
            item = self._ledger.lookup_active(ingredient.key, ingredient.unit)
            if item is None:
                return 0
            available = convert_unit(item.quantity, item.unit, ingredient.unit)
            if available is None:
                return 0
            if ingredient.quantity <= 0:
                continue
            servings = math.floor(
                (available + ZERO_TOLERANCE) * recipe.default_servings / ingredient.quantity
            )
            best = min(best, servings)
        return best

    def analyze(
        self,
        recipe: Recipe,
        servings: float | None = None,
    ) -> RecipeInventoryAnalysis:
        """
        Summarise how much of a recipe the inventory covers.

        Args:
            recipe: Recipe to analyse
            servings: Target portions; defaults to the recipe's servings
        """
        target = servings if servings is not None else recipe.default_servings
        required = recipe.required_ingredients

        if not required:
            return RecipeInventoryAnalysis(
                recipe_id=recipe.id,
                total_ingredients=0,
                available_ingredients=0,
                completion_percentage=100,
                max_possible_servings=math.inf,
                has_all_ingredients=True,
            )

        check = self.validate(recipe, target)
        available_count = len(required) - len(check.missing_ingredients)

        return RecipeInventoryAnalysis(
            recipe_id=recipe.id,
            total_ingredients=len(required),
            available_ingredients=available_count,
            missing_ingredients=check.missing_ingredients,
            completion_percentage=round(available_count / len(required) * 100),
            max_possible_servings=self.max_servings(recipe),
            has_all_ingredients=check.can_prepare,
        )
