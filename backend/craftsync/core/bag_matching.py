"""Bag Matching — craftability preview for an unordered set of ingredients.

Invariants:
    - PURE: no IO, no side effects
    - Every recipe passed in gets exactly one verdict (craftable or itemized shortfall)
    - Shortfall is per ingredient: required - available, available = 0 when absent
    - Requirements naming the same ingredient at several positions are summed

Design Decisions:
    - Positions are ignored entirely: a bag has none
    - Bag entries of the same token id are summed before comparison
"""

from craftsync.core.domain_types import (
    BagItem, CraftabilityVerdict, IngredientRef, RecipeSpec, Shortfall,
)


def _available(bag: list[BagItem], ingredient: IngredientRef) -> int:
    return sum(
        item.amount for item in bag
        if item.amount > 0 and ingredient.matches(item.ingredient)
    )


def required_totals(recipe: RecipeSpec) -> list[tuple[IngredientRef, int]]:
    """Requirements aggregated per ingredient, in first-seen order."""
    totals: dict[IngredientRef, int] = {}
    for req in recipe.requirements:
        totals[req.ingredient] = totals.get(req.ingredient, 0) + req.amount
    return list(totals.items())


def shortfalls(bag: list[BagItem], recipe: RecipeSpec) -> tuple[Shortfall, ...]:
    missing = []
    for ingredient, required in required_totals(recipe):
        available = _available(bag, ingredient)
        if available < required:
            missing.append(Shortfall(ingredient, required, available))
    return tuple(missing)


def craftable_from(
    bag: list[BagItem], recipes: list[RecipeSpec],
) -> list[CraftabilityVerdict]:
    """One verdict per recipe, in the order given."""
    return [CraftabilityVerdict(recipe, shortfalls(bag, recipe)) for recipe in recipes]
