"""Bag Matching — craftability verdicts and itemized shortfalls."""

from craftsync.core.bag_matching import craftable_from, required_totals, shortfalls
from craftsync.core.domain_types import (
    BagItem, IngredientRef, RecipeSpec, Requirement, Shortfall,
)

A = IngredientRef(5)
B = IngredientRef(6)
C = IngredientRef(7)


def _recipe(recipe_id, *reqs):
    return RecipeSpec(
        recipe_id, IngredientRef(100),
        tuple(Requirement(ing, amount, pos) for ing, amount, pos in reqs),
    )


AB = _recipe("1", (A, 2, 0), (B, 1, 1))


def test_superset_bag_is_craftable():
    bag = [BagItem(A, 3), BagItem(B, 1), BagItem(C, 5)]
    [verdict] = craftable_from(bag, [AB])
    assert verdict.craftable
    assert verdict.missing == ()


def test_absent_ingredient_reported_with_zero_available():
    [verdict] = craftable_from([BagItem(A, 5)], [AB])
    assert not verdict.craftable
    assert verdict.missing == (Shortfall(B, 1, 0),)
    assert verdict.missing[0].missing == 1


def test_partial_amount_shortfall():
    [verdict] = craftable_from([BagItem(A, 1), BagItem(B, 1)], [AB])
    assert verdict.missing == (Shortfall(A, 2, 1),)


def test_every_recipe_gets_a_verdict_in_order():
    other = _recipe("2", (C, 1, 0))
    verdicts = craftable_from([BagItem(C, 1)], [AB, other])
    assert [v.recipe.ledger_recipe_id for v in verdicts] == ["1", "2"]
    assert [v.craftable for v in verdicts] == [False, True]


def test_empty_bag_lists_all_requirements():
    assert [s.ingredient for s in shortfalls([], AB)] == [A, B]


def test_requirements_of_same_ingredient_are_summed():
    recipe = _recipe("3", (A, 2, 0), (A, 3, 4))
    assert required_totals(recipe) == [(A, 5)]
    assert shortfalls([BagItem(A, 4)], recipe) == (Shortfall(A, 5, 4),)


def test_bag_entries_of_same_ingredient_are_summed():
    recipe = _recipe("4", (A, 4, 0))
    assert shortfalls([BagItem(A, 2), BagItem(A, 2)], recipe) == ()


def test_contract_qualified_bag_item_matches_unqualified_requirement():
    qualified = IngredientRef(5, "0x1111111111111111111111111111111111111111")
    recipe = _recipe("5", (A, 1, 0))
    assert shortfalls([BagItem(qualified, 1)], recipe) == ()
