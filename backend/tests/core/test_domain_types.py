"""Domain Types — ingredient identity, recipe shape helpers, enum values."""

from craftsync.core.domain_types import (
    GridSlot, IngredientRef, LedgerEventName, ListenerState, RecipeSpec,
    Requirement, Shortfall, SyncOutcome, MAX_GRID_CELLS, same_address,
)

CONTRACT = "0xAbCdEf0000000000000000000000000000000001"


def test_same_token_id_without_contract_matches():
    assert IngredientRef(5).matches(IngredientRef(5, CONTRACT))
    assert IngredientRef(5, CONTRACT).matches(IngredientRef(5))


def test_different_token_id_never_matches():
    assert not IngredientRef(5, CONTRACT).matches(IngredientRef(6, CONTRACT))


def test_contract_comparison_ignores_case():
    assert IngredientRef(5, CONTRACT).matches(IngredientRef(5, CONTRACT.lower()))


def test_different_contracts_do_not_match():
    other = "0x0000000000000000000000000000000000000002"
    assert not IngredientRef(5, CONTRACT).matches(IngredientRef(5, other))


def test_matches_none_is_false():
    assert not IngredientRef(5).matches(None)


def test_same_address_rejects_missing_side():
    assert not same_address(None, CONTRACT)
    assert same_address(CONTRACT.upper().replace("0X", "0x"), CONTRACT)


def test_recipe_fits_grid_by_max_position():
    recipe = RecipeSpec(
        "1", IngredientRef(9),
        (Requirement(IngredientRef(5), 1, 0), Requirement(IngredientRef(6), 1, 8)),
    )
    assert recipe.max_position == 8
    assert recipe.fits_grid(3)
    assert not recipe.fits_grid(2)


def test_recipe_without_requirements_fits_nothing():
    assert not RecipeSpec("1", IngredientRef(9), ()).fits_grid(5)


def test_total_required_sums_amounts():
    recipe = RecipeSpec(
        "1", IngredientRef(9),
        (Requirement(IngredientRef(5), 2, 0), Requirement(IngredientRef(6), 3, 1)),
    )
    assert recipe.total_required == 5


def test_empty_slot():
    assert GridSlot().is_empty
    assert not GridSlot(IngredientRef(1), 0).is_empty


def test_shortfall_missing_floors_at_zero():
    assert Shortfall(IngredientRef(1), 3, 1).missing == 2
    assert Shortfall(IngredientRef(1), 3, 7).missing == 0


def test_max_grid_cells_is_five_squared():
    assert MAX_GRID_CELLS == 25


def test_enums_serialize_to_strings():
    assert ListenerState.LISTENING.value == "listening"
    assert SyncOutcome.DUPLICATE.value == "duplicate"
    assert LedgerEventName.TRANSFER_BATCH == "TransferBatch"
