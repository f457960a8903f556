"""Event Projection — building recipes from ledger payloads, mint detection.

Tests:
    - Full payload zips the three arrays into positioned requirements
    - Every malformed payload raises DecodeError, never a partial recipe
    - Compact payload + createRecipe input produce the same shape
    - Only transfers from the zero address count as mints
"""

import pytest

from craftsync.core.domain_types import LedgerEvent, ZERO_ADDRESS
from craftsync.core.errors import DecodeError
from craftsync.core.event_projection import (
    build_requirements, has_full_recipe_payload, minted_token_ids,
    recipe_from_create_call, recipe_from_event,
)

WORKBENCH = "0x2222222222222222222222222222222222222222"
PLAYER = "0x3333333333333333333333333333333333333333"


def _full(recipe_id=7, output=100, ids=(5, 6), positions=(0, 4), amounts=(2, 1)):
    return LedgerEvent(
        name="RecipeCreated",
        args={
            "recipeId": recipe_id,
            "resultIngredientId": output,
            "ingredients": list(ids),
            "positions": list(positions),
            "amounts": list(amounts),
        },
        address=WORKBENCH,
        tx_hash="0xaa",
        block_number=1,
    )


def _compact(recipe_id=8, output=200):
    return LedgerEvent(
        name="RecipeCreated",
        args={"recipeId": recipe_id, "name": "Torch", "outputTokenId": output, "outputAmount": 4},
        address=WORKBENCH,
        tx_hash="0xbb",
    )


def test_full_payload_builds_positioned_requirements():
    recipe = recipe_from_event(_full())
    assert recipe.ledger_recipe_id == "7"
    assert recipe.output.token_id == 100
    assert [(r.ingredient.token_id, r.position, r.amount) for r in recipe.requirements] == [
        (5, 0, 2), (6, 4, 1),
    ]
    assert all(r.ingredient.token_contract == WORKBENCH for r in recipe.requirements)
    assert recipe.name == "Recipe 7"


def test_payload_shape_detection():
    assert has_full_recipe_payload(_full())
    assert not has_full_recipe_payload(_compact())


def test_mismatched_array_lengths_rejected():
    with pytest.raises(DecodeError, match="array lengths differ"):
        recipe_from_event(_full(amounts=(2,)))


def test_zero_requirements_rejected():
    with pytest.raises(DecodeError):
        recipe_from_event(_full(ids=(), positions=(), amounts=()))


def test_more_than_twenty_five_requirements_rejected():
    with pytest.raises(DecodeError):
        build_requirements(list(range(26)), list(range(26)), [1] * 26, WORKBENCH)


def test_position_outside_largest_grid_rejected():
    with pytest.raises(DecodeError, match="outside the grid"):
        recipe_from_event(_full(positions=(0, 25)))


def test_duplicate_position_rejected():
    with pytest.raises(DecodeError, match="used twice"):
        recipe_from_event(_full(positions=(3, 3)))


def test_zero_amount_rejected():
    with pytest.raises(DecodeError):
        recipe_from_event(_full(amounts=(0, 1)))


def test_missing_recipe_id_rejected():
    event = LedgerEvent(name="RecipeCreated", args={}, address=WORKBENCH)
    with pytest.raises(DecodeError, match="recipeId"):
        recipe_from_event(event)


def test_decode_error_carries_event_coordinates():
    with pytest.raises(DecodeError) as exc:
        recipe_from_event(_full(positions=(1, 1)))
    assert exc.value.context.tx_hash == "0xaa"
    assert exc.value.context.recipe_id == "7"
    assert exc.value.code == "EVENT_DECODE_ERROR"


def test_compact_payload_with_create_call():
    call = {
        "ingredients": [(5, 2, 0), (6, 1, 4)],
        "outputTokenId": 200,
        "outputAmount": 4,
        "requiresExactPattern": False,
        "name": "Torch",
    }
    recipe = recipe_from_create_call(_compact(), call)
    assert recipe.ledger_recipe_id == "8"
    assert recipe.name == "Torch"
    assert recipe.output_amount == 4
    assert recipe.requires_exact_pattern is False
    assert [(r.ingredient.token_id, r.amount, r.position) for r in recipe.requirements] == [
        (5, 2, 0), (6, 1, 4),
    ]


def test_create_call_disagreeing_with_event_rejected():
    call = {"ingredients": [(5, 1, 0)], "outputTokenId": 999}
    with pytest.raises(DecodeError, match="disagrees"):
        recipe_from_create_call(_compact(), call)


def test_incomplete_create_call_rejected():
    with pytest.raises(DecodeError, match="incomplete"):
        recipe_from_create_call(_compact(), {"ingredients": [(5,)], "outputTokenId": 200})


def _transfer(sender, **args):
    return LedgerEvent(
        name="TransferBatch",
        args={"operator": PLAYER, "from": sender, "to": PLAYER, **args},
        address=WORKBENCH,
    )


def test_batch_mint_yields_distinct_ids_in_order():
    event = _transfer(ZERO_ADDRESS, ids=[6, 5, 6], values=[1, 1, 1])
    assert minted_token_ids(event) == [6, 5]


def test_single_mint_yields_its_id():
    event = _transfer(ZERO_ADDRESS, id=9, value=1)
    assert minted_token_ids(event) == [9]


def test_player_transfer_is_not_a_mint():
    assert minted_token_ids(_transfer(PLAYER, ids=[5], values=[1])) == []


def test_mint_without_ids_rejected():
    with pytest.raises(DecodeError):
        minted_token_ids(_transfer(ZERO_ADDRESS))
