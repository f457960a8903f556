"""Crafting Service — ordering of validation and store reads, display names.

Invariants:
    - A malformed grid is rejected before the recipe store is touched
    - Display names come from the ingredient on the referenced contract
"""

import pytest

from craftsync.core.domain_types import (
    GridSlot, GridSubmission, IngredientRef, RecipeSpec, Requirement,
)
from craftsync.core.errors import DatabaseError, GridValidationError
from craftsync.services.crafting_service import CraftingService

from tests.services.fake_ledger import TOKEN_ADDRESS, WORKBENCH_ADDRESS

OTHER_ADDRESS = "0x4444444444444444444444444444444444444444"


class UnreachableRecipeStore:
    def __init__(self):
        self.calls = 0

    async def list_specs(self, active_only=False):
        self.calls += 1
        raise DatabaseError("connection refused", "execute")


async def test_malformed_grid_rejected_before_store_read():
    store = UnreachableRecipeStore()
    service = CraftingService(store, None)
    submission = GridSubmission(3, tuple(GridSlot() for _ in range(8)))

    with pytest.raises(GridValidationError):
        await service.craft(submission)
    assert store.calls == 0


async def test_well_formed_grid_reaches_the_store():
    store = UnreachableRecipeStore()
    service = CraftingService(store, None)

    with pytest.raises(DatabaseError):
        await service.craft(GridSubmission(1, (GridSlot(),)))
    assert store.calls == 1


async def test_names_follow_the_referenced_contract(recipe_store, ingredient_store):
    await ingredient_store.ensure(TOKEN_ADDRESS, 5, {"name": "Iron Ore"})
    await ingredient_store.ensure(OTHER_ADDRESS, 5, {"name": "Copper Ore"})
    service = CraftingService(recipe_store, ingredient_store)

    on_token = IngredientRef(5, TOKEN_ADDRESS)
    on_other = IngredientRef(5, OTHER_ADDRESS)
    names = await service.ingredient_names([on_token, on_other])
    assert names == {on_token: "Iron Ore", on_other: "Copper Ore"}


async def test_ambiguous_token_id_gets_no_name(recipe_store, ingredient_store):
    await ingredient_store.ensure(TOKEN_ADDRESS, 5, {"name": "Iron Ore"})
    await ingredient_store.ensure(OTHER_ADDRESS, 5, {"name": "Copper Ore"})
    service = CraftingService(recipe_store, ingredient_store)

    assert await service.ingredient_names([IngredientRef(5, WORKBENCH_ADDRESS)]) == {}


async def test_craft_names_requirements_on_workbench_from_token_contract(
    recipe_store, ingredient_store,
):
    await recipe_store.insert_if_absent(RecipeSpec(
        ledger_recipe_id="3",
        output=IngredientRef(100, WORKBENCH_ADDRESS),
        requirements=(Requirement(IngredientRef(5, WORKBENCH_ADDRESS), 1, 0),),
    ))
    await ingredient_store.ensure(TOKEN_ADDRESS, 5, {"name": "Iron Ore"})
    await ingredient_store.ensure(TOKEN_ADDRESS, 100, {"name": "Steel Ingot"})
    service = CraftingService(recipe_store, ingredient_store)

    result = await service.craft(
        GridSubmission(1, (GridSlot(IngredientRef(5), 1),)),
    )
    assert result["names"][IngredientRef(100, WORKBENCH_ADDRESS)] == "Steel Ingot"
    assert result["names"][IngredientRef(5, WORKBENCH_ADDRESS)] == "Iron Ore"
