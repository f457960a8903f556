"""Recipe/Ingredient Store — idempotent inserts, conflicts, queries.

Invariants:
    - insert_if_absent/ensure create once and return False on every replay
    - A uniqueness race resolves to one row and no exception
    - Administrative create() on an existing key raises DuplicateKeyError
"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

import craftsync.models  # noqa: F401
from craftsync.core.domain_types import (
    GridSlot, GridSubmission, IngredientRef, RecipeSpec, Requirement,
)
from craftsync.core.errors import DuplicateKeyError, ResourceNotFoundError
from craftsync.core.grid_matching import match_grid
from craftsync.db.base import Base
from craftsync.infrastructure.database import DatabaseSessionManager
from craftsync.models.ingredient import Ingredient, IngredientData
from craftsync.models.recipe import Recipe, RecipeIngredient
from craftsync.services.recipe_store import RecipeFilters, RecipeStore

WORKBENCH = "0x2222222222222222222222222222222222222222"
TOKEN = "0x1111111111111111111111111111111111111111"


def _spec(recipe_id="7", name="", active=True):
    return RecipeSpec(
        ledger_recipe_id=recipe_id,
        output=IngredientRef(100, WORKBENCH),
        requirements=(
            Requirement(IngredientRef(5, WORKBENCH), 2, 0),
            Requirement(IngredientRef(6, WORKBENCH), 1, 4),
        ),
        name=name,
        active=active,
    )


async def _count(db, model):
    async with db.session() as s:
        return await s.scalar(select(func.count()).select_from(model))


# ─── Recipes ─────────────────────────────────────────────────────

async def test_insert_if_absent_creates_recipe_with_requirements(db, recipe_store):
    assert await recipe_store.insert_if_absent(_spec(), category="blockchain")

    recipe = await recipe_store.get("7")
    assert recipe.name == "Recipe 7"
    assert recipe.category == "blockchain"
    assert [(i.token_id, i.position, i.amount) for i in recipe.ingredients] == [
        (5, 0, 2), (6, 4, 1),
    ]
    assert await _count(db, RecipeIngredient) == 2


async def test_insert_if_absent_is_idempotent(db, recipe_store):
    assert await recipe_store.insert_if_absent(_spec())
    assert not await recipe_store.insert_if_absent(_spec())
    assert await _count(db, Recipe) == 1
    assert await _count(db, RecipeIngredient) == 2


async def test_uniqueness_race_resolves_to_one_row(db, recipe_store, monkeypatch):
    """A writer that lost the race sees the unique index, not an exception."""
    await recipe_store.insert_if_absent(_spec())

    calls = {"n": 0}
    original_exists = recipe_store.exists

    async def stale_then_real(ledger_recipe_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return False
        return await original_exists(ledger_recipe_id)

    monkeypatch.setattr(recipe_store, "exists", stale_then_real)

    assert await recipe_store.insert_if_absent(_spec()) is False
    assert await _count(db, Recipe) == 1


async def test_concurrent_inserts_on_shared_database(tmp_path):
    """Two writers on separate connections: one row, both calls succeed."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    db = DatabaseSessionManager.from_engine(engine)
    store = RecipeStore(db)
    try:
        results = await asyncio.gather(
            store.insert_if_absent(_spec()), store.insert_if_absent(_spec()),
        )
        assert results.count(True) == 1
        assert await _count(db, Recipe) == 1
    finally:
        await engine.dispose()


async def test_create_on_existing_key_raises_conflict(recipe_store):
    await recipe_store.create(_spec())
    with pytest.raises(DuplicateKeyError):
        await recipe_store.create(_spec())


async def test_get_unknown_recipe_raises_not_found(recipe_store):
    with pytest.raises(ResourceNotFoundError):
        await recipe_store.get("404")


async def test_set_active_is_the_one_mutation(recipe_store):
    await recipe_store.insert_if_absent(_spec())
    await recipe_store.set_active("7", False)
    assert (await recipe_store.get("7")).active is False
    assert await recipe_store.list_specs(active_only=True) == []


async def test_list_specs_returns_frozen_values(recipe_store):
    await recipe_store.insert_if_absent(_spec("7"))
    await recipe_store.insert_if_absent(_spec("8"))
    specs = await recipe_store.list_specs()
    assert [s.ledger_recipe_id for s in specs] == ["7", "8"]
    assert specs[0].requirements[1].position == 4
    assert specs[0].output.token_contract == WORKBENCH.lower()


async def test_contract_free_recipe_still_accepts_any_contract(db, recipe_store):
    recipe = RecipeSpec(
        ledger_recipe_id="9",
        output=IngredientRef(100),
        requirements=(Requirement(IngredientRef(5), 2, 0),),
    )
    submission = GridSubmission(1, (GridSlot(IngredientRef(5, TOKEN), 2),))
    assert match_grid(submission, [recipe]) == recipe

    await recipe_store.create(recipe)
    async with db.session() as s:
        stored = await s.scalar(select(RecipeIngredient.token_contract))
    assert stored is None

    [spec] = await recipe_store.list_specs()
    assert spec.output.token_contract is None
    assert spec.requirements[0].ingredient.token_contract is None
    assert match_grid(submission, [spec]) == spec


async def test_query_filters_and_paginates(recipe_store):
    await recipe_store.insert_if_absent(_spec("1", name="Iron Sword"), category="weapon", difficulty=3)
    await recipe_store.insert_if_absent(_spec("2", name="Iron Shield"), category="armor")
    await recipe_store.insert_if_absent(_spec("3", name="Torch"), category="tool")

    rows, total = await recipe_store.query(RecipeFilters(name="iron"))
    assert total == 2
    assert {r.ledger_recipe_id for r in rows} == {"1", "2"}

    rows, total = await recipe_store.query(RecipeFilters(category="weapon", difficulty=3))
    assert [r.ledger_recipe_id for r in rows] == ["1"]

    rows, total = await recipe_store.query(RecipeFilters(), page=2, limit=2)
    assert total == 3
    assert len(rows) == 1


async def test_name_filter_escapes_wildcards(recipe_store):
    await recipe_store.insert_if_absent(_spec("1", name="Iron Sword"))
    rows, total = await recipe_store.query(RecipeFilters(name="%"))
    assert total == 0


# ─── Ingredients ─────────────────────────────────────────────────

async def test_ensure_creates_once(db, ingredient_store):
    assert await ingredient_store.ensure(TOKEN, 5, {"name": "Iron Ore"})
    assert not await ingredient_store.ensure(TOKEN, 5, {"name": "Other"})
    assert (await ingredient_store.get(TOKEN, 5)).details["name"] == "Iron Ore"
    assert await _count(db, Ingredient) == 1


async def test_address_case_does_not_split_identity(ingredient_store):
    checksummed = "0xAbCdEf000000000000000000000000000000000A"
    await ingredient_store.ensure(checksummed, 5, {"name": "Iron Ore"})
    assert await ingredient_store.exists(checksummed.lower(), 5)
    assert not await ingredient_store.ensure(checksummed.lower(), 5, {"name": "Iron Ore"})


async def test_create_duplicate_ingredient_raises_conflict(ingredient_store):
    await ingredient_store.create(TOKEN, 5, {"name": "Iron Ore"})
    with pytest.raises(DuplicateKeyError):
        await ingredient_store.create(TOKEN, 5, {"name": "Iron Ore"})


async def test_delete_ingredient_removes_metadata(db, ingredient_store):
    await ingredient_store.create(TOKEN, 5, {"name": "Iron Ore"})
    await ingredient_store.delete(TOKEN, 5)
    assert await _count(db, Ingredient) == 0
    assert await _count(db, IngredientData) == 0


async def test_delete_unknown_ingredient_raises_not_found(ingredient_store):
    with pytest.raises(ResourceNotFoundError):
        await ingredient_store.delete(TOKEN, 99)


async def test_by_token_ids_keeps_contracts_apart(ingredient_store):
    await ingredient_store.ensure(TOKEN, 5, {"name": "Iron Ore"})
    await ingredient_store.ensure(WORKBENCH, 5, {"name": "Blueprint"})
    await ingredient_store.ensure(TOKEN, 6, {"name": "Coal"})
    found = await ingredient_store.by_token_ids([5, 7])
    assert sorted(found) == [(TOKEN, 5), (WORKBENCH, 5)]
    assert found[(WORKBENCH, 5)].details["name"] == "Blueprint"


async def test_update_metadata_replaces_details(ingredient_store):
    await ingredient_store.ensure(TOKEN, 5, {"name": "Iron Ore", "rarity": "common"})
    row = await ingredient_store.update_metadata(TOKEN, 5, {"name": "Iron"})
    assert row.details == {"name": "Iron"}
    assert (await ingredient_store.get(TOKEN, 5)).details == {"name": "Iron"}


async def test_update_unknown_ingredient_raises_not_found(ingredient_store):
    with pytest.raises(ResourceNotFoundError):
        await ingredient_store.update_metadata(TOKEN, 99, {"name": "x"})


async def test_ingredient_query_by_category_and_name(ingredient_store):
    await ingredient_store.ensure(TOKEN, 5, {"name": "Iron Ore", "category": "ore"})
    await ingredient_store.ensure(TOKEN, 6, {"name": "Coal", "category": "fuel"})
    rows, total = await ingredient_store.query(category="ore")
    assert total == 1 and rows[0].token_id == 5
    rows, total = await ingredient_store.query(name="co")
    assert [r.token_id for r in rows] == [6]
