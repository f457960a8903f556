"""Recipe/Ingredient Store — SQLAlchemy-backed repositories for the ledger projection.

Invariants:
    - Each write runs in its own session/transaction: a recipe and its requirements
      commit together or not at all
    - insert_if_absent/ensure are idempotent: a natural-key uniqueness violation that
      turns out to be a replay returns False, never raises
    - create() (administrative path) raises DuplicateKeyError on an existing natural key
    - Contract addresses are stored lower-cased so the compound unique index is
      case-insensitive in practice; a recipe reference with no contract is stored
      as NULL and reads back as "any contract"
    - list_specs() iterates in a fixed order: created_at, then ledger id

Design Decisions:
    - No application-level lock: the unique indexes are the concurrency guard
    - After a DuplicateKeyError the natural key is re-read; only a confirmed row
      makes it a replay, anything else (check/FK violation) propagates
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select

from craftsync.core.domain_types import RecipeSpec
from craftsync.core.errors import DuplicateKeyError, ResourceNotFoundError
from craftsync.infrastructure.database import DatabaseSessionManager
from craftsync.models.ingredient import Ingredient, IngredientData
from craftsync.models.recipe import Recipe, RecipeIngredient

logger = logging.getLogger(__name__)


def _addr(address: str | None) -> str | None:
    return address.lower() if address else None


def _select_ingredient(token_contract: str, token_id: int):
    return select(Ingredient).where(
        Ingredient.token_contract == _addr(token_contract),
        Ingredient.token_id == token_id,
    )


@dataclass
class RecipeFilters:
    """Listing filters; None means 'no constraint'."""
    ledger_recipe_id: str | None = None
    output_token_id: int | None = None
    output_token_contract: str | None = None
    category: str | None = None
    name: str | None = None
    difficulty: int | None = None
    active: bool | None = None


class RecipeStore:
    """Recipe repository over a DatabaseSessionManager."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def exists(self, ledger_recipe_id: str) -> bool:
        async with self._db.session() as s:
            found = await s.scalar(
                select(Recipe.id).where(Recipe.ledger_recipe_id == ledger_recipe_id),
            )
        return found is not None

    async def get(self, ledger_recipe_id: str) -> Recipe:
        async with self._db.session() as s:
            recipe = await s.scalar(
                select(Recipe).where(Recipe.ledger_recipe_id == ledger_recipe_id),
            )
        if recipe is None:
            raise ResourceNotFoundError("Recipe", ledger_recipe_id)
        return recipe

    async def insert_if_absent(self, recipe: RecipeSpec, **listing) -> bool:
        """Persist a recipe unless its natural key is already known.

        Returns True when this call created the row, False when it already existed.
        """
        if await self.exists(recipe.ledger_recipe_id):
            return False
        try:
            await self._insert(recipe, listing)
        except DuplicateKeyError:
            if await self.exists(recipe.ledger_recipe_id):
                logger.info(
                    "Recipe inserted concurrently, treating as synced",
                    extra={"recipe_id": recipe.ledger_recipe_id},
                )
                return False
            raise
        return True

    async def create(self, recipe: RecipeSpec, **listing) -> Recipe:
        """Administrative create; an existing natural key is a conflict."""
        try:
            return await self._insert(recipe, listing)
        except DuplicateKeyError:
            raise DuplicateKeyError(
                f"Recipe '{recipe.ledger_recipe_id}' already exists",
            )

    async def _insert(self, recipe: RecipeSpec, listing: dict) -> Recipe:
        row = Recipe(
            ledger_recipe_id=recipe.ledger_recipe_id,
            output_token_contract=_addr(recipe.output.token_contract),
            output_token_id=recipe.output.token_id,
            output_amount=recipe.output_amount,
            requires_exact_pattern=recipe.requires_exact_pattern,
            active=recipe.active,
            name=recipe.name or f"Recipe {recipe.ledger_recipe_id}",
            description=listing.get("description"),
            category=listing.get("category"),
            difficulty=listing.get("difficulty", 1),
            crafting_time=listing.get("crafting_time", 0),
            ingredients=[
                RecipeIngredient(
                    token_contract=_addr(req.ingredient.token_contract),
                    token_id=req.ingredient.token_id,
                    amount=req.amount,
                    position=req.position,
                )
                for req in recipe.requirements
            ],
        )
        async with self._db.session() as s:
            s.add(row)
            await s.commit()
        return row

    async def set_active(self, ledger_recipe_id: str, active: bool) -> Recipe:
        async with self._db.session() as s:
            recipe = await s.scalar(
                select(Recipe).where(Recipe.ledger_recipe_id == ledger_recipe_id),
            )
            if recipe is None:
                raise ResourceNotFoundError("Recipe", ledger_recipe_id)
            recipe.active = active
            await s.commit()
        return recipe

    async def list_specs(self, active_only: bool = False) -> list[RecipeSpec]:
        stmt = select(Recipe).order_by(Recipe.created_at, Recipe.ledger_recipe_id)
        if active_only:
            stmt = stmt.where(Recipe.active.is_(True))
        async with self._db.session() as s:
            rows = (await s.scalars(stmt)).all()
        return [row.to_spec() for row in rows]

    async def query(
        self, filters: RecipeFilters, page: int = 1, limit: int = 50,
    ) -> tuple[list[Recipe], int]:
        """Paginated, filtered listing. Newest first."""
        conditions = []
        if filters.ledger_recipe_id is not None:
            conditions.append(Recipe.ledger_recipe_id == filters.ledger_recipe_id)
        if filters.output_token_id is not None:
            conditions.append(Recipe.output_token_id == filters.output_token_id)
        if filters.output_token_contract is not None:
            conditions.append(
                Recipe.output_token_contract == _addr(filters.output_token_contract),
            )
        if filters.category is not None:
            conditions.append(Recipe.category == filters.category)
        if filters.name:
            conditions.append(Recipe.name.icontains(filters.name, autoescape=True))
        if filters.difficulty is not None:
            conditions.append(Recipe.difficulty == filters.difficulty)
        if filters.active is not None:
            conditions.append(Recipe.active.is_(filters.active))

        stmt = (
            select(Recipe).where(*conditions)
            .order_by(Recipe.created_at.desc(), Recipe.ledger_recipe_id)
            .offset((page - 1) * limit).limit(limit)
        )
        count = select(func.count()).select_from(Recipe).where(*conditions)
        async with self._db.session() as s:
            rows = (await s.scalars(stmt)).all()
            total = await s.scalar(count)
        return list(rows), total or 0


class IngredientStore:
    """Ingredient repository over a DatabaseSessionManager."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def exists(self, token_contract: str, token_id: int) -> bool:
        async with self._db.session() as s:
            found = await s.scalar(
                select(Ingredient.id).where(
                    Ingredient.token_contract == _addr(token_contract),
                    Ingredient.token_id == token_id,
                ),
            )
        return found is not None

    async def get(self, token_contract: str, token_id: int) -> Ingredient:
        async with self._db.session() as s:
            ingredient = await s.scalar(_select_ingredient(token_contract, token_id))
        if ingredient is None:
            raise ResourceNotFoundError("Ingredient", f"{token_contract}:{token_id}")
        return ingredient

    async def ensure(
        self, token_contract: str, token_id: int, metadata: dict,
    ) -> bool:
        """Idempotent create. True when this call created the row."""
        if await self.exists(token_contract, token_id):
            return False
        try:
            await self._insert(token_contract, token_id, metadata)
        except DuplicateKeyError:
            if await self.exists(token_contract, token_id):
                return False
            raise
        return True

    async def create(
        self, token_contract: str, token_id: int, metadata: dict,
    ) -> Ingredient:
        """Administrative create; an existing (contract, token id) is a conflict."""
        try:
            return await self._insert(token_contract, token_id, metadata)
        except DuplicateKeyError:
            raise DuplicateKeyError(
                "Ingredient with this token_contract and token_id already exists",
            )

    async def _insert(
        self, token_contract: str, token_id: int, metadata: dict,
    ) -> Ingredient:
        row = Ingredient(
            token_contract=_addr(token_contract),
            token_id=token_id,
            data=IngredientData(details=dict(metadata)),
        )
        async with self._db.session() as s:
            s.add(row)
            await s.commit()
        return row

    async def update_metadata(
        self, token_contract: str, token_id: int, metadata: dict,
    ) -> Ingredient:
        """Administrative metadata replace; the token identity never changes."""
        async with self._db.session() as s:
            ingredient = await s.scalar(_select_ingredient(token_contract, token_id))
            if ingredient is None:
                raise ResourceNotFoundError(
                    "Ingredient", f"{token_contract}:{token_id}",
                )
            ingredient.data.details = dict(metadata)
            await s.commit()
        return ingredient

    async def delete(self, token_contract: str, token_id: int) -> None:
        """Administrative delete; metadata goes with it."""
        async with self._db.session() as s:
            ingredient = await s.scalar(_select_ingredient(token_contract, token_id))
            if ingredient is None:
                raise ResourceNotFoundError(
                    "Ingredient", f"{token_contract}:{token_id}",
                )
            await s.delete(ingredient)
            await s.commit()

    async def by_token_ids(
        self, token_ids: list[int],
    ) -> dict[tuple[str, int], Ingredient]:
        """Ingredients for the given token ids under any contract.

        Keyed by (token_contract, token_id): one token id can exist on several
        contracts and each keeps its own metadata.
        """
        if not token_ids:
            return {}
        async with self._db.session() as s:
            rows = (await s.scalars(
                select(Ingredient).where(Ingredient.token_id.in_(set(token_ids))),
            )).all()
        return {(row.token_contract, row.token_id): row for row in rows}

    async def query(
        self,
        category: str | None = None,
        name: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Ingredient], int]:
        conditions = []
        if category is not None:
            conditions.append(IngredientData.details["category"].as_string() == category)
        if name:
            conditions.append(
                IngredientData.details["name"].as_string().icontains(name, autoescape=True),
            )
        stmt = (
            select(Ingredient).join(Ingredient.data).where(*conditions)
            .order_by(Ingredient.created_at.desc(), Ingredient.token_id)
            .offset((page - 1) * limit).limit(limit)
        )
        count = (
            select(func.count()).select_from(Ingredient)
            .join(Ingredient.data).where(*conditions)
        )
        async with self._db.session() as s:
            rows = (await s.scalars(stmt)).all()
            total = await s.scalar(count)
        return list(rows), total or 0
