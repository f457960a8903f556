"""Crafting Service — request orchestration around the pure matching core.

Invariants:
    - Structural validation happens before any recipe is loaded or evaluated
    - Only active recipes are matched, previewed or listed
    - Reports what a craft WOULD consume; never touches balances or the ledger
    - Returned consumption equals the recipe's requirements exactly

Design Decisions:
    - Thin imperative shell: the store supplies RecipeSpec values, core/ decides
    - Ingredient names are looked up once per request for display only; a token
      with no projected metadata is still craftable
    - Names resolve by (contract, token id); a reference whose contract has no
      row falls back to the token id only when exactly one contract carries it
"""

import logging
from collections import defaultdict

from craftsync.core.bag_matching import craftable_from
from craftsync.core.domain_types import (
    BagItem, CraftabilityVerdict, GridSubmission, IngredientRef, RecipeSpec,
    MIN_GRID_SIZE, MAX_GRID_SIZE, same_address,
)
from craftsync.core.errors import (
    GridValidationError, IngredientsUnavailableError, NoMatchingRecipeError,
)
from craftsync.core.grid_matching import (
    candidates_for_grid, match_grid, order_candidates, validate_availability,
)
from craftsync.core.grid_validation import validate_grid_submission
from craftsync.services.recipe_store import IngredientStore, RecipeStore

logger = logging.getLogger(__name__)


class CraftingService:
    """Grid crafts, bag previews and grid-size listings over the recipe store."""

    def __init__(self, recipes: RecipeStore, ingredients: IngredientStore):
        self.recipes = recipes
        self.ingredients = ingredients

    async def craft(self, submission: GridSubmission) -> dict:
        """Resolve a grid to a recipe and report the exact consumption.

        Raises GridValidationError, NoMatchingRecipeError or
        IngredientsUnavailableError.
        """
        error = validate_grid_submission(submission)
        if error:
            raise GridValidationError(error["message"], error["field"])

        recipes = await self.recipes.list_specs(active_only=True)
        recipe = match_grid(submission, recipes)
        if recipe is None:
            logger.info(
                f"No recipe matched a {submission.grid_size}x{submission.grid_size} grid",
            )
            raise NoMatchingRecipeError()

        result = validate_availability(submission, recipe)
        if not result["ok"]:
            raise IngredientsUnavailableError(
                result["reason"], result["error_code"], result["position"],
            )

        consumed = result["consumed"]
        names = await self.ingredient_names(
            [recipe.output] + [c.ingredient for c in consumed],
        )
        logger.info(
            f"Grid matched recipe {recipe.name}",
            extra={"recipe_id": recipe.ledger_recipe_id},
        )
        return {"recipe": recipe, "consumed": consumed, "names": names}

    async def preview(
        self, bag: list[BagItem],
    ) -> tuple[list[CraftabilityVerdict], dict[IngredientRef, str]]:
        recipes = await self.recipes.list_specs(active_only=True)
        verdicts = craftable_from(bag, recipes)
        refs = [v.recipe.output for v in verdicts]
        refs += [s.ingredient for v in verdicts for s in v.missing]
        return verdicts, await self.ingredient_names(refs)

    async def recipes_for_grid(self, grid_size: int) -> list[RecipeSpec]:
        """Active recipes addressable within a grid_size x grid_size grid."""
        if not MIN_GRID_SIZE <= grid_size <= MAX_GRID_SIZE:
            raise GridValidationError(
                f"Grid size must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}, "
                f"got {grid_size}",
                "grid_size",
            )
        recipes = await self.recipes.list_specs(active_only=True)
        return order_candidates(candidates_for_grid(recipes, grid_size))

    async def ingredient_names(
        self, refs: list[IngredientRef],
    ) -> dict[IngredientRef, str]:
        rows = await self.ingredients.by_token_ids([r.token_id for r in refs])
        by_token = defaultdict(list)
        for (contract, token_id), row in rows.items():
            by_token[token_id].append((contract, row))

        names: dict[IngredientRef, str] = {}
        for ref in refs:
            candidates = by_token.get(ref.token_id, [])
            exact = [
                row for contract, row in candidates
                if same_address(contract, ref.token_contract)
            ]
            if exact:
                row = exact[0]
            elif len(candidates) == 1:
                row = candidates[0][1]
            else:
                continue
            if row.details.get("name"):
                names[ref] = row.details["name"]
        return names
