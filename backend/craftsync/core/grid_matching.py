"""Grid Matching — resolves a grid submission to a recipe and computes consumption.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Structural validation runs before any recipe is evaluated (GridValidationError)
    - Only active recipes whose every position is < grid_size² are candidates
    - Exact-pattern recipes: empty reference cell <=> empty submitted cell;
      filled cell requires the same ingredient and amount >= required
    - First match wins, in order_candidates() order; there is no best-match search
    - Consumption always equals the recipe's required amounts, never submitted surplus

Design Decisions:
    - order_candidates puts the larger total requirement first, then ledger id:
      a fixed order makes first-match deterministic for a given store
    - Shapeless recipes (requires_exact_pattern=False) ignore positions but still
      require the occupied cells to be exactly the recipe's ingredients
    - validate_availability returns a tagged dict, like the other core checks
"""

from craftsync.core.domain_types import (
    Consumption, GridSubmission, RecipeSpec, Requirement,
)
from craftsync.core.errors import GridValidationError
from craftsync.core.grid_validation import validate_grid_submission


def _ledger_id_sort_key(ledger_recipe_id: str) -> tuple:
    if ledger_recipe_id.isdigit():
        return (0, int(ledger_recipe_id), "")
    return (1, 0, ledger_recipe_id)


def order_candidates(recipes: list[RecipeSpec]) -> list[RecipeSpec]:
    """Most-specific first: larger total requirement, then ledger id ascending."""
    return sorted(
        recipes,
        key=lambda r: (-r.total_required, _ledger_id_sort_key(r.ledger_recipe_id)),
    )


def candidates_for_grid(
    recipes: list[RecipeSpec], grid_size: int,
) -> list[RecipeSpec]:
    """Active recipes addressable within a grid_size x grid_size grid."""
    return [r for r in recipes if r.active and r.fits_grid(grid_size)]


def build_reference_grid(
    recipe: RecipeSpec, grid_size: int,
) -> list[Requirement | None]:
    """Dense grid of grid_size² cells; None marks a cell the recipe leaves empty."""
    grid: list[Requirement | None] = [None] * (grid_size * grid_size)
    for req in recipe.requirements:
        if 0 <= req.position < len(grid):
            grid[req.position] = req
    return grid


def matches_exact_pattern(
    submission: GridSubmission, recipe: RecipeSpec,
) -> bool:
    reference = build_reference_grid(recipe, submission.grid_size)
    for slot, expected in zip(submission.slots, reference):
        if expected is None:
            if not slot.is_empty:
                return False
            continue
        if not expected.ingredient.matches(slot.ingredient):
            return False
        if slot.amount < expected.amount:
            return False
    return True


def assign_shapeless(
    submission: GridSubmission, recipe: RecipeSpec,
) -> list[Consumption] | None:
    """Pair every occupied cell with one requirement, ignoring positions.

    A cell covers a requirement when it holds a matching ingredient (same
    token id and compatible contract) with at least the required amount.
    The pairing is a bipartite matching grown by augmenting paths, so a
    valid assignment is found whenever one exists.
    """
    occupied = [
        (pos, slot) for pos, slot in enumerate(submission.slots)
        if not slot.is_empty
    ]
    requirements = recipe.requirements
    if len(occupied) != len(requirements):
        return None

    covers = [
        [
            cell for cell, (_, slot) in enumerate(occupied)
            if req.ingredient.matches(slot.ingredient) and slot.amount >= req.amount
        ]
        for req in requirements
    ]
    owner: dict[int, int] = {}

    def augment(req_index: int, seen: set[int]) -> bool:
        for cell in covers[req_index]:
            if cell in seen:
                continue
            seen.add(cell)
            if cell not in owner or augment(owner[cell], seen):
                owner[cell] = req_index
                return True
        return False

    for req_index in range(len(requirements)):
        if not augment(req_index, set()):
            return None

    consumed = [
        Consumption(
            requirements[req_index].ingredient,
            requirements[req_index].amount,
            occupied[cell][0],
        )
        for cell, req_index in owner.items()
    ]
    return sorted(consumed, key=lambda c: c.position)


def recipe_matches(submission: GridSubmission, recipe: RecipeSpec) -> bool:
    if recipe.requires_exact_pattern:
        return matches_exact_pattern(submission, recipe)
    return assign_shapeless(submission, recipe) is not None


def match_grid(
    submission: GridSubmission, recipes: list[RecipeSpec],
) -> RecipeSpec | None:
    """Return the first recipe the submission satisfies, or None.

    Raises GridValidationError for a malformed submission; no recipe is
    evaluated in that case.
    """
    error = validate_grid_submission(submission)
    if error:
        raise GridValidationError(error["message"], error["field"])

    candidates = candidates_for_grid(recipes, submission.grid_size)
    for recipe in order_candidates(candidates):
        if recipe_matches(submission, recipe):
            return recipe
    return None


def _unavailable(reason: str, code: str, position: int | None = None) -> dict:
    return {
        "ok": False,
        "error_code": code,
        "reason": reason,
        "position": position,
    }


def validate_availability(
    submission: GridSubmission, recipe: RecipeSpec,
) -> dict:
    """Check every requirement against its slot and report exact consumption.

    Returns {"ok": True, "consumed": [Consumption, ...]} or
    {"ok": False, "error_code": ..., "reason": ..., "position": ...}.
    """
    if not recipe.requires_exact_pattern:
        consumed = assign_shapeless(submission, recipe)
        if consumed is None:
            return _unavailable(
                "Submitted ingredients do not cover the recipe",
                "INGREDIENTS_UNAVAILABLE",
            )
        return {"ok": True, "consumed": consumed}

    consumed = []
    for req in recipe.requirements:
        pos = req.position
        if pos >= len(submission.slots):
            return _unavailable(
                f"Invalid ingredient position {pos} in recipe",
                "POSITION_OUT_OF_GRID", pos,
            )
        slot = submission.slots[pos]
        if slot.is_empty:
            return _unavailable(
                f"Missing ingredient at position {pos}",
                "MISSING_INGREDIENT", pos,
            )
        if not req.ingredient.matches(slot.ingredient):
            return _unavailable(
                f"Wrong ingredient at position {pos}. "
                f"Expected token {req.ingredient.token_id}, "
                f"got token {slot.ingredient.token_id}",
                "WRONG_INGREDIENT", pos,
            )
        if slot.amount < req.amount:
            return _unavailable(
                f"Insufficient amount of token {req.ingredient.token_id} "
                f"at position {pos}. Required: {req.amount}, "
                f"Available: {slot.amount}",
                "INSUFFICIENT_AMOUNT", pos,
            )
        consumed.append(Consumption(req.ingredient, req.amount, pos))
    return {"ok": True, "consumed": consumed}
