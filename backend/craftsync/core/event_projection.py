"""Event Projection — turns decoded ledger events into store-ready recipe shapes.

Invariants:
    - All functions are PURE: the synchronizer does the IO around them
    - A recipe is built only from data the ledger actually supplied; anything
      missing, mismatched or out of range raises DecodeError
    - Requirements are attached to the emitting contract's address
    - 1 <= requirement count <= MAX_GRID_CELLS, positions unique and < MAX_GRID_CELLS, amounts >= 1

Design Decisions:
    - Two recipe-creation payload shapes: the full one carries ingredient arrays;
      the compact one (name + output only) needs the createRecipe call decoded
      from the originating transaction
    - Mint detection lives here so both TransferBatch and TransferSingle share it
"""

from craftsync.core.domain_types import (
    IngredientRef, LedgerEvent, RecipeSpec, Requirement,
    MAX_GRID_CELLS, ZERO_ADDRESS, same_address,
)
from craftsync.core.errors import DecodeError, ErrorContext

RECIPE_ARRAY_FIELDS = ("ingredients", "positions", "amounts")


def event_context(event: LedgerEvent) -> ErrorContext:
    return ErrorContext(
        event_name=event.name,
        tx_hash=event.tx_hash,
        block_number=event.block_number,
        recipe_id=_str_or_none(event.args.get("recipeId")),
    )


def _str_or_none(value) -> str | None:
    return None if value is None else str(value)


def has_full_recipe_payload(event: LedgerEvent) -> bool:
    return all(name in event.args for name in RECIPE_ARRAY_FIELDS)


def ledger_recipe_id(event: LedgerEvent) -> str:
    recipe_id = event.args.get("recipeId")
    if recipe_id is None:
        raise DecodeError("event carries no recipeId", event_context(event))
    return str(recipe_id)


def build_requirements(
    ingredient_ids: list,
    positions: list,
    amounts: list,
    token_contract: str,
    context: ErrorContext | None = None,
) -> tuple[Requirement, ...]:
    """Zip the three parallel arrays into validated requirements."""
    if not (len(ingredient_ids) == len(positions) == len(amounts)):
        raise DecodeError(
            f"array lengths differ (ingredients={len(ingredient_ids)}, "
            f"positions={len(positions)}, amounts={len(amounts)})",
            context,
        )
    if not 1 <= len(ingredient_ids) <= MAX_GRID_CELLS:
        raise DecodeError(
            f"recipe has {len(ingredient_ids)} ingredients, "
            f"expected 1..{MAX_GRID_CELLS}",
            context,
        )

    requirements = []
    seen_positions: set[int] = set()
    for raw in zip(ingredient_ids, positions, amounts):
        try:
            token_id, position, amount = (int(v) for v in raw)
        except (TypeError, ValueError):
            raise DecodeError(f"non-integer ingredient entry {raw!r}", context)
        if token_id < 0:
            raise DecodeError(f"negative token id {token_id}", context)
        if not 0 <= position < MAX_GRID_CELLS:
            raise DecodeError(f"position {position} outside the grid", context)
        if position in seen_positions:
            raise DecodeError(f"position {position} used twice", context)
        if amount < 1:
            raise DecodeError(f"amount {amount} at position {position}", context)
        seen_positions.add(position)
        requirements.append(Requirement(
            ingredient=IngredientRef(token_id, token_contract),
            amount=amount,
            position=position,
        ))
    return tuple(requirements)


def recipe_from_event(event: LedgerEvent) -> RecipeSpec:
    """Full RecipeCreated payload -> RecipeSpec."""
    ctx = event_context(event)
    recipe_id = ledger_recipe_id(event)
    output_id = event.args.get("resultIngredientId", event.args.get("outputTokenId"))
    if output_id is None:
        raise DecodeError("event carries no output token id", ctx)
    requirements = build_requirements(
        list(event.args["ingredients"]),
        list(event.args["positions"]),
        list(event.args["amounts"]),
        event.address,
        ctx,
    )
    return RecipeSpec(
        ledger_recipe_id=recipe_id,
        output=IngredientRef(int(output_id), event.address),
        requirements=requirements,
        output_amount=int(event.args.get("outputAmount", 1)),
        name=event.args.get("name") or f"Recipe {recipe_id}",
    )


def recipe_from_create_call(event: LedgerEvent, call_args: dict) -> RecipeSpec:
    """Compact RecipeCreated payload + decoded createRecipe input -> RecipeSpec.

    call_args is the decoded function input: ingredients as
    (tokenId, amount, position) tuples, outputTokenId, outputAmount,
    requiresExactPattern, name.
    """
    ctx = event_context(event)
    recipe_id = ledger_recipe_id(event)
    try:
        ingredients = [tuple(i) for i in call_args["ingredients"]]
        token_ids = [i[0] for i in ingredients]
        amounts = [i[1] for i in ingredients]
        positions = [i[2] for i in ingredients]
        output_id = int(call_args["outputTokenId"])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise DecodeError(f"createRecipe input incomplete: {e}", ctx)

    event_output = event.args.get("outputTokenId")
    if event_output is not None and int(event_output) != output_id:
        raise DecodeError(
            f"transaction output {output_id} disagrees with event output {event_output}",
            ctx,
        )
    requirements = build_requirements(
        token_ids, positions, amounts, event.address, ctx,
    )
    return RecipeSpec(
        ledger_recipe_id=recipe_id,
        output=IngredientRef(output_id, event.address),
        requirements=requirements,
        output_amount=int(call_args.get("outputAmount", event.args.get("outputAmount", 1))),
        requires_exact_pattern=bool(call_args.get("requiresExactPattern", True)),
        name=call_args.get("name") or event.args.get("name") or f"Recipe {recipe_id}",
    )


def is_mint(event: LedgerEvent) -> bool:
    """Transfers from the zero address create supply."""
    return same_address(event.args.get("from"), ZERO_ADDRESS)


def minted_token_ids(event: LedgerEvent) -> list[int]:
    """Distinct token ids minted by a TransferBatch or TransferSingle, in order."""
    if not is_mint(event):
        return []
    if "ids" in event.args:
        raw = event.args["ids"]
    elif "id" in event.args:
        raw = [event.args["id"]]
    else:
        raise DecodeError("transfer carries no token ids", event_context(event))
    return list(dict.fromkeys(int(token_id) for token_id in raw))
