"""Crafting Schemas — grid and bag requests, craft and preview responses.

Invariants:
    - A slot with ingredient_id None is empty and may not name a contract
    - Grid size and slot count are NOT bounded here: the structural pass in
      core/grid_validation.py owns those errors and their codes
    - Responses are built from core values (RecipeSpec, Consumption, verdicts),
      never from ORM rows

Design Decisions:
    - to_domain() on requests: routes hand the core frozen dataclasses
    - Display names travel as an {IngredientRef: name} map resolved by the service
"""

from pydantic import BaseModel, Field, model_validator

from craftsync.core.domain_types import (
    BagItem, Consumption, CraftabilityVerdict, GridSlot, GridSubmission,
    IngredientRef, RecipeSpec, Shortfall,
)

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


class SlotIn(BaseModel):
    """One grid cell: empty, or an ingredient with the amount on hand."""
    ingredient_id: int | None = Field(None, ge=0)
    token_contract: str | None = Field(None, pattern=ADDRESS_PATTERN)
    amount: int = 0

    @model_validator(mode="after")
    def empty_slot_names_no_contract(self):
        if self.ingredient_id is None and self.token_contract is not None:
            raise ValueError("empty slot cannot name a token contract")
        return self

    def to_domain(self) -> GridSlot:
        if self.ingredient_id is None:
            return GridSlot()
        return GridSlot(
            IngredientRef(self.ingredient_id, self.token_contract), self.amount,
        )


class GridRequest(BaseModel):
    grid_size: int
    slots: list[SlotIn] = Field(max_length=100)

    def to_domain(self) -> GridSubmission:
        return GridSubmission(
            grid_size=self.grid_size,
            slots=tuple(slot.to_domain() for slot in self.slots),
        )


class BagItemIn(BaseModel):
    ingredient_id: int = Field(ge=0)
    token_contract: str | None = Field(None, pattern=ADDRESS_PATTERN)
    amount: int = Field(ge=0)

    def to_domain(self) -> BagItem:
        return BagItem(IngredientRef(self.ingredient_id, self.token_contract), self.amount)


class PreviewRequest(BaseModel):
    ingredients: list[BagItemIn] = Field(default_factory=list, max_length=500)

    def to_domain(self) -> list[BagItem]:
        return [item.to_domain() for item in self.ingredients]


# --- Responses ----------------------------------------------------------------

class IngredientOut(BaseModel):
    token_id: int
    token_contract: str | None = None
    name: str | None = None

    @classmethod
    def from_ref(cls, ref: IngredientRef, names: dict[IngredientRef, str]) -> "IngredientOut":
        return cls(
            token_id=ref.token_id,
            token_contract=ref.token_contract or None,
            name=names.get(ref),
        )


class RequirementOut(BaseModel):
    ingredient: IngredientOut
    amount: int
    position: int


class RecipeSummary(BaseModel):
    ledger_recipe_id: str
    name: str
    output: IngredientOut
    output_amount: int
    requires_exact_pattern: bool
    requirements: list[RequirementOut]

    @classmethod
    def from_spec(cls, recipe: RecipeSpec, names: dict[IngredientRef, str]) -> "RecipeSummary":
        return cls(
            ledger_recipe_id=recipe.ledger_recipe_id,
            name=recipe.name,
            output=IngredientOut.from_ref(recipe.output, names),
            output_amount=recipe.output_amount,
            requires_exact_pattern=recipe.requires_exact_pattern,
            requirements=[
                RequirementOut(
                    ingredient=IngredientOut.from_ref(r.ingredient, names),
                    amount=r.amount,
                    position=r.position,
                )
                for r in recipe.requirements
            ],
        )


class ConsumedOut(BaseModel):
    ingredient: IngredientOut
    amount: int
    position: int

    @classmethod
    def from_consumption(cls, c: Consumption, names: dict[IngredientRef, str]) -> "ConsumedOut":
        return cls(
            ingredient=IngredientOut.from_ref(c.ingredient, names),
            amount=c.amount,
            position=c.position,
        )


class CraftResponse(BaseModel):
    success: bool = True
    message: str
    result_ingredient: IngredientOut
    output_amount: int
    recipe: RecipeSummary
    consumed_ingredients: list[ConsumedOut]

    @classmethod
    def from_result(cls, result: dict) -> "CraftResponse":
        recipe: RecipeSpec = result["recipe"]
        names: dict[IngredientRef, str] = result["names"]
        output = IngredientOut.from_ref(recipe.output, names)
        return cls(
            message=f"Successfully crafted {output.name or recipe.name}!",
            result_ingredient=output,
            output_amount=recipe.output_amount,
            recipe=RecipeSummary.from_spec(recipe, names),
            consumed_ingredients=[
                ConsumedOut.from_consumption(c, names) for c in result["consumed"]
            ],
        )


class ShortfallOut(BaseModel):
    ingredient: IngredientOut
    required: int
    available: int
    missing: int

    @classmethod
    def from_shortfall(cls, s: Shortfall, names: dict[IngredientRef, str]) -> "ShortfallOut":
        return cls(
            ingredient=IngredientOut.from_ref(s.ingredient, names),
            required=s.required,
            available=s.available,
            missing=s.missing,
        )


class VerdictOut(BaseModel):
    recipe: RecipeSummary
    craftable: bool
    missing: list[ShortfallOut]


class PreviewResponse(BaseModel):
    recipes: list[VerdictOut]
    craftable_count: int

    @classmethod
    def from_verdicts(
        cls, verdicts: list[CraftabilityVerdict], names: dict[IngredientRef, str],
    ) -> "PreviewResponse":
        items = [
            VerdictOut(
                recipe=RecipeSummary.from_spec(v.recipe, names),
                craftable=v.craftable,
                missing=[ShortfallOut.from_shortfall(s, names) for s in v.missing],
            )
            for v in verdicts
        ]
        return cls(recipes=items, craftable_count=sum(1 for v in verdicts if v.craftable))


class GridRecipesResponse(BaseModel):
    grid_size: int
    recipes: list[RecipeSummary]
