"""Catalog Schemas — store listings and the administrative create/update paths.

Invariants:
    - Pagination: page >= 1, 1 <= limit <= 100
    - IngredientCreate requires a checksum-shaped address and a display name
    - RecipeCreate positions are unique and inside the largest grid; a missing
      token contract means "any contract"
"""

import math
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from craftsync.core.domain_types import (
    IngredientRef, MAX_GRID_CELLS, RecipeSpec, Requirement,
)
from craftsync.models.ingredient import Ingredient
from craftsync.schemas.crafting import ADDRESS_PATTERN


class RecipeIngredientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token_contract: str | None = None
    token_id: int
    amount: int
    position: int


class RecipeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ledger_recipe_id: str
    name: str
    description: str | None = None
    category: str | None = None
    difficulty: int
    crafting_time: int
    output_token_contract: str | None = None
    output_token_id: int
    output_amount: int
    requires_exact_pattern: bool
    active: bool
    created_at: datetime
    ingredients: list[RecipeIngredientOut]


class RecipePage(BaseModel):
    items: list[RecipeOut]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, rows, total: int, page: int, limit: int) -> "RecipePage":
        return cls(
            items=[RecipeOut.model_validate(row) for row in rows],
            total=total, page=page, limit=limit,
            pages=math.ceil(total / limit) if total else 0,
        )


class RecipeRequirementIn(BaseModel):
    token_contract: str | None = Field(None, pattern=ADDRESS_PATTERN)
    token_id: int = Field(ge=0)
    amount: int = Field(ge=1)
    position: int = Field(ge=0, lt=MAX_GRID_CELLS)


class RecipeCreate(BaseModel):
    """Administrative recipe insert, outside the ledger feed."""
    ledger_recipe_id: str = Field(min_length=1, max_length=78)
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    category: str | None = Field(None, max_length=50)
    difficulty: int = Field(1, ge=1, le=10)
    crafting_time: int = Field(0, ge=0)
    output_token_contract: str | None = Field(None, pattern=ADDRESS_PATTERN)
    output_token_id: int = Field(ge=0)
    output_amount: int = Field(1, ge=1)
    requires_exact_pattern: bool = True
    active: bool = True
    ingredients: list[RecipeRequirementIn] = Field(
        min_length=1, max_length=MAX_GRID_CELLS,
    )

    @field_validator("ingredients")
    @classmethod
    def unique_positions(cls, v: list[RecipeRequirementIn]) -> list[RecipeRequirementIn]:
        positions = [i.position for i in v]
        if len(set(positions)) != len(positions):
            raise ValueError("ingredient positions must be unique")
        return v

    def to_spec(self) -> RecipeSpec:
        return RecipeSpec(
            ledger_recipe_id=self.ledger_recipe_id,
            output=IngredientRef(self.output_token_id, self.output_token_contract),
            requirements=tuple(
                Requirement(IngredientRef(i.token_id, i.token_contract), i.amount, i.position)
                for i in self.ingredients
            ),
            output_amount=self.output_amount,
            requires_exact_pattern=self.requires_exact_pattern,
            active=self.active,
            name=self.name,
        )

    def listing(self) -> dict:
        return {
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "crafting_time": self.crafting_time,
        }


class RecipeActiveUpdate(BaseModel):
    active: bool


class IngredientMetadata(BaseModel):
    """Free-form metadata; name is the only required key."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    image: str | None = None
    category: str | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class IngredientCreate(BaseModel):
    token_contract: str = Field(pattern=ADDRESS_PATTERN)
    token_id: int = Field(ge=0)
    metadata: IngredientMetadata


class IngredientOut(BaseModel):
    id: UUID
    token_contract: str
    token_id: int
    metadata: dict
    created_at: datetime

    @classmethod
    def from_row(cls, row: Ingredient) -> "IngredientOut":
        return cls(
            id=row.id,
            token_contract=row.token_contract,
            token_id=row.token_id,
            metadata=row.details,
            created_at=row.created_at,
        )


class IngredientPage(BaseModel):
    items: list[IngredientOut]
    total: int
    page: int
    limit: int
