"""Recipe ORM — persisted projection of on-chain recipes and their positioned requirements.

Invariants:
    - id is a synthetic UUID primary key; ledger_recipe_id is the natural key (UNIQUE)
    - A recipe and its requirements are written in one transaction and never
      observable half-written
    - Requirement positions are unique per recipe; amount >= 1
    - Immutable once created except `active`
    - A NULL token contract means the requirement or output accepts any contract

Design Decisions:
    - Requirements in their own table with ON DELETE CASCADE: queryable by token
      without unpacking JSON
    - lazy="selectin" on requirements: recipe listings load children in one extra query
    - to_spec() hands the matching core a frozen value, never an ORM row
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, String, Text, Integer, Boolean, DateTime, ForeignKey,
    CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from craftsync.core.domain_types import IngredientRef, RecipeSpec, Requirement
from craftsync.db.base import Base


class Recipe(Base):
    """Recipe entity — maps positioned ingredient requirements to a craft output."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_output_token", "output_token_contract", "output_token_id"),
        CheckConstraint("output_amount >= 1", name="ck_recipes_output_amount"),
        CheckConstraint("difficulty BETWEEN 1 AND 10", name="ck_recipes_difficulty"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    ledger_recipe_id: Mapped[str] = mapped_column(
        String(78), nullable=False, unique=True, index=True,
    )
    output_token_contract: Mapped[str | None] = mapped_column(String(42), nullable=True)
    output_token_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    output_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    requires_exact_pattern: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    crafting_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="recipe",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="RecipeIngredient.position",
    )

    def to_spec(self) -> RecipeSpec:
        return RecipeSpec(
            ledger_recipe_id=self.ledger_recipe_id,
            output=IngredientRef(self.output_token_id, self.output_token_contract),
            requirements=tuple(
                Requirement(
                    ingredient=IngredientRef(ing.token_id, ing.token_contract),
                    amount=ing.amount,
                    position=ing.position,
                )
                for ing in self.ingredients
            ),
            output_amount=self.output_amount,
            requires_exact_pattern=self.requires_exact_pattern,
            active=self.active,
            name=self.name,
        )


class RecipeIngredient(Base):
    """One positioned requirement of a recipe."""
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        UniqueConstraint("recipe_id", "position", name="uq_recipe_ingredients_position"),
        Index("ix_recipe_ingredients_token", "token_contract", "token_id"),
        CheckConstraint("amount >= 1", name="ck_recipe_ingredients_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_contract: Mapped[str | None] = mapped_column(String(42), nullable=True)
    token_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
