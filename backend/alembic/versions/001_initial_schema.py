"""Initial schema — recipes, recipe_ingredients, ingredient_data, ingredients.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "recipes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("ledger_recipe_id", sa.String(78), nullable=False),
        sa.Column("output_token_contract", sa.String(42), nullable=True),
        sa.Column("output_token_id", sa.BigInteger, nullable=False),
        sa.Column("output_amount", sa.Integer, nullable=False, server_default="1"),
        sa.Column("requires_exact_pattern", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("difficulty", sa.Integer, nullable=False, server_default="1"),
        sa.Column("crafting_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("output_amount >= 1", name="ck_recipes_output_amount"),
        sa.CheckConstraint("difficulty BETWEEN 1 AND 10", name="ck_recipes_difficulty"),
    )
    op.create_index("ix_recipes_ledger_recipe_id", "recipes", ["ledger_recipe_id"], unique=True)
    op.create_index("ix_recipes_category", "recipes", ["category"])
    op.create_index("ix_recipes_output_token", "recipes", ["output_token_contract", "output_token_id"])

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "recipe_id", UUID(as_uuid=True),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("token_contract", sa.String(42), nullable=True),
        sa.Column("token_id", sa.BigInteger, nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.UniqueConstraint("recipe_id", "position", name="uq_recipe_ingredients_position"),
        sa.CheckConstraint("amount >= 1", name="ck_recipe_ingredients_amount"),
    )
    op.create_index("ix_recipe_ingredients_token", "recipe_ingredients", ["token_contract", "token_id"])

    op.create_table(
        "ingredient_data",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "ingredients",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("token_contract", sa.String(42), nullable=False),
        sa.Column("token_id", sa.BigInteger, nullable=False),
        sa.Column(
            "ingredient_data_id", UUID(as_uuid=True),
            sa.ForeignKey("ingredient_data.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("token_contract", "token_id", name="uq_ingredients_token"),
    )


def downgrade() -> None:
    op.drop_table("ingredients")
    op.drop_table("ingredient_data")
    op.drop_index("ix_recipe_ingredients_token", table_name="recipe_ingredients")
    op.drop_table("recipe_ingredients")
    op.drop_index("ix_recipes_output_token", table_name="recipes")
    op.drop_index("ix_recipes_category", table_name="recipes")
    op.drop_index("ix_recipes_ledger_recipe_id", table_name="recipes")
    op.drop_table("recipes")
