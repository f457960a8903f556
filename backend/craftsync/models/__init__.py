"""ORM Models — SQLAlchemy declarative models for the recipe/ingredient projection.

Invariants:
    - All models inherit from Base (db/base.py)
    - Natural keys carry unique indexes: recipes.ledger_recipe_id,
      ingredients(token_contract, token_id)

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from craftsync.models.recipe import Recipe, RecipeIngredient  # noqa: F401
from craftsync.models.ingredient import Ingredient, IngredientData  # noqa: F401
