"""Ingredient ORM — a ledger token type plus its free-form metadata.

Invariants:
    - (token_contract, token_id) is UNIQUE: one row per ledger token type
    - Every ingredient owns exactly one IngredientData row (one-to-one, UNIQUE FK)
    - Deleting an ingredient deletes its metadata

Design Decisions:
    - Metadata split into its own table: the shape is free-form (name, image,
      category, price, uri) and grows without migrations
    - JSON column attribute named `details` because `metadata` is reserved on
      declarative classes; the column itself is still called "metadata"
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from craftsync.db.base import Base


class IngredientData(Base):
    """Free-form ingredient metadata."""
    __tablename__ = "ingredient_data"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    details: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    ingredient: Mapped["Ingredient"] = relationship(
        "Ingredient", back_populates="data",
    )


class Ingredient(Base):
    """Ingredient entity — reference to one ledger token type."""
    __tablename__ = "ingredients"
    __table_args__ = (
        UniqueConstraint("token_contract", "token_id", name="uq_ingredients_token"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    token_contract: Mapped[str] = mapped_column(String(42), nullable=False)
    token_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ingredient_data_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ingredient_data.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    data: Mapped["IngredientData"] = relationship(
        "IngredientData", back_populates="ingredient",
        cascade="all, delete-orphan", single_parent=True, lazy="selectin",
    )

    @property
    def details(self) -> dict:
        return self.data.details if self.data else {}
