"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - LedgerRecipeId is the natural key assigned by the chain, kept as a decimal string
    - TokenId is a non-negative ledger token id; addresses compare case-insensitively
    - Grid size is bounded 1–5, so a grid never exceeds MAX_GRID_CELLS cells
    - Recipe and submission shapes are frozen dataclasses: matching never mutates them

Design Decisions:
    - NewType over wrappers for ids: zero runtime cost, full type-checker support
    - Frozen dataclasses for recipe/submission shapes: the matching core works on
      plain values, never on ORM rows
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

LedgerRecipeId = NewType("LedgerRecipeId", str)
TokenId = NewType("TokenId", int)
Address = NewType("Address", str)

ZERO_ADDRESS = Address("0x0000000000000000000000000000000000000000")

MIN_GRID_SIZE = 1
MAX_GRID_SIZE = 5
MAX_GRID_CELLS = MAX_GRID_SIZE * MAX_GRID_SIZE


def same_address(a: str | None, b: str | None) -> bool:
    """Addresses are hex strings; checksum casing is not identity."""
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


# ─── Enums ───────────────────────────────────────────────────────

class ListenerState(str, Enum):
    """Event synchronizer lifecycle."""
    STOPPED = "stopped"
    LISTENING = "listening"


class SyncOutcome(str, Enum):
    """Result of projecting one ledger event into the store."""
    CREATED = "created"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    SKIPPED = "skipped"


class LedgerEventName(str, Enum):
    """Ledger events the synchronizer subscribes to."""
    RECIPE_CREATED = "RecipeCreated"
    TRANSFER_BATCH = "TransferBatch"
    TRANSFER_SINGLE = "TransferSingle"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class IngredientRef:
    """A ledger token type. token_contract None means 'any contract'."""
    token_id: int
    token_contract: str | None = None

    def matches(self, other: "IngredientRef | None") -> bool:
        if other is None or self.token_id != other.token_id:
            return False
        if self.token_contract is None or other.token_contract is None:
            return True
        return same_address(self.token_contract, other.token_contract)


@dataclass(frozen=True)
class Requirement:
    """One positioned ingredient requirement of a recipe."""
    ingredient: IngredientRef
    amount: int
    position: int


@dataclass(frozen=True)
class RecipeSpec:
    """Immutable view of a stored recipe, as the matching core sees it."""
    ledger_recipe_id: str
    output: IngredientRef
    requirements: tuple[Requirement, ...]
    output_amount: int = 1
    requires_exact_pattern: bool = True
    active: bool = True
    name: str = ""

    @property
    def max_position(self) -> int:
        return max((r.position for r in self.requirements), default=-1)

    @property
    def total_required(self) -> int:
        return sum(r.amount for r in self.requirements)

    def fits_grid(self, grid_size: int) -> bool:
        return bool(self.requirements) and self.max_position < grid_size * grid_size


@dataclass(frozen=True)
class GridSlot:
    """A submitted grid cell. ingredient None means the cell is empty."""
    ingredient: IngredientRef | None = None
    amount: int = 0

    @property
    def is_empty(self) -> bool:
        return self.ingredient is None


@dataclass(frozen=True)
class GridSubmission:
    grid_size: int
    slots: tuple[GridSlot, ...]


@dataclass(frozen=True)
class BagItem:
    ingredient: IngredientRef
    amount: int


@dataclass(frozen=True)
class Consumption:
    """What a craft takes from one slot: always the required amount."""
    ingredient: IngredientRef
    amount: int
    position: int


@dataclass(frozen=True)
class Shortfall:
    ingredient: IngredientRef
    required: int
    available: int

    @property
    def missing(self) -> int:
        return max(self.required - self.available, 0)


@dataclass(frozen=True)
class LedgerEvent:
    """A decoded contract log, as delivered by the ledger transport."""
    name: str
    args: dict
    address: str
    tx_hash: str | None = None
    block_number: int | None = None
    log_index: int | None = None

    @property
    def key(self) -> str:
        return f"{self.tx_hash}:{self.log_index}"


@dataclass(frozen=True)
class CraftabilityVerdict:
    recipe: RecipeSpec
    missing: tuple[Shortfall, ...] = field(default_factory=tuple)

    @property
    def craftable(self) -> bool:
        return not self.missing
