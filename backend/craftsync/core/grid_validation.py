"""Grid Validation — structural checks that run before any recipe is evaluated.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return error dict on violation, None on success
    - validate_grid_submission chains all checks; first error wins
    - A malformed grid is a validation error, never "no match"

Design Decisions:
    - Return dicts (not exceptions): expected input-shape errors travel on the same
      path as results; the shell raises GridValidationError from them
"""

from craftsync.core.domain_types import (
    GridSubmission, MIN_GRID_SIZE, MAX_GRID_SIZE,
)


def check_grid_size(submission: GridSubmission) -> dict | None:
    """Grid size must be within [1, 5]."""
    size = submission.grid_size
    if not MIN_GRID_SIZE <= size <= MAX_GRID_SIZE:
        return {
            "status": "error",
            "error_code": "GRID_SIZE_OUT_OF_RANGE",
            "field": "grid_size",
            "message": (
                f"Grid size must be between {MIN_GRID_SIZE}x{MIN_GRID_SIZE} "
                f"and {MAX_GRID_SIZE}x{MAX_GRID_SIZE}, got {size}"
            ),
        }
    return None


def check_slot_count(submission: GridSubmission) -> dict | None:
    """Slot count must equal grid_size squared exactly."""
    expected = submission.grid_size * submission.grid_size
    if len(submission.slots) != expected:
        return {
            "status": "error",
            "error_code": "GRID_SLOT_COUNT_MISMATCH",
            "field": "slots",
            "message": (
                f"Grid size mismatch. Expected {expected} slots for "
                f"{submission.grid_size}x{submission.grid_size} grid, "
                f"got {len(submission.slots)}"
            ),
        }
    return None


def check_slot_amounts(submission: GridSubmission) -> dict | None:
    """Occupied slots carry a non-negative amount."""
    for i, slot in enumerate(submission.slots):
        if slot.amount < 0:
            return {
                "status": "error",
                "error_code": "GRID_NEGATIVE_AMOUNT",
                "field": f"slots.{i}.amount",
                "message": f"Slot {i} has a negative amount ({slot.amount})",
            }
    return None


def validate_grid_submission(submission: GridSubmission) -> dict | None:
    """Chain all structural checks. Returns first error or None."""
    return (
        check_grid_size(submission)
        or check_slot_count(submission)
        or check_slot_amounts(submission)
    )
