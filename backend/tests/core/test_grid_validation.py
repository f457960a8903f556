"""Grid Validation — structural checks return error dicts, first error wins."""

from craftsync.core.domain_types import GridSlot, GridSubmission, IngredientRef
from craftsync.core.grid_validation import (
    check_grid_size, check_slot_amounts, check_slot_count, validate_grid_submission,
)


def _grid(size, slots=None):
    if slots is None:
        slots = [GridSlot()] * (size * size)
    return GridSubmission(size, tuple(slots))


def test_valid_grid_passes():
    assert validate_grid_submission(_grid(3)) is None


def test_grid_size_zero_rejected():
    error = check_grid_size(_grid(0, []))
    assert error["error_code"] == "GRID_SIZE_OUT_OF_RANGE"
    assert error["field"] == "grid_size"


def test_grid_size_six_rejected():
    assert check_grid_size(_grid(6))["error_code"] == "GRID_SIZE_OUT_OF_RANGE"


def test_bounds_accepted():
    assert check_grid_size(_grid(1)) is None
    assert check_grid_size(_grid(5)) is None


def test_slot_count_must_be_square_of_size():
    error = check_slot_count(_grid(3, [GridSlot()] * 8))
    assert error["error_code"] == "GRID_SLOT_COUNT_MISMATCH"
    assert "Expected 9 slots" in error["message"]


def test_negative_amount_rejected_with_slot_field():
    slots = [GridSlot()] * 4
    slots[2] = GridSlot(IngredientRef(5), -1)
    error = check_slot_amounts(_grid(2, slots))
    assert error["error_code"] == "GRID_NEGATIVE_AMOUNT"
    assert error["field"] == "slots.2.amount"


def test_size_error_reported_before_count_error():
    error = validate_grid_submission(_grid(7, [GridSlot()] * 3))
    assert error["error_code"] == "GRID_SIZE_OUT_OF_RANGE"
