"""Error Hierarchy — codes, statuses and the REST envelope."""

from craftsync.core.errors import (
    ChainUnavailableError, CraftSyncError, DatabaseError, DecodeError,
    DuplicateKeyError, ErrorCategory, GridValidationError,
    IngredientsUnavailableError, NoMatchingRecipeError, ResourceNotFoundError,
    TransientChainError,
)


def test_every_error_is_a_craftsync_error():
    errors = [
        GridValidationError("bad", "slots"),
        NoMatchingRecipeError(),
        IngredientsUnavailableError("short", "MISSING_INGREDIENT", 4),
        ResourceNotFoundError("Recipe", "7"),
        DuplicateKeyError("dup"),
        DecodeError("bad payload"),
        ChainUnavailableError("down"),
        TransientChainError("timeout", "balanceOf"),
        DatabaseError("gone", "execute"),
    ]
    assert all(isinstance(e, CraftSyncError) for e in errors)


def test_http_statuses():
    assert GridValidationError("bad", "slots").http_status == 400
    assert NoMatchingRecipeError().http_status == 404
    assert DuplicateKeyError("dup").http_status == 409
    assert DecodeError("x").http_status == 422
    assert ChainUnavailableError("x").http_status == 503
    assert TransientChainError("x", "call").http_status == 503


def test_envelope_shape():
    body = ResourceNotFoundError("Recipe", "7").to_response()
    assert body["error"]["code"] == "RESOURCE_NOT_FOUND"
    assert body["error"]["category"] == ErrorCategory.RESOURCE_NOT_FOUND.value
    assert body["error"]["message"] == "Recipe '7' not found"
    assert "timestamp" in body["error"]


def test_unavailable_envelope_carries_reason_and_position():
    body = IngredientsUnavailableError("short", "MISSING_INGREDIENT", 4).to_response()
    assert body["error"]["code"] == "INGREDIENTS_UNAVAILABLE"
    assert body["error"]["reason_code"] == "MISSING_INGREDIENT"
    assert body["error"]["position"] == 4


def test_transient_error_names_operation():
    err = TransientChainError("timeout", "tokenNames")
    assert err.operation == "tokenNames"
    assert err.message == "Ledger tokenNames failed: timeout"
