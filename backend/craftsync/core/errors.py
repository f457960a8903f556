"""Error Hierarchy — typed, categorized exceptions for all craftsync failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request-path errors (400-level) are returned to the caller; infrastructure errors (500-level) are operational
    - to_response() produces the REST envelope
    - A replayed event is never an error: it is SyncOutcome.DUPLICATE (core/domain_types.py)

Design Decisions:
    - Single hierarchy with CraftSyncError base: FastAPI global handler catches all
    - ErrorContext as dataclass: event coordinates travel with the error without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where an error happened: ledger coordinates and free-form debug info."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str | None = None
    tx_hash: str | None = None
    block_number: int | None = None
    recipe_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class CraftSyncError(Exception):
    """Base exception for all craftsync errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


# ─── Request-path Errors (400-level) ────────────────────────────

class GridValidationError(CraftSyncError):
    """Grid submission is structurally malformed (size or slot count)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "GRID_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class NoMatchingRecipeError(CraftSyncError):
    """No stored recipe matches the submitted arrangement."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No recipe matches the provided crafting pattern",
            "NO_MATCHING_RECIPE", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


class IngredientsUnavailableError(CraftSyncError):
    """A recipe matched, but the submitted slots cannot cover its requirements."""
    def __init__(
        self,
        message: str,
        reason_code: str,
        position: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INGREDIENTS_UNAVAILABLE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason_code = reason_code
        self.position = position

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["reason_code"] = self.reason_code
        response["error"]["position"] = self.position
        return response


class ResourceNotFoundError(CraftSyncError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class DuplicateKeyError(CraftSyncError):
    """Natural-key uniqueness violated on insert."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DUPLICATE_KEY", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class DecodeError(CraftSyncError):
    """Event payload or its originating transaction could not be resolved."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unresolvable event: {message}",
            "EVENT_DECODE_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ChainUnavailableError(CraftSyncError):
    """Ledger connection is not initialized or could not be established."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CHAIN_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )


class TransientChainError(CraftSyncError):
    """A ledger read failed after retries."""
    def __init__(
        self,
        message: str,
        operation: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Ledger {operation} failed: {message}",
            "TRANSIENT_CHAIN_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
        )
        self.operation = operation


class DatabaseError(CraftSyncError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
