"""Error Hierarchy — typed, categorized exceptions for the customization backend.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400/404) are recoverable; infrastructure errors (500-level) are critical
    - Business-rule violations (missing rule, conflict, cart constraint) are NOT errors:
      they travel as {"valid": false, ...} result data
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with StorefrontError base: FastAPI global handler catches all (ADR: uniform error shape)
    - MaterializationError is soft: raised and caught inside the materializer only
    - StorageError.fatal separates "this node failed" from "the store is unusable"
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_id: str | None = None
    field_name: str | None = None
    debug_info: dict[str, Any] | None = None


class StorefrontError(Exception):
    """Base exception for all storefront backend errors."""

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
                "context": {
                    "resource_id": self.context.resource_id,
                    "field": self.context.field_name,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(StorefrontError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class RuleReferenceError(StorefrontError):
    """Rule edges point at rules outside the owning product type."""
    def __init__(
        self, field_name: str, invalid_ids: list[str],
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.field_name = field_name
        super().__init__(
            f"{field_name} references rules that do not belong to this "
            f"product type: {', '.join(invalid_ids)}",
            "INVALID_RULE_REFERENCE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.invalid_ids = invalid_ids


class InvalidConstraintError(StorefrontError):
    """Item constraint is structurally invalid (e.g. item constrained to itself)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_CONSTRAINT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidFilenameError(StorefrontError):
    """Temp-file name rejected by the path-traversal guard."""
    def __init__(self, filename: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource_id = filename
        super().__init__(
            "Invalid file name", "INVALID_FILENAME", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ctx, 400,
        )


class MaterializationError(StorefrontError):
    """One embedded artwork node could not be decoded or written (soft failure)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "MATERIALIZATION_FAILED", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(StorefrontError):
    """Temp file store operation failed."""
    def __init__(
        self, message: str, operation: str, fatal: bool = True,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL if fatal else ErrorSeverity.ERROR,
            context, 500,
        )
        self.operation = operation
        self.fatal = fatal


class DatabaseError(StorefrontError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
