"""Exception hierarchy for the Trading212 to YNAB sync.

All sync errors inherit from SyncError so the CLI can report any of them
with a single handler while callers can still catch specific failures.
Skipped transactions are not errors; see services.classifier.
"""

from typing import Any


class SyncError(Exception):
    """Base exception for all sync errors.

    Includes an error_code for structured log output and extra context.
    """

    error_code: str = "SYNC_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(SyncError):
    """Raised when an export record is malformed or misses a required field."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        context = dict(context or {})
        if field is not None:
            context.setdefault("field", field)
        super().__init__(message, context=context)
        self.field = field


class InvalidAmountError(ValidationError):
    """Raised when a money or share amount is not a decimal number."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str = "not a decimal number") -> None:
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            context={"amount": amount, "reason": reason},
        )


class InvalidFieldError(ValidationError):
    """Raised when an export column cannot be coerced to its type."""

    error_code = "INVALID_FIELD"

    def __init__(self, field: str, value: str | None, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{field}' ({value!r}): {reason}",
            field=field,
            context={"value": value, "reason": reason},
        )
        self.reason = reason


# =============================================================================
# Ledger State Errors
# =============================================================================


class VersionConflictError(SyncError):
    """Raised when the ledger holds entries imported under another id version.

    Proceeding would re-import those transactions under new identities, so the
    operator has to delete the old entries first.
    """

    error_code = "VERSION_CONFLICT"

    def __init__(self, found_import_id: str, expected_prefix: str) -> None:
        super().__init__(
            f"Found other version prefix ({found_import_id}) of T212 sync not equal "
            f"to current version ({expected_prefix}...), please delete it first "
            "before proceeding to prevent duplicating transactions.",
            context={
                "found_import_id": found_import_id,
                "expected_prefix": expected_prefix,
            },
        )
        self.found_import_id = found_import_id


class InternalConsistencyError(SyncError):
    """Raised when entries produced by this sync no longer make sense."""

    error_code = "INTERNAL_CONSISTENCY"


# =============================================================================
# Export Errors
# =============================================================================


class ExportError(SyncError):
    """Base exception for Trading212 export failures."""

    error_code = "EXPORT_ERROR"


class ExportNotFoundError(ExportError):
    """Raised when a requested export report is missing from the export list."""

    error_code = "EXPORT_NOT_FOUND"

    def __init__(self, report_id: int) -> None:
        super().__init__(
            f"Export report not found: {report_id}",
            context={"report_id": report_id},
        )


class ExportTimeoutError(ExportError, TimeoutError):
    """Raised when an export is still not finished after the last poll."""

    error_code = "EXPORT_TIMEOUT"

    def __init__(self, report_id: int, attempts: int, last_status: str | None) -> None:
        super().__init__(
            f"Export {report_id} not ready after {attempts} attempts "
            f"(last status: {last_status})",
            context={
                "report_id": report_id,
                "attempts": attempts,
                "last_status": last_status,
            },
        )


# =============================================================================
# Remote API Errors
# =============================================================================


class APIError(SyncError):
    """Raised when Trading212 or YNAB answers with a non-2xx status."""

    error_code = "API_ERROR"

    def __init__(self, service: str, status_code: int, detail: str) -> None:
        super().__init__(
            f"{service} API error ({status_code}): {detail}",
            context={"service": service, "status_code": status_code},
        )
        self.service = service
        self.status_code = status_code
        self.detail = detail
