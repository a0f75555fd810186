"""Custom exception hierarchy for QuoteLedger."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Quote errors
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"

    # Version errors
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Concurrency errors
    BUSY = "BUSY"


class QuoteLedgerException(Exception):
    """
    Base exception for all QuoteLedger errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class QuoteNotFoundError(QuoteLedgerException):
    """Quote not found in database."""

    def __init__(self, quote_id: int):
        super().__init__(
            f"Quote not found: {quote_id}",
            ErrorCode.QUOTE_NOT_FOUND,
            status_code=404,
            details={"quote_id": quote_id}
        )


class VersionNotFoundError(QuoteLedgerException):
    """Version snapshot not found for the given quote."""

    def __init__(self, quote_id: int, version_num: int):
        super().__init__(
            f"Version {version_num} not found for quote {quote_id}",
            ErrorCode.VERSION_NOT_FOUND,
            status_code=404,
            details={"quote_id": quote_id, "version_num": version_num}
        )


class ValidationError(QuoteLedgerException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(QuoteLedgerException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(QuoteLedgerException):
    """The quote belongs to a different owner."""

    def __init__(self, quote_id: Optional[int] = None, message: str = "You do not have access to this quote"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
            details={"quote_id": quote_id} if quote_id is not None else {}
        )


class BusyError(QuoteLedgerException):
    """Another save or restore holds the quote's lock. Safe to retry."""

    def __init__(self, quote_id: int, retry_after: float):
        super().__init__(
            f"Quote {quote_id} is being modified by another request",
            ErrorCode.BUSY,
            status_code=409,
            details={"quote_id": quote_id, "retry_after": retry_after}
        )


class DatabaseError(QuoteLedgerException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
