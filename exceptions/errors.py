"""
Custom exception classes for the application.

Catalog failures form a closed set: every fatal condition the pipeline
can raise is a member of CatalogFailure, and every member belongs to
exactly one ErrorKind. Routes map kinds to HTTP status codes.
"""

from typing import Optional, Any
from datetime import datetime, timezone
from enum import Enum


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "EMPTY_SHEET")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


# ===================
# CATALOG TAXONOMY
# ===================

class ErrorKind(str, Enum):
    """Coarse classes of fatal catalog errors."""
    BAD_INPUT = "BAD_INPUT"
    CONFLICT = "CONFLICT"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    EMPTY_REQUEST = "EMPTY_REQUEST"


class CatalogFailure(str, Enum):
    """Every fatal condition of the catalog pipeline."""
    FAILED_TO_READ = "FAILED_TO_READ"
    EMPTY_DOC = "EMPTY_DOC"
    EMPTY_SHEET = "EMPTY_SHEET"
    INVALID_IDS = "INVALID_IDS"
    HAS_DUPLICATES = "HAS_DUPLICATES"
    TABLE_DOWNLOAD = "TABLE_DOWNLOAD"
    EMPTY_REQUEST = "EMPTY_REQUEST"
    QUERY_BUILD = "QUERY_BUILD"
    TX_FAILED = "TX_FAILED"
    QUERY_EXEC = "QUERY_EXEC"


FAILURE_KINDS: dict[CatalogFailure, ErrorKind] = {
    CatalogFailure.FAILED_TO_READ: ErrorKind.BAD_INPUT,
    CatalogFailure.EMPTY_DOC: ErrorKind.BAD_INPUT,
    CatalogFailure.EMPTY_SHEET: ErrorKind.BAD_INPUT,
    CatalogFailure.INVALID_IDS: ErrorKind.BAD_INPUT,
    CatalogFailure.TABLE_DOWNLOAD: ErrorKind.BAD_INPUT,
    CatalogFailure.HAS_DUPLICATES: ErrorKind.CONFLICT,
    CatalogFailure.EMPTY_REQUEST: ErrorKind.EMPTY_REQUEST,
    CatalogFailure.QUERY_BUILD: ErrorKind.STORAGE_FAILURE,
    CatalogFailure.TX_FAILED: ErrorKind.STORAGE_FAILURE,
    CatalogFailure.QUERY_EXEC: ErrorKind.STORAGE_FAILURE,
}

KIND_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.BAD_INPUT: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.EMPTY_REQUEST: 422,
    ErrorKind.STORAGE_FAILURE: 500,
}


class CatalogError(AppError):
    """
    Fatal catalog pipeline error.

    Subclasses pin `failure` and `default_message`; the error code,
    kind and HTTP status are derived from the failure.
    """

    failure: CatalogFailure
    default_message: str

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=self.failure.value,
            message=message or self.default_message,
            status_code=KIND_STATUS_CODES[self.kind],
            details=details
        )

    @property
    def kind(self) -> ErrorKind:
        return FAILURE_KINDS[self.failure]


# ===================
# SPREADSHEET ERRORS
# ===================

class FailedToReadError(CatalogError):
    """Spreadsheet container could not be opened."""
    failure = CatalogFailure.FAILED_TO_READ
    default_message = "cannot read document"


class EmptyDocumentError(CatalogError):
    """Workbook has no sheets."""
    failure = CatalogFailure.EMPTY_DOC
    default_message = "empty document"


class EmptySheetError(CatalogError):
    """First sheet has no rows."""
    failure = CatalogFailure.EMPTY_SHEET
    default_message = "empty sheet"


class InvalidOfferIDsError(CatalogError):
    """Offer ID column holds a non-numeric value."""
    failure = CatalogFailure.INVALID_IDS
    default_message = "offer_id column has invalid value(s)"


class DuplicateOfferIDsError(CatalogError):
    """Offer ID column holds the same ID more than once."""
    failure = CatalogFailure.HAS_DUPLICATES
    default_message = "sheet contain offer_id duplicates"


class TableDownloadError(CatalogError):
    """Spreadsheet URL could not be fetched."""
    failure = CatalogFailure.TABLE_DOWNLOAD
    default_message = "bad table url"


# ===================
# REQUEST ERRORS
# ===================

class EmptyRequestError(CatalogError):
    """Nothing to add, update or delete."""
    failure = CatalogFailure.EMPTY_REQUEST
    default_message = "empty request"


# ===================
# STORAGE ERRORS
# ===================

class QueryBuildError(CatalogError):
    """SQL statement could not be built from the records."""
    failure = CatalogFailure.QUERY_BUILD
    default_message = "query builder failed"


class TransactionError(CatalogError):
    """Connection, BEGIN or COMMIT failed."""
    failure = CatalogFailure.TX_FAILED
    default_message = "transaction failed"


class QueryExecutionError(CatalogError):
    """Statement failed while executing."""
    failure = CatalogFailure.QUERY_EXEC
    default_message = "failed to execute query"
