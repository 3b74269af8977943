"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    CatalogError,

    # Taxonomy
    ErrorKind,
    CatalogFailure,
    FAILURE_KINDS,
    KIND_STATUS_CODES,

    # Spreadsheet
    FailedToReadError,
    EmptyDocumentError,
    EmptySheetError,
    InvalidOfferIDsError,
    DuplicateOfferIDsError,
    TableDownloadError,

    # Request
    EmptyRequestError,

    # Storage
    QueryBuildError,
    TransactionError,
    QueryExecutionError,
)

__all__ = [
    # Base
    "AppError",
    "CatalogError",

    # Taxonomy
    "ErrorKind",
    "CatalogFailure",
    "FAILURE_KINDS",
    "KIND_STATUS_CODES",

    # Spreadsheet
    "FailedToReadError",
    "EmptyDocumentError",
    "EmptySheetError",
    "InvalidOfferIDsError",
    "DuplicateOfferIDsError",
    "TableDownloadError",

    # Request
    "EmptyRequestError",

    # Storage
    "QueryBuildError",
    "TransactionError",
    "QueryExecutionError",
]
