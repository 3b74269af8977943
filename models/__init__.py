"""
Catalog models: pipeline value objects and API schemas.
"""

from models.base import BaseSchema
from models.catalog import (
    MAX_NAME_LENGTH,
    MSG_TOO_LONG_NAME,
    ProductRecord,
    ProductValidationError,
    CandidateUpdate,
    RowError,
    ReconciliationSets,
    UpdateResults,
    ProductFilter,
)
from models.product import (
    CatalogUploadRequest,
    RowErrorResponse,
    UpdateResultsResponse,
    ProductResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Pipeline
    "MAX_NAME_LENGTH",
    "MSG_TOO_LONG_NAME",
    "ProductRecord",
    "ProductValidationError",
    "CandidateUpdate",
    "RowError",
    "ReconciliationSets",
    "UpdateResults",
    "ProductFilter",

    # API
    "CatalogUploadRequest",
    "RowErrorResponse",
    "UpdateResultsResponse",
    "ProductResponse",
]
