"""
Catalog API schemas for validation and serialization.

Field aliases keep the wire format camelCase (sellerId, tableURL, errMsg).
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema
from models.catalog import RowError

UINT64_MAX = 2**64 - 1


class CatalogUploadRequest(BaseSchema):
    """
    Request to reconcile a seller's catalog against a spreadsheet.

    Required: tableURL, sellerId
    """

    table_url: str = Field(
        ...,
        min_length=1,
        alias="tableURL",
        description="URL of the .xlsx spreadsheet to download",
        examples=["https://example.com/catalog.xlsx"]
    )
    seller_id: int = Field(
        ...,
        ge=0,
        le=UINT64_MAX,
        alias="sellerId",
        description="Seller whose catalog is updated"
    )


class RowErrorResponse(BaseSchema):
    """Single non-fatal row error."""

    row: Optional[int] = Field(None, description="1-based spreadsheet row")
    field: str = Field(..., description="Offending column")
    err_msg: str = Field(..., alias="errMsg", description="What went wrong")
    offer_id: Optional[int] = Field(None, alias="offerId", description="Offer ID, for post-parse errors")

    @classmethod
    def from_row_error(cls, error: RowError) -> "RowErrorResponse":
        """Build from a pipeline RowError. Serialize with exclude_none to drop unset row/offerId."""
        return cls(
            row=error.row,
            field=error.field,
            err_msg=error.message,
            offer_id=error.offer_id
        )


class UpdateResultsResponse(BaseSchema):
    """Counts of applied changes plus every row error."""

    added: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    deleted: int = Field(..., ge=0)
    errors: list[RowErrorResponse] = Field(default_factory=list)


class ProductResponse(BaseSchema):
    """
    Persisted product.

    Used for GET responses.
    """

    seller_id: int = Field(..., alias="sellerId", description="Seller ID")
    offer_id: int = Field(..., alias="offerId", description="Seller-scoped offer ID")
    name: str = Field(..., description="Product name")
    price: int = Field(..., description="Price")
    quantity: int = Field(..., description="Units in stock")
