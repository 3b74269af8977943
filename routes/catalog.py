"""
Catalog API routes.

POST reconciles a seller's stored catalog against a spreadsheet URL.
GET reads stored products by seller, offer and name substring.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.catalog import ProductFilter, UpdateResults
from models.product import (
    CatalogUploadRequest,
    RowErrorResponse,
    UpdateResultsResponse,
    ProductResponse,
)
from parsers.catalog_parser import parse_catalog_excel, parse_uint
from services.catalog_service import get_catalog_service
from services.table_downloader import get_table_downloader
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("", response_model=UpdateResultsResponse, response_model_exclude_none=True)
def update_catalog(data: CatalogUploadRequest):
    """
    Reconcile a seller's catalog against a spreadsheet.

    Downloads the spreadsheet, parses it and applies adds, updates and
    deletes in one transaction. Row errors never abort the update; they
    come back in `errors` (validation errors first, then parse errors).

    Raises:
        400: Bad URL, unreadable or empty spreadsheet, invalid offer IDs
        409: Duplicate offer IDs in the sheet
        500: Storage failure
    """
    try:
        file = get_table_downloader().fetch(data.table_url)
        parsed = parse_catalog_excel(file)

        if parsed.has_data:
            results = get_catalog_service().update_catalog(data.seller_id, parsed.candidates)
        else:
            # Every row was rejected; report row errors without touching storage
            logger.info("catalog_upload_no_valid_rows", seller_id=data.seller_id)
            results = UpdateResults()

        errors = results.errors + (parsed.errors or [])

        return UpdateResultsResponse(
            added=results.added,
            updated=results.updated,
            deleted=results.deleted,
            errors=[RowErrorResponse.from_row_error(e) for e in errors]
        )

    except Exception as e:
        return handle_error(e)


@router.get("", response_model=list[ProductResponse])
def list_products(
    seller_id: Optional[str] = Query(None, description="Comma-separated seller IDs"),
    offer_id: Optional[str] = Query(None, description="Comma-separated offer IDs"),
    substring: Optional[str] = Query(None, description="Name substring")
):
    """
    List stored products.

    A comma list with any non-numeric entry is ignored as a whole.
    Results are ordered by seller, offer and capped by the configured limit.
    """
    try:
        product_filter = ProductFilter(
            seller_ids=parse_id_list(seller_id, "seller_id"),
            offer_ids=parse_id_list(offer_id, "offer_id"),
            substring=substring or "",
        )

        products = get_catalog_service().products_by_filter(product_filter)

        return [ProductResponse.model_validate(p) for p in products]

    except Exception as e:
        return handle_error(e)


# ===================
# HELPER FUNCTIONS
# ===================

def parse_id_list(raw: Optional[str], param: str) -> tuple[int, ...]:
    """
    Parse "1,2,3" into IDs.

    Returns () (no filter) when raw is empty or any entry is invalid.
    """
    if not raw:
        return ()

    ids = []
    for part in raw.split(","):
        try:
            ids.append(parse_uint(part))
        except ValueError as e:
            logger.warning("id_list_ignored", param=param, value=raw, error=str(e))
            return ()
    return tuple(ids)

