"""
Excel parser for seller catalog uploads.

Parses the first sheet of a seller spreadsheet. The sheet has no header;
columns are fixed:

    [0] offer_id  - seller-scoped product ID (unsigned integer)
    [1] name      - product name (trimmed)
    [2] price     - unsigned integer
    [3] quantity  - unsigned integer
    [4] available - true/false; false means "delete this offer"

The offer_id column is validated as a whole (numeric, no duplicates)
before any row is parsed. Row problems after that are collected as
RowError entries and never abort the parse.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import structlog

import pandas as pd

from exceptions import (
    FailedToReadError,
    EmptyDocumentError,
    EmptySheetError,
    InvalidOfferIDsError,
    DuplicateOfferIDsError,
)
from models.catalog import CandidateUpdate, ProductRecord, RowError

logger = structlog.get_logger(__name__)

UINT64_MAX = 2**64 - 1

COLUMNS = ("offer_id", "name", "price", "quantity", "available")

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@dataclass
class CatalogParseResult:
    """
    Result of parsing a catalog spreadsheet.

    `errors` stays None when no row failed, so callers can compare
    results exactly.
    """
    candidates: list[CandidateUpdate] = field(default_factory=list)
    errors: Optional[list[RowError]] = None

    @property
    def success(self) -> bool:
        """True if no row errors occurred."""
        return not self.errors

    @property
    def has_data(self) -> bool:
        """True if any row survived parsing."""
        return len(self.candidates) > 0


def parse_catalog_excel(file: Union[str, Path, BytesIO]) -> CatalogParseResult:
    """
    Parse a seller catalog spreadsheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)

    Returns:
        CatalogParseResult with valid candidates and row errors

    Raises:
        FailedToReadError: File is not a readable spreadsheet
        EmptyDocumentError: Workbook has no sheets
        EmptySheetError: First sheet has no rows
        InvalidOfferIDsError: offer_id column has a non-numeric value
        DuplicateOfferIDsError: offer_id column repeats an ID
    """
    logger.info("parsing_catalog_excel", file_type=type(file).__name__)

    df = _read_first_sheet(file)
    _check_offer_ids(df)

    candidates: list[CandidateUpdate] = []
    errors: list[RowError] = []

    for idx, row in df.iterrows():
        row_num = idx + 1  # Excel row (1-indexed, no header)
        candidate, row_errors = _parse_row(row_num, list(row))

        if row_errors:
            errors.extend(row_errors)
        else:
            candidates.append(candidate)

    result = CatalogParseResult(
        candidates=candidates,
        errors=errors or None,
    )

    logger.info(
        "catalog_excel_parsed",
        rows=len(df),
        candidate_count=len(candidates),
        error_count=len(errors),
        success=result.success
    )

    return result


def _read_first_sheet(file: Union[str, Path, BytesIO]) -> pd.DataFrame:
    """Open the workbook and load its first sheet as text cells."""
    try:
        excel = pd.ExcelFile(file, engine="openpyxl")
    except Exception as e:
        logger.error("excel_read_failed", error=str(e), error_type=type(e).__name__)
        raise FailedToReadError()

    if not excel.sheet_names:
        logger.warning("excel_has_no_sheets")
        raise EmptyDocumentError()

    sheet_name = excel.sheet_names[0]
    try:
        df = excel.parse(
            sheet_name,
            header=None,
            dtype=str,
            keep_default_na=False,
        )
    except Exception as e:
        logger.error(
            "excel_sheet_read_failed",
            sheet=sheet_name,
            error=str(e),
            error_type=type(e).__name__
        )
        raise FailedToReadError()

    if df.empty:
        logger.warning("excel_sheet_empty", sheet=sheet_name)
        raise EmptySheetError()

    return df.reset_index(drop=True)


def _check_offer_ids(df: pd.DataFrame) -> None:
    """Whole-column check: every offer_id is numeric and unique."""
    offer_ids = []
    for value in df.iloc[:, 0]:
        try:
            offer_ids.append(parse_uint(_cell_text(value)))
        except ValueError as e:
            logger.warning("invalid_offer_id_column", error=str(e))
            raise InvalidOfferIDsError()

    if has_duplicates(offer_ids):
        logger.warning("offer_id_duplicates_found", count=len(offer_ids))
        raise DuplicateOfferIDsError()


def _parse_row(
    row_num: int,
    cells: list
) -> tuple[Optional[CandidateUpdate], list[RowError]]:
    """Parse one sheet row; returns the candidate (if valid) and its errors."""
    cells = [_cell_text(v) for v in cells]
    cells += [""] * (len(COLUMNS) - len(cells))

    row_errors: list[RowError] = []
    values: dict = {}

    for col, raw in zip(COLUMNS, cells):
        try:
            if col == "name":
                values[col] = raw.strip()
            elif col == "available":
                values[col] = parse_bool(raw)
            else:
                values[col] = parse_uint(raw)
        except ValueError as e:
            row_errors.append(RowError(row=row_num, field=col, message=str(e)))

    product = ProductRecord(
        offer_id=values.get("offer_id", 0),
        name=values["name"],
        price=values.get("price", 0),
        quantity=values.get("quantity", 0),
    )

    # Domain rules
    invalid = product.validate()
    if invalid is not None:
        row_errors.append(RowError(row=row_num, field=invalid.field, message=invalid.message))

    if row_errors:
        return None, row_errors

    return CandidateUpdate(product=product, available=values["available"]), []


# ===================
# HELPER FUNCTIONS
# ===================

def parse_uint(value: str) -> int:
    """
    Parse a decimal unsigned 64-bit integer.

    No sign, no whitespace, no separators.

    Raises:
        ValueError: With a message naming the rejected text
    """
    if not value or not value.isascii() or not value.isdigit():
        raise ValueError(f'parsing "{value}": invalid syntax')
    number = int(value)
    if number > UINT64_MAX:
        raise ValueError(f'parsing "{value}": value out of range')
    return number


def parse_bool(value: str) -> bool:
    """
    Parse a boolean cell.

    Accepts 1/t/T/TRUE/true/True and 0/f/F/FALSE/false/False.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f'parsing "{value}": invalid syntax')


def has_duplicates(values: list) -> bool:
    """True if any value appears more than once."""
    seen = set()
    for value in values:
        if value in seen:
            return True
        seen.add(value)
    return False


def _cell_text(value) -> str:
    """Cell value as text; empty cells become ""."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value)
