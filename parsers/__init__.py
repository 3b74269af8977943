"""
Spreadsheet parsers module.
"""

from parsers.catalog_parser import (
    parse_catalog_excel,
    CatalogParseResult,
)

__all__ = [
    "parse_catalog_excel",
    "CatalogParseResult",
]
