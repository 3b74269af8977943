"""
Business logic services.

Each service handles one step of a catalog update.
"""

from services.reconciliation_service import reconcile, contains
from services.catalog_repository import CatalogRepository, get_catalog_repository
from services.catalog_service import CatalogService, get_catalog_service
from services.table_downloader import TableDownloader, get_table_downloader

__all__ = [
    "reconcile",
    "contains",
    "CatalogRepository",
    "get_catalog_repository",
    "CatalogService",
    "get_catalog_service",
    "TableDownloader",
    "get_table_downloader",
]
