"""
Catalog service for seller spreadsheet updates.

Runs one update end to end: existing IDs -> reconcile -> persist.
"""

from typing import Optional, Sequence
import structlog

from config import settings
from models.catalog import CandidateUpdate, ProductFilter, ProductRecord, UpdateResults
from services.catalog_repository import CatalogRepository, get_catalog_repository
from services.reconciliation_service import reconcile
from exceptions import CatalogError, EmptyRequestError

logger = structlog.get_logger(__name__)


class CatalogService:
    """Service for catalog updates and reads."""

    def __init__(self, repository: Optional[CatalogRepository] = None):
        self.repository = repository or get_catalog_repository()

    def update_catalog(
        self,
        seller_id: int,
        candidates: Sequence[CandidateUpdate]
    ) -> UpdateResults:
        """
        Bring a seller's stored catalog in line with parsed candidates.

        Args:
            seller_id: Seller ID
            candidates: Parsed spreadsheet rows

        Returns:
            UpdateResults with counts and validation errors

        Raises:
            EmptyRequestError: No candidates
            CatalogError: Storage failure (nothing is written)
        """
        if not candidates:
            raise EmptyRequestError()

        logger.info("updating_catalog", seller_id=seller_id, candidates=len(candidates))

        try:
            existing = sorted(self.repository.seller_offer_ids(seller_id))
            sets = reconcile(existing, candidates)

            if sets.is_empty:
                logger.info(
                    "catalog_update_nothing_to_write",
                    seller_id=seller_id,
                    errors=len(sets.errors)
                )
                return UpdateResults(errors=sets.errors)

            deleted = self.repository.apply_changes(
                seller_id,
                sets.to_add,
                sets.to_delete,
                sets.to_update,
                timeout=settings.repository_timeout_seconds,
            )

        except CatalogError as e:
            logger.error(
                "catalog_update_failed",
                seller_id=seller_id,
                code=e.code,
                error=e.message
            )
            raise

        results = UpdateResults(
            added=len(sets.to_add),
            updated=len(sets.to_update),
            deleted=deleted,
            errors=sets.errors,
        )

        logger.info(
            "catalog_updated",
            seller_id=seller_id,
            added=results.added,
            updated=results.updated,
            deleted=results.deleted,
            errors=len(results.errors)
        )

        return results

    def products_by_filter(self, product_filter: ProductFilter) -> list[ProductRecord]:
        """Get stored products matching the filter (capped by query_result_limit)."""
        return self.repository.products_by_filter(product_filter)


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None

def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
