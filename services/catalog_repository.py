"""
Catalog storage: existing-ID lookup, atomic three-way write, filtered read.

Every write goes through one transaction: a single upsert statement for
adds and updates (the (seller_id, offer_id) constraint decides between
insert and update) and a single delete statement. Driver errors are
logged and re-raised as catalog storage errors; they never reach callers
verbatim.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence
import psycopg
import structlog

from config import settings
from config.database import DatabaseSession
from models.catalog import ProductFilter, ProductRecord
from exceptions import (
    CatalogError,
    EmptyRequestError,
    QueryBuildError,
    QueryExecutionError,
    TransactionError,
)

logger = structlog.get_logger(__name__)

TABLE_NAME = "products"
BIGINT_MAX = 2**63 - 1

SELLER_OFFER_IDS_QUERY = (
    "SELECT offer_id FROM products WHERE seller_id = %s ORDER BY offer_id"
)

UPSERT_QUERY = """
INSERT INTO products (seller_id, offer_id, name, price, quantity)
SELECT %s, t.offer_id, t.name, t.price, t.quantity
FROM unnest(%s::bigint[], %s::text[], %s::bigint[], %s::bigint[])
    AS t(offer_id, name, price, quantity)
ON CONFLICT ON CONSTRAINT no_duplicates DO UPDATE SET
    name = EXCLUDED.name,
    price = EXCLUDED.price,
    quantity = EXCLUDED.quantity
"""

DELETE_QUERY = (
    "DELETE FROM products WHERE seller_id = %s AND offer_id = ANY(%s::bigint[])"
)

SELECT_COLUMNS = "seller_id, offer_id, name, price, quantity"


class CatalogRepository:
    """
    Persistence for seller catalogs.

    Opens one connection per operation; nothing is shared between calls.
    """

    # ===================
    # READ OPERATIONS
    # ===================

    def seller_offer_ids(self, seller_id: int, timeout: Optional[float] = None) -> list[int]:
        """
        Get every offer ID the seller currently has.

        Args:
            seller_id: Seller ID
            timeout: Statement timeout in seconds (default from settings)

        Returns:
            Offer IDs in ascending order
        """
        logger.debug("getting_seller_offer_ids", seller_id=seller_id)

        with self._session("seller_offer_ids") as conn:
            self._set_statement_timeout(conn, timeout or settings.query_timeout_seconds, local=False)
            rows = self._execute(
                conn, "seller_offer_ids", SELLER_OFFER_IDS_QUERY, (seller_id,)
            ).fetchall()

        offer_ids = [row["offer_id"] for row in rows]

        logger.debug("seller_offer_ids_retrieved", seller_id=seller_id, count=len(offer_ids))

        return offer_ids

    def products_by_filter(
        self,
        product_filter: ProductFilter,
        limit: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> list[ProductRecord]:
        """
        Get products matching a filter.

        Args:
            product_filter: Seller IDs, offer IDs and name substring (all optional)
            limit: Max rows (default settings.query_result_limit)
            timeout: Statement timeout in seconds (default from settings)

        Returns:
            List of ProductRecord ordered by seller, offer
        """
        limit = limit or settings.query_result_limit
        query, params = build_filter_query(product_filter, limit)

        logger.info(
            "getting_products_by_filter",
            seller_ids=len(product_filter.seller_ids),
            offer_ids=len(product_filter.offer_ids),
            substring=product_filter.substring,
            limit=limit
        )

        with self._session("products_by_filter") as conn:
            self._set_statement_timeout(conn, timeout or settings.query_timeout_seconds, local=False)
            rows = self._execute(conn, "products_by_filter", query, params).fetchall()

        products = [ProductRecord(**row) for row in rows]

        logger.info("products_retrieved", count=len(products))

        return products

    # ===================
    # WRITE OPERATIONS
    # ===================

    def apply_changes(
        self,
        seller_id: int,
        to_add: Sequence[ProductRecord],
        to_delete: Sequence[ProductRecord],
        to_update: Sequence[ProductRecord],
        timeout: Optional[float] = None
    ) -> int:
        """
        Apply reconciled sets in one transaction.

        Adds and updates share one upsert statement; deletes run as one
        statement keyed by seller and offer IDs. Any failure rolls back
        everything.

        Args:
            seller_id: Seller ID
            to_add: Records not yet persisted
            to_delete: Records the seller wants removed
            to_update: Records already persisted
            timeout: Statement timeout in seconds (default from settings)

        Returns:
            Number of rows actually deleted

        Raises:
            EmptyRequestError: All three sets are empty
            QueryBuildError: Records cannot be expressed as a statement
            TransactionError: Connection, BEGIN or COMMIT failed
            QueryExecutionError: A statement failed
        """
        upserts = list(to_add) + list(to_update)
        if not upserts and not to_delete:
            raise EmptyRequestError()

        logger.info(
            "applying_catalog_changes",
            seller_id=seller_id,
            to_add=len(to_add),
            to_update=len(to_update),
            to_delete=len(to_delete)
        )

        upsert_stmt = build_upsert_query(seller_id, upserts) if upserts else None
        delete_stmt = build_delete_query(seller_id, to_delete) if to_delete else None

        deleted = 0
        with self._session("apply_changes") as conn:
            try:
                with conn.transaction():
                    self._set_statement_timeout(
                        conn, timeout or settings.repository_timeout_seconds, local=True
                    )

                    if upsert_stmt is not None:
                        affected = self._execute(conn, "upsert_products", *upsert_stmt).rowcount
                        if affected != len(upserts):
                            logger.warning(
                                "upsert_rowcount_mismatch",
                                seller_id=seller_id,
                                expected=len(upserts),
                                affected=affected
                            )

                    if delete_stmt is not None:
                        deleted = self._execute(conn, "delete_products", *delete_stmt).rowcount
                        if deleted != len(to_delete):
                            logger.warning(
                                "delete_rowcount_mismatch",
                                seller_id=seller_id,
                                expected=len(to_delete),
                                affected=deleted
                            )
            except CatalogError:
                raise
            except psycopg.Error as e:
                logger.error(
                    "catalog_transaction_failed",
                    seller_id=seller_id,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise TransactionError()

        logger.info(
            "catalog_changes_applied",
            seller_id=seller_id,
            upserted=len(upserts),
            deleted=deleted
        )

        return deleted

    # ===================
    # UTILITY METHODS
    # ===================

    @contextmanager
    def _session(self, operation: str) -> Iterator[psycopg.Connection[Any]]:
        """DatabaseSession for one operation; driver errors become TransactionError."""
        try:
            with DatabaseSession(operation) as conn:
                yield conn
        except psycopg.Error as e:
            logger.error(
                "db_session_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__
            )
            raise TransactionError()

    def _execute(self, conn, operation: str, query: str, params: Sequence[Any]):
        try:
            return conn.execute(query, params)
        except psycopg.Error as e:
            logger.error(
                "query_execution_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__
            )
            raise QueryExecutionError()

    def _set_statement_timeout(self, conn, seconds: float, local: bool) -> None:
        """Bound every following statement; `local` scopes it to the transaction."""
        millis = str(max(1, int(seconds * 1000)))
        self._execute(
            conn,
            "set_statement_timeout",
            "SELECT set_config('statement_timeout', %s, %s)",
            (millis, local),
        )


# ===================
# QUERY BUILDERS
# ===================

def build_upsert_query(
    seller_id: int,
    records: Sequence[ProductRecord]
) -> tuple[str, tuple]:
    """
    Build the bulk insert-or-update statement.

    Raises:
        QueryBuildError: No records, or a value outside the BIGINT range
    """
    if not records:
        logger.error("upsert_query_without_records", seller_id=seller_id)
        raise QueryBuildError()

    _check_bigint("seller_id", [seller_id])
    _check_bigint("offer_id", [r.offer_id for r in records])
    _check_bigint("price", [r.price for r in records])
    _check_bigint("quantity", [r.quantity for r in records])

    params = (
        seller_id,
        [r.offer_id for r in records],
        [r.name for r in records],
        [r.price for r in records],
        [r.quantity for r in records],
    )
    return UPSERT_QUERY, params


def build_delete_query(
    seller_id: int,
    records: Sequence[ProductRecord]
) -> tuple[str, tuple]:
    """
    Build the bulk delete statement.

    Raises:
        QueryBuildError: No records, or a value outside the BIGINT range
    """
    if not records:
        logger.error("delete_query_without_records", seller_id=seller_id)
        raise QueryBuildError()

    offer_ids = [r.offer_id for r in records]
    _check_bigint("seller_id", [seller_id])
    _check_bigint("offer_id", offer_ids)

    return DELETE_QUERY, (seller_id, offer_ids)


def build_filter_query(product_filter: ProductFilter, limit: int) -> tuple[str, tuple]:
    """
    Build the filtered select.

    The name substring is trimmed; blank means no name filter.
    """
    conditions = []
    params: list[Any] = []

    if product_filter.seller_ids:
        conditions.append("seller_id = ANY(%s)")
        params.append(list(product_filter.seller_ids))

    if product_filter.offer_ids:
        conditions.append("offer_id = ANY(%s)")
        params.append(list(product_filter.offer_ids))

    substring = product_filter.substring.strip()
    if substring:
        conditions.append("name LIKE %s")
        params.append(f"%{substring}%")

    query = f"SELECT {SELECT_COLUMNS} FROM {TABLE_NAME}"
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY seller_id, offer_id LIMIT %s"
    params.append(limit)

    return query, tuple(params)


def _check_bigint(column: str, values: Sequence[int]) -> None:
    for value in values:
        if value < 0 or value > BIGINT_MAX:
            logger.error("value_out_of_bigint_range", column=column, value=value)
            raise QueryBuildError(details={"column": column})


# Singleton instance for convenience
_catalog_repository: Optional[CatalogRepository] = None

def get_catalog_repository() -> CatalogRepository:
    """Get or create CatalogRepository instance."""
    global _catalog_repository
    if _catalog_repository is None:
        _catalog_repository = CatalogRepository()
    return _catalog_repository
