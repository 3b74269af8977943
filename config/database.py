"""
Database connection management.

Opens psycopg connections to the catalog database and owns the
products table bootstrap.
"""

from typing import Any, Optional
import psycopg
from psycopg.rows import dict_row
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


PRODUCTS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS products (
    seller_id BIGINT       NOT NULL,
    offer_id  BIGINT       NOT NULL,
    name      VARCHAR(100) NOT NULL,
    price     BIGINT       NOT NULL,
    quantity  BIGINT       NOT NULL,
    PRIMARY KEY (seller_id, offer_id),
    CONSTRAINT no_duplicates UNIQUE (seller_id, offer_id)
)
"""


def get_connection() -> psycopg.Connection[Any]:
    """
    Open a new connection to the catalog database.

    Connections are autocommit; callers that need atomicity wrap their
    statements in ``conn.transaction()``. Rows come back as dicts.

    Returns:
        Connection: Open psycopg connection (caller closes it)

    Raises:
        psycopg.OperationalError: If the server is unreachable
    """
    return psycopg.connect(
        settings.database_url,
        autocommit=True,
        row_factory=dict_row,
        connect_timeout=settings.database_connect_timeout,
    )


class DatabaseSession:
    """
    Context manager for database operations with logging.

    Usage:
        with DatabaseSession("seller_offer_ids") as conn:
            rows = conn.execute("SELECT ...", params).fetchall()
    """

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.conn: Optional[psycopg.Connection[Any]] = None

    def __enter__(self) -> psycopg.Connection[Any]:
        logger.debug(
            "db_operation_start",
            operation=self.operation_name
        )
        self.conn = get_connection()
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "db_operation_failed",
                operation=self.operation_name,
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        else:
            logger.debug(
                "db_operation_complete",
                operation=self.operation_name
            )
        if self.conn is not None:
            self.conn.close()
            self.conn = None
        return False  # Don't suppress exceptions


# ===================
# HELPER FUNCTIONS
# ===================

def init_schema() -> None:
    """Create the products table if it does not exist yet."""
    with DatabaseSession("init_schema") as conn:
        conn.execute(PRODUCTS_TABLE_DDL)
    logger.info("database_schema_ready", table="products")


def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        with DatabaseSession("check_connection") as conn:
            row = conn.execute("SELECT count(*) AS total FROM products").fetchone()

        return {
            "status": "healthy",
            "products_count": row["total"] if row else 0
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
