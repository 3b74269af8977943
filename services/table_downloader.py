"""
Downloads seller spreadsheets from a URL.
"""

from io import BytesIO
from typing import Optional
import requests
import structlog

from config import settings
from exceptions import TableDownloadError

logger = structlog.get_logger(__name__)


class TableDownloader:
    """Fetches a spreadsheet into memory."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.gateway_timeout_seconds

    def fetch(self, url: str) -> BytesIO:
        """
        Download a spreadsheet.

        Args:
            url: Spreadsheet location (http/https)

        Returns:
            File contents as BytesIO

        Raises:
            TableDownloadError: Request failed or status was not 200
        """
        logger.info("downloading_table", url=url)

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(
                "table_download_failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__
            )
            raise TableDownloadError()

        if response.status_code != 200:
            logger.warning(
                "table_download_bad_status",
                url=url,
                status_code=response.status_code
            )
            raise TableDownloadError(details={"status_code": response.status_code})

        logger.info("table_downloaded", url=url, size=len(response.content))

        return BytesIO(response.content)


# Singleton instance for convenience
_table_downloader: Optional[TableDownloader] = None

def get_table_downloader() -> TableDownloader:
    """Get or create TableDownloader instance."""
    global _table_downloader
    if _table_downloader is None:
        _table_downloader = TableDownloader()
    return _table_downloader
