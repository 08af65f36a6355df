"""Synchronous HTTP client for CDX index servers."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from cdxhistory.crawler.cdx import split_cdx_lines
from cdxhistory.utils.config import CdxConfig
from cdxhistory.utils.errors import NetworkError
from cdxhistory.utils.logging import get_logger

logger = get_logger(__name__)


def _describe(e: BaseException) -> str:
    """Error message that is never empty (httpx timeouts often carry no args)."""
    return str(e) or type(e).__name__


class CdxClient:
    """Blocking CDX query client backed by a pooled ``httpx.Client``.

    The underlying client is thread-safe, so one instance can serve every
    crawl worker thread.
    """

    def __init__(
        self,
        config: CdxConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            config: CDX configuration (timeouts, User-Agent).
            transport: Optional transport override, e.g. ``httpx.MockTransport``.
        """
        timeout = httpx.Timeout(
            config.timeout_seconds,
            connect=config.connect_timeout_seconds,
        )
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": config.user_agent},
            transport=transport,
        )

    @contextmanager
    def open_lines(self, query_url: str) -> Iterator[Iterator[str]]:
        """Send a CDX query and stream the response body line by line.

        Args:
            query_url: Fully built query URL.

        Yields:
            Iterator over response lines (without line terminators).

        Raises:
            NetworkError: If the query URL is rejected, the request fails, the
                server answers with a non-2xx status, or the body cannot be read.
        """
        try:
            with self._client.stream("GET", query_url) as response:
                if not response.is_success:
                    raise NetworkError(
                        f"CDX server returned HTTP {response.status_code}",
                        query_url=query_url,
                        status=response.status_code,
                    )
                logger.debug("CDX query opened", query_url=query_url, status=response.status_code)
                yield self._read_lines(response, query_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(_describe(e), query_url=query_url) from e

    @staticmethod
    def _read_lines(response: httpx.Response, query_url: str) -> Iterator[str]:
        try:
            yield from split_cdx_lines(response.iter_text())
        except httpx.HTTPError as e:
            raise NetworkError(_describe(e), query_url=query_url) from e

    def close(self) -> None:
        """Close the connection pool."""
        self._client.close()
