"""
Fetch history loader backed by a CDX server.

Populates a crawl record's fetch history by querying a CDX server (such as
OutbackCDX or pywb), enabling identical-digest deduplication against an
existing web archive. Intended to run in the fetch chain before the fetcher,
with a history consumer after it deciding what to store.

Example:
    loader = CdxServerHistoryLoader(CdxConfig(server_url="http://localhost:8080/web"))
    loader.start()
    if loader.should_process(uri):
        loader.process(uri)
"""

from enum import Enum

import httpx

from cdxhistory.crawler.cdx import (
    DateParser,
    UrlEncoder,
    apply_matches,
    build_query_url,
    encode_within_query,
    iter_cdx_records,
)
from cdxhistory.crawler.cdx_client import CdxClient
from cdxhistory.crawler.crawl_uri import CrawlRecord
from cdxhistory.utils.config import CdxConfig, get_settings
from cdxhistory.utils.dates import format_epoch_millis, parse_14_digit_date
from cdxhistory.utils.errors import ConfigurationError, DateParseError, NetworkError
from cdxhistory.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

ELIGIBLE_SCHEMES = frozenset({"http", "https"})


class LookupOutcome(str, Enum):
    """How a single lookup ended. Only reported through logs."""

    DONE = "done"
    ABORTED = "aborted"


class CdxServerHistoryLoader:
    """Processor that loads fetch history for HTTP(S) URLs from a CDX server.

    Invocations share only the read-only configuration and the HTTP
    connection pool, so ``process`` may be called from many crawl worker
    threads at once.
    """

    def __init__(
        self,
        config: CdxConfig | None = None,
        *,
        encoder: UrlEncoder = encode_within_query,
        date_parser: DateParser = parse_14_digit_date,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize loader.

        Args:
            config: CDX configuration. Loaded from settings if None.
            encoder: Percent-encoder for the exact URL in the query.
            date_parser: Converts 14-digit CDX timestamps to epoch milliseconds.
            transport: Optional httpx transport (tests, proxies).
        """
        self.config = config if config is not None else get_settings().cdx
        self._encoder = encoder
        self._date_parser = date_parser
        self._transport = transport
        self._client: CdxClient | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Validate configuration and open the HTTP client.

        Raises:
            ConfigurationError: If no CDX server URL is configured.
        """
        if self._client is not None:
            return
        if not self.config.server_url:
            raise ConfigurationError("No cdx server_url configured", setting="cdx.server_url")

        self._client = CdxClient(self.config, transport=self._transport)
        logger.info(
            "CDX history loader started",
            server_url=self.config.server_url,
            query_limit=self.config.query_limit,
        )

    def stop(self) -> None:
        """Close the HTTP client."""
        if self._client is None:
            return
        self._client.close()
        self._client = None
        logger.info("CDX history loader stopped")

    @property
    def is_running(self) -> bool:
        return self._client is not None

    def __enter__(self) -> "CdxServerHistoryLoader":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # =========================================================================
    # Processor interface
    # =========================================================================

    def should_process(self, uri: CrawlRecord) -> bool:
        """Only HTTP(S) URLs are looked up."""
        return uri.scheme in ELIGIBLE_SCHEMES

    def process(self, uri: CrawlRecord) -> None:
        """Load fetch history for ``uri`` unless it already has some.

        Lookup failures are logged and never raised: the crawl of the URL
        continues with whatever history the lookup managed to attach.

        Args:
            uri: Crawl record to enrich.

        Raises:
            RuntimeError: If the loader has not been started.
        """
        if uri.fetch_history is not None:
            return
        self._inner_process(uri)

    def build_query_url(self, exact_url: str) -> str:
        """Build the CDX query URL for ``exact_url`` using this loader's configuration."""
        return build_query_url(
            self.config.server_url or "",
            exact_url,
            self.config.query_limit,
            self._encoder,
        )

    def _inner_process(self, uri: CrawlRecord) -> None:
        if self._client is None:
            raise RuntimeError("CdxServerHistoryLoader.process() called before start()")

        exact_url = str(uri.url)
        query_url = self.build_query_url(exact_url)

        with LogContext(url=exact_url):
            try:
                with self._client.open_lines(query_url) as lines:
                    records = iter_cdx_records(lines, query_url, self._date_parser)
                    matches = apply_matches(records, exact_url, uri)
            except (NetworkError, DateParseError) as e:
                logger.warning(
                    "Exception fetching history",
                    query_url=query_url,
                    outcome=LookupOutcome.ABORTED.value,
                    history_kept=uri.fetch_history is not None,
                    **e.to_dict(),
                )
                return

            if uri.fetch_history:
                entry = uri.fetch_history[0]
                logger.debug(
                    "Fetch history loaded",
                    outcome=LookupOutcome.DONE.value,
                    matches=matches,
                    fetch_began=format_epoch_millis(entry.fetch_began_time),
                    content_digest=entry.content_digest,
                )
            else:
                logger.debug(
                    "No fetch history found",
                    outcome=LookupOutcome.DONE.value,
                    query_url=query_url,
                )
