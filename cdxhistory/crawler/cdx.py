"""
CDX query construction, response parsing and exact-URL match selection.

CDX line format (space delimited, at least 6 fields):
    urlkey timestamp original mimetype statuscode digest [length offset filename ...]

Only ``timestamp`` (1), ``original`` (2) and ``digest`` (5) are used.
"""

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from urllib.parse import quote

from cdxhistory.crawler.crawl_uri import CrawlRecord, FetchHistoryEntry
from cdxhistory.utils.dates import parse_14_digit_date
from cdxhistory.utils.errors import ProtocolError
from cdxhistory.utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

CDX_MIN_FIELDS = 6
CDX_TIMESTAMP_FIELD = 1
CDX_URL_FIELD = 2
CDX_DIGEST_FIELD = 5

# Digests written by CDX servers are base32 SHA-1
DIGEST_ALGORITHM = "sha1"

# RFC 2396 unreserved marks; everything else is escaped inside a query value
_QUERY_SAFE_CHARS = "-_.!~*'()"

UrlEncoder = Callable[[str], str]
DateParser = Callable[[str], int]


def encode_within_query(value: str) -> str:
    """Percent-encode a string for use as a single query parameter value.

    Reserved characters (``:/?#&=+;@$,``) and anything outside ASCII are
    escaped, so a full URL can be passed as ``url=...``.

    Args:
        value: Raw string (typically a URL).

    Returns:
        Escaped string.
    """
    return quote(value, safe=_QUERY_SAFE_CHARS)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class CdxQuery:
    """Exact-URL lookup against a CDX server."""

    exact_url: str
    limit: int

    def to_url(self, server_url: str, encoder: UrlEncoder = encode_within_query) -> str:
        """Render the query URL.

        Args:
            server_url: CDX endpoint base URL.
            encoder: Percent-encoder applied to the exact URL.

        Returns:
            ``server_url?url=<encoded>&sort=reverse&limit=<limit>``.
        """
        return f"{server_url}?url={encoder(self.exact_url)}&sort=reverse&limit={self.limit}"


@dataclass(frozen=True)
class CdxRecord:
    """One parsed CDX line."""

    timestamp_raw: str
    timestamp: int  # epoch milliseconds
    url: str
    digest: str

    @classmethod
    def from_cdx_line(
        cls,
        line: str,
        date_parser: DateParser = parse_14_digit_date,
    ) -> "CdxRecord":
        """Parse a CDX response line.

        Args:
            line: CDX line without its line terminator.
            date_parser: Converts the 14-digit timestamp to epoch milliseconds.

        Returns:
            Parsed record.

        Raises:
            ProtocolError: If the line has fewer than 6 fields.
            DateParseError: If the timestamp field is not a valid date.
        """
        fields = line.split(" ")
        if len(fields) < CDX_MIN_FIELDS:
            raise ProtocolError(line, field_count=len(fields), required=CDX_MIN_FIELDS)

        timestamp_raw = fields[CDX_TIMESTAMP_FIELD]
        return cls(
            timestamp_raw=timestamp_raw,
            timestamp=date_parser(timestamp_raw),
            url=fields[CDX_URL_FIELD],
            digest=fields[CDX_DIGEST_FIELD],
        )

    def to_history_entry(self) -> FetchHistoryEntry:
        """Convert to a fetch history entry."""
        return FetchHistoryEntry(
            fetch_began_time=self.timestamp,
            content_digest=f"{DIGEST_ALGORITHM}:{self.digest}",
        )


# =============================================================================
# Query Building
# =============================================================================


def build_query_url(
    server_url: str,
    exact_url: str,
    limit: int,
    encoder: UrlEncoder = encode_within_query,
) -> str:
    """Build the CDX query URL for an exact-URL lookup.

    The URL is not validated; callers pass what the crawl engine holds.
    """
    return CdxQuery(exact_url=exact_url, limit=limit).to_url(server_url, encoder)


# =============================================================================
# Response Parsing
# =============================================================================

# Only CR, LF and CRLF end a CDX line; form feeds and other Unicode line
# separators may appear inside fields.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_cdx_lines(chunks: Iterable[str]) -> Iterator[str]:
    """Split streamed response text into lines without their terminators.

    A line may span chunks, and a CRLF pair may be split between two chunks.

    Args:
        chunks: Decoded response text in arrival order.

    Yields:
        Lines in order. A final line without a terminator is yielded too.
    """
    buffer = ""
    for chunk in chunks:
        buffer += chunk
        start = 0
        for match in _LINE_BREAK.finditer(buffer):
            if match.group() == "\r" and match.end() == len(buffer):
                # may be the first half of a CRLF
                break
            yield buffer[start : match.start()]
            start = match.end()
        buffer = buffer[start:]

    if buffer:
        yield buffer.removesuffix("\r")


def iter_cdx_records(
    lines: Iterable[str],
    query_url: str,
    date_parser: DateParser = parse_14_digit_date,
) -> Iterator[CdxRecord]:
    """Lazily parse CDX response lines.

    A line with too few fields ends the whole sequence: the rest of the
    response is not read. A bad timestamp raises DateParseError to the
    consumer, which keeps whatever it has already taken from the sequence.

    Args:
        lines: Response lines, with or without trailing line terminators.
        query_url: Query that produced the response (for log messages).
        date_parser: Converts 14-digit timestamps to epoch milliseconds.

    Yields:
        Parsed CdxRecord values in server order.
    """
    for line in lines:
        line = line.rstrip("\r\n")
        try:
            record = CdxRecord.from_cdx_line(line, date_parser)
        except ProtocolError as e:
            logger.warning(
                "Invalid CDX line, ignoring rest of response",
                query_url=query_url,
                **e.to_dict(),
            )
            return
        yield record


# =============================================================================
# Match Selection
# =============================================================================


def apply_matches(
    records: Iterable[CdxRecord],
    exact_url: str,
    uri: CrawlRecord,
) -> int:
    """Attach history from records whose URL equals ``exact_url``.

    Every match replaces the history set by the previous one, so the last
    matching record in server order wins. Because the history is written as
    matches are seen, an exception raised by ``records`` leaves the entry
    from the matches already consumed in place.

    Args:
        records: Parsed CDX records.
        exact_url: URL being crawled, compared byte for byte.
        uri: Crawl record receiving a single-element fetch history.

    Returns:
        Number of matching records seen.
    """
    matches = 0
    for record in records:
        if record.url != exact_url:
            continue
        uri.fetch_history = [record.to_history_entry()]
        matches += 1
    return matches
