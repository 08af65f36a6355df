"""Crawl record types shared between the crawl engine and the history loader."""

from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit


@dataclass(frozen=True)
class FetchHistoryEntry:
    """Metadata of a prior capture of a URL.

    Attributes:
        fetch_began_time: Capture time in epoch milliseconds.
        content_digest: Digest in ``algorithm:value`` form, e.g. ``sha1:ABCD``.
    """

    fetch_began_time: int
    content_digest: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the key names used by the crawl engine's history consumer."""
        return {
            "fetchBeganTime": self.fetch_began_time,
            "contentDigest": self.content_digest,
        }


class CrawlRecord(Protocol):
    """The slice of a crawl engine's URI object that the history loader touches.

    The loader reads ``url`` and ``scheme`` and writes ``fetch_history`` at
    most once per lookup.
    """

    url: str
    fetch_history: list[FetchHistoryEntry] | None

    @property
    def scheme(self) -> str: ...


@dataclass
class CrawlURI:
    """An in-flight URL as seen by the processor chain."""

    url: str
    fetch_history: list[FetchHistoryEntry] | None = None

    @property
    def scheme(self) -> str:
        """URL scheme, lowercased by the URL parser."""
        return urlsplit(self.url).scheme

    def __str__(self) -> str:
        return self.url
