"""
cdxhistory crawler module.

Provides the CDX-backed fetch history loader and the types it exchanges
with the crawl engine.
"""

from cdxhistory.crawler.cdx import (
    CdxQuery,
    CdxRecord,
    apply_matches,
    build_query_url,
    encode_within_query,
    iter_cdx_records,
    split_cdx_lines,
)
from cdxhistory.crawler.cdx_client import CdxClient
from cdxhistory.crawler.crawl_uri import CrawlRecord, CrawlURI, FetchHistoryEntry
from cdxhistory.crawler.history_loader import CdxServerHistoryLoader, LookupOutcome

__all__ = [
    # Types
    "CrawlRecord",
    "CrawlURI",
    "FetchHistoryEntry",
    # CDX protocol
    "CdxQuery",
    "CdxRecord",
    "build_query_url",
    "encode_within_query",
    "split_cdx_lines",
    "iter_cdx_records",
    "apply_matches",
    # Loader
    "CdxClient",
    "CdxServerHistoryLoader",
    "LookupOutcome",
]
