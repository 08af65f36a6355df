"""
cdxhistory - fetch history loading from CDX index servers.

Looks up prior captures of a crawled URL on a CDX server so that
unchanged content can be deduplicated against an existing web archive.
"""

__version__ = "0.1.0"
