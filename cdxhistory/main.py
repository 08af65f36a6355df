"""
Command line entry point for cdxhistory.

Commands:
    lookup URL      Look up fetch history for one URL and print it as JSON.
    check-config    Print the effective CDX configuration as JSON.
"""

import argparse
import json
import sys

from pydantic import ValidationError

from cdxhistory.crawler.crawl_uri import CrawlURI
from cdxhistory.crawler.history_loader import CdxServerHistoryLoader
from cdxhistory.utils.config import CdxConfig, get_settings
from cdxhistory.utils.dates import format_epoch_millis
from cdxhistory.utils.errors import ConfigurationError
from cdxhistory.utils.logging import configure_logging, get_logger

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_NOT_ELIGIBLE = 3


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cdxhistory",
        description="cdxhistory - load fetch history for crawled URLs from a CDX server",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (defaults to general.log_level from settings)",
    )
    parser.add_argument(
        "--console-log",
        action="store_true",
        help="Human-readable console logs instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    lookup = subparsers.add_parser("lookup", help="Look up fetch history for a URL")
    lookup.add_argument("url", help="Exact URL as the crawler would fetch it")
    lookup.add_argument("--server-url", type=str, help="CDX server URL (overrides cdx.server_url)")
    lookup.add_argument("--limit", type=int, help="Query limit (overrides cdx.query_limit)")
    lookup.add_argument("--timeout", type=float, help="Read timeout in seconds")

    subparsers.add_parser("check-config", help="Print the effective CDX configuration")

    return parser


def resolve_cdx_config(args: argparse.Namespace) -> CdxConfig:
    """Apply command line overrides on top of the configured CDX settings."""
    overrides = {}
    if getattr(args, "server_url", None):
        overrides["server_url"] = args.server_url
    if getattr(args, "limit", None) is not None:
        overrides["query_limit"] = args.limit
    if getattr(args, "timeout", None) is not None:
        overrides["timeout_seconds"] = args.timeout

    base = get_settings().cdx
    return CdxConfig(**{**base.model_dump(), **overrides})


def create_loader(config: CdxConfig) -> CdxServerHistoryLoader:
    """Create the history loader used by the ``lookup`` command."""
    return CdxServerHistoryLoader(config)


def run_lookup(args: argparse.Namespace) -> int:
    """Run the ``lookup`` command.

    Args:
        args: Parsed arguments.

    Returns:
        Process exit code.
    """
    logger = get_logger(__name__)
    uri = CrawlURI(url=args.url)
    try:
        loader = create_loader(resolve_cdx_config(args))
    except ValidationError as e:
        logger.error("Invalid CDX configuration", error=str(e))
        return EXIT_CONFIG_ERROR

    if not loader.should_process(uri):
        logger.warning("URL not eligible for history lookup", url=args.url, scheme=uri.scheme)
        return EXIT_NOT_ELIGIBLE

    try:
        loader.start()
    except ConfigurationError as e:
        logger.error("Cannot start history loader", **e.to_dict())
        return EXIT_CONFIG_ERROR

    try:
        loader.process(uri)
    finally:
        loader.stop()

    if uri.fetch_history is None:
        print(json.dumps(None))
    else:
        history = []
        for entry in uri.fetch_history:
            item = entry.to_dict()
            item["fetchBeganTimeIso"] = format_epoch_millis(entry.fetch_began_time)
            history.append(item)
        print(json.dumps(history, indent=2))
    return EXIT_OK


def run_check_config(args: argparse.Namespace) -> int:
    """Run the ``check-config`` command."""
    config = get_settings().cdx
    print(json.dumps(config.model_dump(), indent=2))
    if not config.server_url:
        return EXIT_CONFIG_ERROR
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(log_level=args.log_level, json_format=not args.console_log)

    if args.command == "lookup":
        return run_lookup(args)
    return run_check_config(args)


if __name__ == "__main__":
    sys.exit(main())
