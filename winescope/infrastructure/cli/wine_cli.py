"""
WineScope Command-Line Interface.

Provides commands for:
- search: Look up a wine on Wine-Searcher and print the normalized JSON
- crawl: Fetch a URL through curl-impersonate and print the raw HTML
- config: Show the effective configuration
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError as RequestValidationError

from winescope.application.dto import WineSearchRequest
from winescope.application.use_cases import SearchWineUseCase
from winescope.domain.errors import (
    FetchTimeoutError,
    NetworkError,
    ParsingError,
    ValidationError,
)
from winescope.domain.ports import BrowserProfile
from winescope.infrastructure.adapters.curl_crawler import CurlCrawlerAdapter
from winescope.infrastructure.adapters.wine_searcher_parser import WineSearcherParser
from winescope.infrastructure.config import CrawlerSettings
from winescope.infrastructure.logging import setup_logging

EXIT_OK = 0
EXIT_VALIDATION = 2
EXIT_NETWORK = 3
EXIT_PARSING = 4

AVAILABLE_BROWSERS = [profile.value for profile in BrowserProfile]


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="winescope",
        description="Wine-Searcher crawler - fetch and extract wine, rating and price data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s search --winery "Opus One" --variety "Cabernet Sauvignon" --vintage 2018 --region "Napa Valley"
  %(prog)s crawl https://www.wine-searcher.com/find/opus+one --browser firefox109
  %(prog)s config
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    search_parser = subparsers.add_parser(
        "search",
        help="Search a wine and print the normalized result",
    )
    search_parser.add_argument("--winery", required=True, help="Winery, e.g. Opus One")
    search_parser.add_argument("--variety", required=True, help="Variety, e.g. Cabernet Sauvignon")
    search_parser.add_argument("--vintage", required=True, type=int, help="Vintage year")
    search_parser.add_argument("--region", required=True, help="Region, e.g. Napa Valley")
    search_parser.add_argument(
        "--selectors",
        type=str,
        help="JSON file with CSS selectors (overrides WINESCOPE_SELECTORS_FILE)",
    )
    _add_fetch_arguments(search_parser)

    crawl_parser = subparsers.add_parser(
        "crawl",
        help="Fetch a URL and print the raw HTML",
    )
    crawl_parser.add_argument("url", help="URL to fetch")
    crawl_parser.add_argument(
        "-H", "--header",
        action="append",
        default=[],
        metavar="'Key: Value'",
        help="Extra request header (repeatable)",
    )
    crawl_parser.add_argument("-A", "--user-agent", help="User-Agent override")
    _add_fetch_arguments(crawl_parser)

    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    return parser


def _add_fetch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--browser",
        type=str,
        choices=AVAILABLE_BROWSERS,
        help=f"Browser fingerprint: {', '.join(AVAILABLE_BROWSERS)}",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        help="Fetch timeout in milliseconds (default: 5000)",
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return create_parser().parse_args(args)


def parse_header(raw: str) -> tuple:
    """Split "Key: Value" into (key, value)."""
    key, sep, value = raw.partition(":")
    if not sep or not key.strip():
        raise ValidationError(f"Invalid header (expected 'Key: Value'): {raw}", field="header")
    return key.strip(), value.strip()


def _settings_for(args: argparse.Namespace, settings: CrawlerSettings) -> CrawlerSettings:
    overrides = {}
    if getattr(args, "browser", None) is not None:
        overrides["browser"] = args.browser
    if getattr(args, "timeout_ms", None) is not None:
        overrides["timeout_ms"] = args.timeout_ms
    if getattr(args, "selectors", None) is not None:
        overrides["selectors_file"] = args.selectors
    return replace(settings, **overrides)


async def run_search(
    args: argparse.Namespace,
    settings: CrawlerSettings,
    logger: logging.Logger,
) -> int:
    """Execute the search command."""
    try:
        request = WineSearchRequest(
            winery=args.winery,
            variety=args.variety,
            vintage=args.vintage,
            region=args.region,
        )
    except RequestValidationError as e:
        logger.error(f"Invalid search query: {e}")
        return EXIT_VALIDATION

    options = settings.to_crawl_options()
    use_case = SearchWineUseCase(
        crawler=CurlCrawlerAdapter(default_options=options),
        parser=WineSearcherParser(settings.load_selectors()),
        crawl_options=options,
        base_url=settings.base_url,
    )

    response = await use_case.execute(request)
    print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
    return EXIT_OK


async def run_crawl(
    args: argparse.Namespace,
    settings: CrawlerSettings,
    logger: logging.Logger,
) -> int:
    """Execute the crawl command."""
    options = settings.to_crawl_options().with_overrides(
        headers=dict(parse_header(h) for h in args.header) or None,
        user_agent=args.user_agent,
    )
    html = await CurlCrawlerAdapter(default_options=options).fetch(args.url)
    sys.stdout.write(html)
    return EXIT_OK


async def run_config(
    args: argparse.Namespace,
    settings: CrawlerSettings,
    logger: logging.Logger,
) -> int:
    """Execute the config command."""
    print(json.dumps(settings.to_dict(), indent=2))
    return EXIT_OK


async def main_async(args: Optional[List[str]] = None) -> int:
    """Async main entry point."""
    parsed_args = parse_args(args)

    if not parsed_args.command:
        create_parser().print_help()
        return EXIT_OK

    load_dotenv()
    try:
        base_settings = CrawlerSettings.from_env()
    except ValidationError as e:
        setup_logging(json_output=parsed_args.json_logs).error(f"Invalid configuration ({e.field}): {e}")
        return EXIT_VALIDATION

    if parsed_args.verbose:
        level = "DEBUG"
    elif parsed_args.quiet:
        level = "WARNING"
    else:
        level = base_settings.log_level
    logger = setup_logging(level, parsed_args.json_logs or base_settings.log_json)

    command_handlers = {
        "search": run_search,
        "crawl": run_crawl,
        "config": run_config,
    }
    handler = command_handlers[parsed_args.command]

    try:
        settings = _settings_for(parsed_args, base_settings)
        return await handler(parsed_args, settings, logger)
    except ValidationError as e:
        logger.error(f"Invalid input ({e.field}): {e}")
        return EXIT_VALIDATION
    except (FetchTimeoutError, NetworkError) as e:
        logger.error(f"Fetch failed: {e}")
        return EXIT_NETWORK
    except ParsingError as e:
        logger.error(f"Parse failed: {e}")
        return EXIT_PARSING


def main(args: Optional[List[str]] = None) -> int:
    """Synchronous main entry point."""
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
