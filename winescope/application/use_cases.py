"""
Application use cases.

SearchWineUseCase turns a search query into a normalized response by
composing the crawler and the parser. CrawlUseCase exposes the raw fetch.
Neither recovers from errors of the search pipeline; classification is
left to the caller.
"""
import logging
import re
import time
from datetime import datetime, timezone
from typing import Optional

from winescope.application.dto import (
    CrawlRequest,
    CrawlResult,
    WineSearchRequest,
    WineSearchResponse,
)
from winescope.domain.errors import FetchTimeoutError, NetworkError
from winescope.domain.ports import CrawlerPort, CrawlOptions, ParserPort
from winescope.infrastructure.logging import timed_operation

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.wine-searcher.com"

_WHITESPACE = re.compile(r"\s+")
_NOT_QUERY_CHAR = re.compile(r"[^a-z0-9+]")


def build_search_url(query: WineSearchRequest, base_url: str = DEFAULT_BASE_URL) -> str:
    """
    Build the Wine-Searcher search URL for a query.

    Joins winery, variety, vintage and region with spaces, lower-cases,
    turns whitespace runs into "+" and drops anything outside [a-z0-9+].

    Example:
        Opus One / Cabernet Sauvignon / 2018 / Napa Valley
        -> https://www.wine-searcher.com/find/opus+one+cabernet+sauvignon+2018+napa+valley
    """
    text = " ".join([query.winery, query.variety, str(query.vintage), query.region]).lower()
    normalized = _NOT_QUERY_CHAR.sub("", _WHITESPACE.sub("+", text))
    return f"{base_url.rstrip('/')}/find/{normalized}"


class SearchWineUseCase:
    """Search Wine-Searcher for one wine and shape the result."""

    def __init__(
        self,
        crawler: CrawlerPort,
        parser: ParserPort,
        crawl_options: CrawlOptions,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self.crawler = crawler
        self.parser = parser
        self.crawl_options = crawl_options
        self.base_url = base_url

    async def execute(self, request: WineSearchRequest) -> WineSearchResponse:
        """
        Run the search.

        Raises:
            NetworkError, FetchTimeoutError: From the crawler, unchanged
            ParsingError: From the parser, unchanged
        """
        logger.info(
            f"Searching wine: {request.winery} {request.variety} {request.vintage}, {request.region}"
        )

        url = build_search_url(request, self.base_url)
        logger.debug(f"Wine-Searcher URL: {url}")

        with timed_operation(logger, "fetch"):
            html = await self.crawler.fetch(url, self.crawl_options)
        logger.debug(f"Fetched {len(html)} chars of HTML from Wine-Searcher")

        with timed_operation(logger, "parse"):
            wine_data = self.parser.parse(html, url)

        logger.info(
            f"Successfully parsed wine: {wine_data.wine.name.value}, "
            f"{len(wine_data.ratings)} ratings"
        )

        return WineSearchResponse.from_wine_data(wine_data)


class CrawlUseCase:
    """
    Fetch an arbitrary URL and report the outcome in-band.

    Timeouts map to status 504, other fetch failures to 502.
    """

    def __init__(self, crawler: CrawlerPort, default_options: CrawlOptions):
        self.crawler = crawler
        self.default_options = default_options

    async def execute(self, request: CrawlRequest) -> CrawlResult:
        options = self.default_options.with_overrides(
            browser_profile=request.browser,
            timeout_ms=request.timeout,
            headers=request.headers or None,
            user_agent=request.user_agent,
        )

        start = time.perf_counter()
        html = ""
        status_code = 200
        error: Optional[str] = None

        try:
            html = await self.crawler.fetch(request.url, options)
        except FetchTimeoutError as e:
            status_code, error = 504, e.message
        except NetworkError as e:
            status_code, error = 502, e.message

        if error:
            logger.warning(f"Crawl of {request.url} failed: {error}")

        return CrawlResult(
            html=html,
            statusCode=status_code,
            headers={},
            timestamp=datetime.now(timezone.utc),
            duration=int((time.perf_counter() - start) * 1000),
            error=error,
        )
