"""
Web API - FastAPI-based REST API for the wine crawler

Provides endpoints for:
- Wine search (crawl + parse + normalized response)
- Raw crawl of a URL
- Health check

Domain errors are mapped to HTTP status codes by exception handlers.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from winescope import __version__
from winescope.application.dto import (
    CrawlRequest,
    CrawlResult,
    WineSearchRequest,
    WineSearchResponse,
)
from winescope.application.use_cases import CrawlUseCase, SearchWineUseCase
from winescope.domain.errors import (
    CrawlerError,
    FetchTimeoutError,
    NetworkError,
    ParsingError,
    ValidationError,
)
from winescope.domain.ports import CrawlerPort, ParserPort
from winescope.infrastructure.adapters.curl_crawler import CurlCrawlerAdapter
from winescope.infrastructure.adapters.wine_searcher_parser import WineSearcherParser
from winescope.infrastructure.config import CrawlerSettings
from winescope.infrastructure.logging import setup_logging

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    service: str = "crawler"
    version: str = __version__


def _is_not_found(exc: NetworkError) -> bool:
    message = exc.message.lower()
    return "404" in message or "not found" in message


def classify_error(exc: Exception) -> tuple:
    """Map an exception to (HTTP status, error label)."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, "Bad Request"
    if isinstance(exc, FetchTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT, "Gateway Timeout"
    if isinstance(exc, NetworkError):
        if _is_not_found(exc):
            return status.HTTP_404_NOT_FOUND, "Not Found"
        return status.HTTP_502_BAD_GATEWAY, "Bad Gateway"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"


def safe_error_message(exc: Exception, production: bool) -> str:
    """Hide internal details in production."""
    if not production:
        return str(exc) or "Unknown error"
    if isinstance(exc, ValidationError):
        return str(exc)
    if isinstance(exc, FetchTimeoutError):
        return "Request timed out while fetching wine data"
    if isinstance(exc, NetworkError):
        if _is_not_found(exc):
            return "Wine not found"
        return "Failed to fetch wine data from external source"
    if isinstance(exc, ParsingError):
        return "Failed to parse wine data"
    return "An unexpected error occurred"


def create_app(
    settings: Optional[CrawlerSettings] = None,
    crawler: Optional[CrawlerPort] = None,
    parser: Optional[ParserPort] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings (default: from environment)
        crawler: Optional crawler (for testing)
        parser: Optional parser (for testing)

    Returns:
        Configured FastAPI application
    """
    settings = settings or CrawlerSettings.from_env()
    crawl_options = settings.to_crawl_options()
    crawler = crawler or CurlCrawlerAdapter(default_options=crawl_options)
    parser = parser or WineSearcherParser(settings.load_selectors())

    search_wine = SearchWineUseCase(crawler, parser, crawl_options, base_url=settings.base_url)
    crawl = CrawlUseCase(crawler, crawl_options)

    app = FastAPI(
        title="WineScope Crawler API",
        description="Crawls Wine-Searcher and returns normalized wine, rating and price data",
        version=__version__,
    )

    app.state.settings = settings

    async def error_handler(request: Request, exc: Exception):
        status_code, error = classify_error(exc)
        logger.error(f"Exception occurred: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content={
                "statusCode": status_code,
                "message": safe_error_message(exc, settings.is_production),
                "error": error,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": request.url.path,
            },
        )

    app.add_exception_handler(CrawlerError, error_handler)
    app.add_exception_handler(Exception, error_handler)

    # ============ API Endpoints ============

    @app.post(
        "/wines/search",
        response_model=WineSearchResponse,
        status_code=status.HTTP_200_OK,
        tags=["Wines"],
    )
    async def search_wines(request: WineSearchRequest):
        """Search Wine-Searcher for a wine."""
        logger.info(
            f"Received wine search request: {request.winery} {request.variety} {request.vintage}"
        )
        result = await search_wine.execute(request)
        logger.info("Wine search completed successfully")
        return result

    @app.post(
        "/crawl",
        response_model=CrawlResult,
        status_code=status.HTTP_200_OK,
        tags=["Crawler"],
    )
    async def crawl_url(request: CrawlRequest):
        """Fetch a URL through curl-impersonate."""
        return await crawl.execute(request)

    @app.get("/crawl/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Check API health status."""
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    load_dotenv()
    settings = CrawlerSettings.from_env()
    setup_logging(settings.log_level, settings.log_json)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
