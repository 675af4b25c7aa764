"""
Tests for the FastAPI crawler API.

Routes run in-process over ASGITransport with a fake crawler and the
real Wine-Searcher parser.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from tests.fixtures.wine_searcher_pages import FULL_PAGE, NO_NAME_PAGE, SEARCH_URL
from winescope.domain.errors import FetchTimeoutError, NetworkError, ValidationError
from winescope.infrastructure.config import CrawlerSettings
from winescope.web.api import classify_error, create_app, safe_error_message

SEARCH_BODY = {
    "region": "Napa Valley",
    "winery": "Opus One",
    "variety": "Cabernet Sauvignon",
    "vintage": 2018,
}


class FakeCrawler:
    """Returns canned HTML or raises the configured error."""

    def __init__(self, html=FULL_PAGE, error=None):
        self.html = html
        self.error = error
        self.calls = []

    async def fetch(self, url, options=None):
        self.calls.append((url, options))
        if self.error is not None:
            raise self.error
        return self.html


class BrokenParser:
    def parse(self, html, source_url):
        raise RuntimeError("unexpected")


def _client(app, raise_app_exceptions=True):
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return AsyncClient(transport=transport, base_url="http://test")


class TestWineSearchEndpoint:
    """Tests for POST /wines/search."""
    pytestmark = pytest.mark.asyncio

    async def test_success(self):
        """Returns the normalized wine document."""
        crawler = FakeCrawler()
        app = create_app(settings=CrawlerSettings(), crawler=crawler)

        async with _client(app) as client:
            response = await client.post("/wines/search", json=SEARCH_BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["wine"]["name"] == "Opus One"
        assert body["ratings"][0]["reviewCount"] == 12
        assert body["price"]["priceRange"] == "$1,100 - $1,600"
        assert body["source"]["site"] == "Wine-Searcher"
        assert body["source"]["url"] == SEARCH_URL
        assert crawler.calls[0][0] == SEARCH_URL

    async def test_request_validation_is_422(self):
        """Blank fields and out-of-range vintages are rejected before fetching."""
        crawler = FakeCrawler()
        app = create_app(settings=CrawlerSettings(), crawler=crawler)

        async with _client(app) as client:
            blank = await client.post("/wines/search", json={**SEARCH_BODY, "winery": " "})
            old = await client.post("/wines/search", json={**SEARCH_BODY, "vintage": 1800})
            missing = await client.post("/wines/search", json={"winery": "Opus One"})

        assert blank.status_code == 422
        assert old.status_code == 422
        assert missing.status_code == 422
        assert crawler.calls == []

    @pytest.mark.parametrize(
        "error,status_code,label",
        [
            (FetchTimeoutError("Request timed out after 5000ms", SEARCH_URL, 5000), 504, "Gateway Timeout"),
            (NetworkError("Failed to fetch URL: 404 Not Found", SEARCH_URL), 404, "Not Found"),
            (NetworkError("Failed to fetch URL: connection refused", SEARCH_URL), 502, "Bad Gateway"),
            (ValidationError("bad input", field="vintage"), 400, "Bad Request"),
        ],
    )
    async def test_fetch_errors_mapped(self, error, status_code, label):
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler(error=error))

        async with _client(app) as client:
            response = await client.post("/wines/search", json=SEARCH_BODY)

        assert response.status_code == status_code
        body = response.json()
        assert body["statusCode"] == status_code
        assert body["error"] == label
        assert body["message"] == error.message
        assert body["path"] == "/wines/search"
        assert "timestamp" in body

    async def test_parsing_error_is_500(self):
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler(html=NO_NAME_PAGE))

        async with _client(app) as client:
            response = await client.post("/wines/search", json=SEARCH_BODY)

        assert response.status_code == 500
        assert "Wine name not found" in response.json()["message"]

    async def test_unexpected_error_is_500(self):
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler(), parser=BrokenParser())

        async with _client(app, raise_app_exceptions=False) as client:
            response = await client.post("/wines/search", json=SEARCH_BODY)

        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"

    async def test_production_hides_details(self):
        """Production replaces internal messages with generic text."""
        error = NetworkError("Failed to fetch URL: curl_chrome116 exploded at /usr/bin", SEARCH_URL)
        app = create_app(
            settings=CrawlerSettings(env="production"),
            crawler=FakeCrawler(error=error),
        )

        async with _client(app) as client:
            response = await client.post("/wines/search", json=SEARCH_BODY)

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to fetch wine data from external source"


class TestCrawlEndpoint:
    """Tests for POST /crawl."""
    pytestmark = pytest.mark.asyncio

    async def test_success(self):
        crawler = FakeCrawler(html="<html>raw</html>")
        app = create_app(settings=CrawlerSettings(), crawler=crawler)

        async with _client(app) as client:
            response = await client.post("/crawl", json={
                "url": "https://example.com",
                "browser": "firefox109",
                "timeout": 2500,
                "userAgent": "UA/1.0",
            })

        assert response.status_code == 200
        body = response.json()
        assert body["html"] == "<html>raw</html>"
        assert body["statusCode"] == 200
        assert body["error"] is None
        options = crawler.calls[0][1]
        assert options.browser_profile.value == "firefox109"
        assert options.timeout_ms == 2500
        assert options.user_agent == "UA/1.0"

    async def test_timeout_reported_in_body(self):
        """Fetch failures come back as 200 with statusCode and error set."""
        error = FetchTimeoutError("timed out", "https://example.com", 5000)
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler(error=error))

        async with _client(app) as client:
            response = await client.post("/crawl", json={"url": "https://example.com"})

        assert response.status_code == 200
        assert response.json()["statusCode"] == 504
        assert response.json()["error"] == "timed out"
        assert response.json()["html"] == ""

    async def test_unknown_browser_is_422(self):
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler())

        async with _client(app) as client:
            response = await client.post("/crawl", json={"url": "https://example.com", "browser": "lynx"})

        assert response.status_code == 422


class TestHealthEndpoint:
    """Tests for GET /crawl/health."""
    pytestmark = pytest.mark.asyncio

    async def test_health(self):
        app = create_app(settings=CrawlerSettings(), crawler=FakeCrawler())

        async with _client(app) as client:
            response = await client.get("/crawl/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"] == "crawler"
        assert "timestamp" in body


class TestErrorClassification:
    """Tests for classify_error and safe_error_message."""

    def test_not_found_detection_is_case_insensitive(self):
        assert classify_error(NetworkError("Page NOT FOUND", "u"))[0] == 404

    def test_unknown_exception(self):
        assert classify_error(KeyError("x")) == (500, "Internal Server Error")

    def test_safe_messages(self):
        assert safe_error_message(FetchTimeoutError("t", "u", 1), True) == (
            "Request timed out while fetching wine data"
        )
        assert safe_error_message(NetworkError("404", "u"), True) == "Wine not found"
        assert safe_error_message(KeyError("x"), True) == "An unexpected error occurred"
        assert safe_error_message(ValidationError("Vintage too old", "vintage"), True) == "Vintage too old"
