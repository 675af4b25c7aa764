"""
Crawler error hierarchy.

Every failure the crawl-and-parse pipeline can surface is one of the
four kinds below. The web layer and the CLI switch on these types.
"""


class CrawlerError(Exception):
    """Base class for crawler errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CrawlerError):
    """Invalid input to a value object or entity."""

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class NetworkError(CrawlerError):
    """Fetch transport failure."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class FetchTimeoutError(CrawlerError):
    """Fetch exceeded its deadline."""

    def __init__(self, message: str, url: str, timeout_ms: int):
        super().__init__(message)
        self.url = url
        self.timeout_ms = timeout_ms


class ParsingError(CrawlerError):
    """
    Extraction failed on required data.

    Wraps whatever went wrong inside the parser; the original exception
    is available as ``__cause__``.
    """

    def __init__(self, message: str, source_url: str):
        super().__init__(message)
        self.source_url = source_url
