"""
Crawler Ports (Interfaces)

Ports define the contract between the use cases and the infrastructure.
These are Protocol classes following the Ports & Adapters pattern.
Implementations live in ``winescope.infrastructure.adapters``.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable

from winescope.domain.entities import WineData
from winescope.domain.errors import ValidationError

DEFAULT_TIMEOUT_MS = 5000


class BrowserProfile(Enum):
    """
    Browser fingerprints supported by curl-impersonate.

    Each value is the suffix of a ``curl_<profile>`` binary.
    """
    CHROME_116 = "chrome116"
    CHROME_110 = "chrome110"
    FIREFOX_109 = "firefox109"

    @classmethod
    def from_name(cls, name: str) -> "BrowserProfile":
        for profile in cls:
            if profile.value == name:
                return profile
        allowed = ", ".join(p.value for p in cls)
        raise ValidationError(
            f"Unsupported browser profile: {name!r} (expected one of {allowed})",
            field="browser",
        )


DEFAULT_BROWSER = BrowserProfile.CHROME_116


@dataclass(frozen=True)
class CrawlOptions:
    """Options for a single fetch."""
    browser_profile: BrowserProfile = DEFAULT_BROWSER
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            raise ValidationError(
                f"Timeout must be a positive number of milliseconds, got: {self.timeout_ms!r}",
                field="timeout",
            )

    def with_overrides(self, **changes) -> "CrawlOptions":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@runtime_checkable
class CrawlerPort(Protocol):
    """
    Fetches the raw HTML of a URL.

    Raises NetworkError or FetchTimeoutError.
    """

    async def fetch(self, url: str, options: Optional[CrawlOptions] = None) -> str:
        ...


@runtime_checkable
class ParserPort(Protocol):
    """
    Turns raw HTML into WineData.

    Raises ParsingError.
    """

    def parse(self, html: str, source_url: str) -> WineData:
        ...
