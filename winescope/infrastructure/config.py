"""
Crawler configuration and settings.

Centralizes configuration for the web API and the CLI, including
default values and environment variables (prefix ``WINESCOPE_``).
Defaults are applied here, at the outer boundary, and threaded inward
as CrawlOptions.
"""
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from winescope.application.use_cases import DEFAULT_BASE_URL
from winescope.domain.errors import ValidationError
from winescope.domain.ports import DEFAULT_BROWSER, DEFAULT_TIMEOUT_MS, BrowserProfile, CrawlOptions
from winescope.infrastructure.adapters.wine_searcher_selectors import (
    DEFAULT_SELECTORS,
    SelectorMap,
)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got: {value!r}", field=name) from None


@dataclass(frozen=True)
class CrawlerSettings:
    """Configuration for crawler operations."""

    # Fetch
    browser: str = DEFAULT_BROWSER.value
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    base_url: str = DEFAULT_BASE_URL

    # Parser
    selectors_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    env: str = "development"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "CrawlerSettings":
        """Create settings from environment variables."""
        return cls(
            browser=os.getenv("WINESCOPE_BROWSER", DEFAULT_BROWSER.value),
            timeout_ms=_env_int("WINESCOPE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            base_url=os.getenv("WINESCOPE_BASE_URL", DEFAULT_BASE_URL),
            selectors_file=os.getenv("WINESCOPE_SELECTORS_FILE") or None,
            log_level=os.getenv("WINESCOPE_LOG_LEVEL", "INFO"),
            log_json=_env_bool("WINESCOPE_LOG_JSON", False),
            env=os.getenv("WINESCOPE_ENV", "development"),
            port=_env_int("WINESCOPE_PORT", _env_int("PORT", 3001)),
        )

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    def to_crawl_options(self) -> CrawlOptions:
        return CrawlOptions(
            browser_profile=BrowserProfile.from_name(self.browser),
            timeout_ms=self.timeout_ms,
        )

    def load_selectors(self) -> SelectorMap:
        """Selector map from selectors_file, or the built-in defaults."""
        if self.selectors_file:
            try:
                return SelectorMap.from_json_file(self.selectors_file)
            except (OSError, ValueError) as e:
                raise ValidationError(
                    f"Cannot load selectors from {self.selectors_file}: {e}",
                    field="selectors_file",
                ) from e
        return DEFAULT_SELECTORS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "browser": self.browser,
            "timeout_ms": self.timeout_ms,
            "base_url": self.base_url,
            "selectors_file": self.selectors_file,
            "log_level": self.log_level,
            "log_json": self.log_json,
            "env": self.env,
            "port": self.port,
        }
