"""
WineScope Domain Entities

Entities built from value objects and raw fields.
All entities are immutable (frozen dataclasses) and validate at construction.

Wine is the aggregate root.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from winescope.domain.errors import ValidationError
from winescope.domain.value_objects import MAX_NAME_LENGTH, Score, Vintage, WineName

MAX_CURRENCY_LENGTH = 10
EXPENSIVE_THRESHOLD = 200
RECENT_PRICE_DAYS = 7
RELIABLE_REVIEW_COUNT = 10

ROBERT_PARKER_KEYWORDS = ("parker", "rp", "robert parker")


def _require_text(value: Any, field_name: str, label: str, max_length: int = MAX_NAME_LENGTH) -> None:
    """Reject non-strings, blank strings and strings over max_length once trimmed."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required", field=field_name)
    if len(value.strip()) > max_length:
        raise ValidationError(
            f"{label} too long (max {max_length} chars): {value}",
            field=field_name,
        )


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_iso8601(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    return _utc(value).astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Wine:
    """
    Wine aggregate root.

    Region, winery and variety are required, 1-100 characters after trimming.
    """
    name: WineName
    region: str
    winery: str
    variety: str
    vintage: Vintage

    def __post_init__(self):
        if not isinstance(self.name, WineName):
            raise ValidationError("Wine name must be a WineName", field="name")
        if not isinstance(self.vintage, Vintage):
            raise ValidationError("Wine vintage must be a Vintage", field="vintage")
        _require_text(self.region, "region", "Wine region")
        _require_text(self.winery, "winery", "Winery")
        _require_text(self.variety, "variety", "Wine variety")

    @property
    def full_description(self) -> str:
        """e.g. "Opus One 2018, Napa Valley, Cabernet Sauvignon"."""
        return f"{self.name.value} {self.vintage.value}, {self.region}, {self.variety}"

    def is_from_region(self, region_name: str) -> bool:
        return region_name.lower() in self.region.lower()

    def is_from_winery(self, winery_name: str) -> bool:
        return winery_name.lower() in self.winery.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "region": self.region,
            "winery": self.winery,
            "variety": self.variety,
            "vintage": self.vintage.value,
        }


@dataclass(frozen=True)
class Rating:
    """
    A single rating of a wine.

    ``critic`` is None when absent, never an empty string.
    """
    source: str
    score: Score
    critic: Optional[str] = None
    review_count: int = 0

    def __post_init__(self):
        _require_text(self.source, "source", "Rating source")
        if not isinstance(self.score, Score):
            raise ValidationError("Rating score must be a Score", field="score")
        if self.critic is not None:
            if not isinstance(self.critic, str) or not self.critic.strip():
                raise ValidationError(
                    "Critic name cannot be empty string (use None instead)",
                    field="critic",
                )
        if isinstance(self.review_count, bool) or not isinstance(self.review_count, int):
            raise ValidationError(
                f"Review count must be an integer, got: {self.review_count!r}",
                field="review_count",
            )
        if self.review_count < 0:
            raise ValidationError(
                f"Review count cannot be negative: {self.review_count}",
                field="review_count",
            )

    def is_robert_parker(self) -> bool:
        """True when source or critic mentions Parker (or RP)."""
        critic = (self.critic or "").lower()
        source = self.source.lower()
        return any(
            keyword in critic or keyword in source
            for keyword in ROBERT_PARKER_KEYWORDS
        )

    def is_high_rated(self) -> bool:
        return self.score.is_high_rated

    def is_reliable(self) -> bool:
        return self.review_count >= RELIABLE_REVIEW_COUNT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "score": self.score.value,
            "critic": self.critic,
            "reviewCount": self.review_count,
        }


@dataclass(frozen=True)
class Price:
    """
    Average market price of a wine.

    ``is_expensive`` ignores currency; 200 in any currency counts.
    """
    average: float
    currency: str
    price_range: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if isinstance(self.average, bool) or not isinstance(self.average, (int, float)):
            raise ValidationError(
                f"Average price must be a number, got: {self.average!r}",
                field="average",
            )
        if math.isnan(self.average) or self.average < 0:
            raise ValidationError(
                f"Average price cannot be negative: {self.average}",
                field="average",
            )
        _require_text(self.currency, "currency", "Currency", MAX_CURRENCY_LENGTH)
        if not isinstance(self.updated_at, datetime):
            raise ValidationError(
                f"Invalid updatedAt date: {self.updated_at!r}",
                field="updated_at",
            )

    def format(self) -> str:
        """e.g. "USD 325.00"."""
        return f"{self.currency} {self.average:.2f}"

    def is_expensive(self) -> bool:
        return self.average >= EXPENSIVE_THRESHOLD

    def is_recent(self, now: Optional[datetime] = None) -> bool:
        """Updated within the last seven days of ``now``."""
        now = _utc(now or datetime.now(timezone.utc))
        return _utc(self.updated_at) >= now - timedelta(days=RECENT_PRICE_DAYS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": self.average,
            "currency": self.currency,
            "priceRange": self.price_range,
            "updatedAt": to_iso8601(self.updated_at),
        }


@dataclass(frozen=True)
class WineData:
    """
    Result of parsing one page.

    Transient; ratings keep document order.
    """
    wine: Wine
    ratings: Tuple[Rating, ...]
    price: Optional[Price]
    source_url: str
    crawled_at: datetime

    @property
    def crawled_at_iso(self) -> str:
        return to_iso8601(self.crawled_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wine": self.wine.to_dict(),
            "ratings": [rating.to_dict() for rating in self.ratings],
            "price": self.price.to_dict() if self.price else None,
            "sourceUrl": self.source_url,
            "crawledAt": self.crawled_at_iso,
        }
