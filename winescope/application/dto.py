"""
Request and response models.

Pydantic models shared by the web API and the CLI. Wire names are
camelCase; Python attributes are snake_case.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from winescope.domain.entities import WineData, to_iso8601
from winescope.domain.ports import DEFAULT_TIMEOUT_MS, BrowserProfile
from winescope.domain.value_objects import MAX_NAME_LENGTH, MIN_VINTAGE, max_vintage

SOURCE_SITE = "Wine-Searcher"


class WineSearchRequest(BaseModel):
    """Search query: what to look up on Wine-Searcher."""
    region: str = Field(..., description="Wine region, e.g. Napa Valley")
    winery: str = Field(..., description="Winery, e.g. Opus One")
    variety: str = Field(..., description="Grape variety, e.g. Cabernet Sauvignon")
    vintage: int = Field(..., description="Vintage year")

    @field_validator("region", "winery", "variety")
    @classmethod
    def check_text(cls, v: str, info):
        if not v.strip():
            raise ValueError(f"{info.field_name.capitalize()} is required")
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(
                f"{info.field_name.capitalize()} must be between 1 and {MAX_NAME_LENGTH} characters"
            )
        return v

    @field_validator("vintage")
    @classmethod
    def check_vintage(cls, v: int):
        if v < MIN_VINTAGE:
            raise ValueError(f"Vintage must be at least {MIN_VINTAGE}")
        if v > max_vintage():
            raise ValueError(f"Vintage cannot exceed {max_vintage()}")
        return v


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WineInfo(_WireModel):
    name: str
    region: str
    winery: str
    variety: str
    vintage: int


class RatingInfo(_WireModel):
    source: str
    score: float
    critic: Optional[str] = None
    review_count: int = Field(0, alias="reviewCount")


class PriceInfo(_WireModel):
    average: float
    currency: str
    price_range: Optional[str] = Field(None, alias="priceRange")
    updated_at: str = Field(..., alias="updatedAt")


class SourceInfo(_WireModel):
    site: str = SOURCE_SITE
    url: str
    crawled_at: str = Field(..., alias="crawledAt")


class WineSearchResponse(_WireModel):
    """Normalized search result."""
    wine: WineInfo
    ratings: List[RatingInfo]
    price: Optional[PriceInfo] = None
    source: SourceInfo

    @classmethod
    def from_wine_data(cls, data: WineData) -> "WineSearchResponse":
        """Unwrap value objects to primitives and dates to ISO-8601."""
        return cls(
            wine=WineInfo(**data.wine.to_dict()),
            ratings=[RatingInfo(**rating.to_dict()) for rating in data.ratings],
            price=PriceInfo(**data.price.to_dict()) if data.price else None,
            source=SourceInfo(
                site=SOURCE_SITE,
                url=data.source_url,
                crawledAt=to_iso8601(data.crawled_at),
            ),
        )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class CrawlRequest(_WireModel):
    """Raw crawl of an arbitrary URL."""
    url: str = Field(..., min_length=1, description="Target URL to crawl")
    browser: Optional[BrowserProfile] = Field(None, description="Browser fingerprint to use")
    timeout: Optional[int] = Field(
        None, gt=0, description=f"Request timeout in milliseconds (default {DEFAULT_TIMEOUT_MS})"
    )
    headers: Dict[str, str] = Field(default_factory=dict)
    user_agent: Optional[str] = Field(None, alias="userAgent")


class CrawlResult(_WireModel):
    """Raw crawl outcome; failures are reported in-band."""
    html: str
    status_code: int = Field(..., alias="statusCode")
    headers: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime
    duration: int = Field(..., description="Milliseconds taken")
    error: Optional[str] = None
