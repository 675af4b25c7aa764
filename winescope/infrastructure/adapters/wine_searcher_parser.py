"""
Parser for Wine-Searcher result pages.

Extracts the wine, its ratings and its average price from server-rendered
HTML. Field lookups are driven by an injectable SelectorMap.

Failure policy:
- missing wine name: the whole parse fails
- missing region/winery/variety/vintage: defaults
- malformed rating item: logged and skipped
- missing price container: price is None
- unparseable average price: the whole parse fails
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

from winescope.domain.entities import Price, Rating, Wine, WineData
from winescope.domain.errors import ParsingError
from winescope.domain.value_objects import Score, Vintage, WineName
from winescope.infrastructure.adapters.wine_searcher_selectors import (
    DEFAULT_SELECTORS,
    SelectorMap,
)

logger = logging.getLogger(__name__)

UNKNOWN_REGION = "Unknown Region"
UNKNOWN_WINERY = "Unknown Winery"
UNKNOWN_VARIETY = "Unknown Variety"

VINTAGE_PATTERN = re.compile(r"\b(19|20)\d{2}\b")
NUMBER_PATTERN = re.compile(r"\d+(\.\d+)?")
INTEGER_PATTERN = re.compile(r"\d+")
CURRENCY_NOISE_PATTERN = re.compile(r"[$€£,]")
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class RatingOutcome:
    """Result of extracting one rating item: a rating, an error, or neither (skipped)."""
    position: int
    rating: Optional[Rating] = None
    error: Optional[Exception] = None


def parse_vintage(text: Optional[str]) -> Vintage:
    """First 19xx/20xx year in the text, else the current year."""
    if text:
        match = VINTAGE_PATTERN.search(text)
        if match:
            return Vintage.create(int(match.group(0)))
    return Vintage.create(datetime.now().year)


def parse_score(text: str) -> Score:
    """e.g. "95 points" -> Score(95)."""
    match = NUMBER_PATTERN.search(text)
    if not match:
        raise ValueError(f"Invalid score format: {text}")
    return Score.create(float(match.group(0)))


def parse_review_count(text: Optional[str]) -> int:
    """e.g. "125 reviews" -> 125; absent -> 0."""
    if not text:
        return 0
    match = INTEGER_PATTERN.search(text)
    return int(match.group(0)) if match else 0


def parse_price(text: str) -> float:
    """e.g. "$1,250.50" -> 1250.5."""
    cleaned = CURRENCY_NOISE_PATTERN.sub("", text)
    match = NUMBER_PATTERN.search(cleaned)
    if not match:
        raise ValueError(f"Invalid price format: {text}")
    return float(match.group(0))


def parse_date(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError):
        return None


class WineSearcherParser:
    """ParserPort implementation for Wine-Searcher HTML."""

    def __init__(self, selectors: SelectorMap = DEFAULT_SELECTORS):
        self.selectors = selectors

    def parse(self, html: str, source_url: str) -> WineData:
        """
        Parse a Wine-Searcher page.

        Args:
            html: Raw HTML returned by the crawler
            source_url: URL the HTML was fetched from

        Returns:
            WineData with crawled_at stamped at completion

        Raises:
            ParsingError: If required data cannot be extracted
        """
        logger.debug(f"Parsing HTML from {source_url}")

        try:
            if not html or not html.strip():
                raise ValueError("Empty HTML received")

            soup = BeautifulSoup(html, "html.parser")

            wine = self._extract_wine(soup)
            ratings = self._extract_ratings(soup)
            price = self._extract_price(soup)
        except Exception as e:
            raise ParsingError(
                f"Failed to parse HTML from {source_url}: {e}", source_url
            ) from e

        logger.debug(
            f"Successfully parsed wine: {wine.name.value}, {len(ratings)} ratings, "
            f"price: {'yes' if price else 'no'}"
        )

        return WineData(
            wine=wine,
            ratings=ratings,
            price=price,
            source_url=source_url,
            crawled_at=datetime.now(timezone.utc),
        )

    def _extract_wine(self, soup: BeautifulSoup) -> Wine:
        selectors = self.selectors.wine

        name = _extract_text(soup, selectors.name)
        if not name:
            raise ValueError("Wine name not found")

        vintage = parse_vintage(_extract_text(soup, selectors.vintage))

        return Wine(
            name=WineName.create(name),
            region=_extract_text(soup, selectors.region) or UNKNOWN_REGION,
            winery=_extract_text(soup, selectors.winery) or UNKNOWN_WINERY,
            variety=_extract_text(soup, selectors.variety) or UNKNOWN_VARIETY,
            vintage=vintage,
        )

    def _extract_ratings(self, soup: BeautifulSoup) -> Tuple[Rating, ...]:
        ratings: List[Rating] = []
        for outcome in self._iter_rating_outcomes(soup):
            if outcome.error is not None:
                logger.warning(f"Failed to parse rating #{outcome.position}: {outcome.error}")
            elif outcome.rating is not None:
                ratings.append(outcome.rating)
        return tuple(ratings)

    def _iter_rating_outcomes(self, soup: BeautifulSoup) -> Iterator[RatingOutcome]:
        """Yield one outcome per rating item, in document order."""
        selectors = self.selectors.ratings

        containers = _select_first(soup, selectors.container)
        items: List[Tag] = []
        for selector in selectors.item:
            items = [item for container in containers for item in container.select(selector)]
            if items:
                break

        for position, item in enumerate(items, start=1):
            try:
                yield RatingOutcome(position, rating=self._extract_rating(item))
            except Exception as e:
                yield RatingOutcome(position, error=e)

    def _extract_rating(self, item: Tag) -> Optional[Rating]:
        selectors = self.selectors.ratings

        source = _extract_text(item, selectors.source)
        score_text = _extract_text(item, selectors.score)
        if not source or not score_text:
            logger.debug("Skipping rating item without source or score")
            return None

        return Rating(
            source=source,
            score=parse_score(score_text),
            critic=_extract_text(item, selectors.critic),
            review_count=parse_review_count(_extract_text(item, selectors.review_count)),
        )

    def _extract_price(self, soup: BeautifulSoup) -> Optional[Price]:
        selectors = self.selectors.price

        average_text = _extract_text(soup, selectors.average)
        currency = _extract_text(soup, selectors.currency)
        if not average_text or not currency:
            return None

        updated_at = parse_date(_extract_text(soup, selectors.updated_at))

        return Price(
            average=parse_price(average_text),
            currency=currency,
            price_range=_extract_text(soup, selectors.price_range),
            updated_at=updated_at or datetime.now(timezone.utc),
        )


def _select_first(root: Tag, selectors: Sequence[str]) -> List[Tag]:
    """Elements matched by the first selector that matches anything."""
    for selector in selectors:
        found = root.select(selector)
        if found:
            return found
    return []


def _extract_text(root: Tag, selectors: Sequence[str]) -> Optional[str]:
    """Whitespace-normalized text of the first non-empty match, or None."""
    for selector in selectors:
        for element in root.select(selector):
            text = WHITESPACE_PATTERN.sub(" ", element.get_text()).strip()
            if text:
                return text
    return None
