"""
Wine-Searcher CSS selectors.

Each logical field maps to an ordered tuple of candidate selectors; the
first one that yields non-empty text wins. The defaults are placeholders
until the live markup is analysed; real maps are supplied through
``SelectorMap.from_json_file`` or the parser constructor.
"""
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

Selectors = Tuple[str, ...]


def _as_selectors(value: Union[str, list, tuple], name: str) -> Selectors:
    """Accept a list, a tuple or a comma-separated string."""
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(part).strip() for part in value]
    else:
        raise ValueError(f"Selectors for {name!r} must be a string or a list, got {type(value).__name__}")
    items = tuple(item for item in items if item)
    if not items:
        raise ValueError(f"Selectors for {name!r} cannot be empty")
    return items


@dataclass(frozen=True)
class WineSelectors:
    name: Selectors = ("h1.wine-name", ".wine-title h1", "h1")
    vintage: Selectors = (".vintage", ".wine-year", "[data-vintage]")
    region: Selectors = (".region", ".wine-region", "[data-region]")
    winery: Selectors = (".winery", ".wine-producer", "[data-winery]")
    variety: Selectors = (".variety", ".wine-varietal", "[data-variety]")


@dataclass(frozen=True)
class RatingSelectors:
    container: Selectors = (".ratings", ".wine-ratings", "[data-ratings]")
    item: Selectors = (".rating-item", ".rating")
    source: Selectors = (".rating-source", ".critic-name", "[data-source]")
    score: Selectors = (".rating-score", ".wine-score", "[data-score]")
    critic: Selectors = (".critic", ".reviewer", "[data-critic]")
    review_count: Selectors = (".review-count", ".num-reviews", "[data-review-count]")


@dataclass(frozen=True)
class PriceSelectors:
    average: Selectors = (".average-price", ".price-avg", "[data-price-avg]")
    currency: Selectors = (".currency", ".price-currency", "[data-currency]")
    price_range: Selectors = (".price-range", "[data-price-range]")
    updated_at: Selectors = (".price-updated", ".last-updated", "[data-updated]")


_JSON_KEYS = {
    "review_count": "reviewCount",
    "price_range": "priceRange",
    "updated_at": "updatedAt",
}


def _section_from_dict(cls, data: Dict[str, Any], section: str):
    """Build one selector section; missing fields keep their defaults."""
    if not isinstance(data, dict):
        raise ValueError(f"Selector section {section!r} must be an object, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = f.name if f.name in data else _JSON_KEYS.get(f.name, f.name)
        if key in data:
            kwargs[f.name] = _as_selectors(data[key], f"{section}.{f.name}")
    return cls(**kwargs)


@dataclass(frozen=True)
class SelectorMap:
    """
    Complete selector configuration for the Wine-Searcher parser.

    JSON shape::

        {"wine": {"name": ["h1.wine-name", "h1"], ...},
         "ratings": {"container": [...], "item": [...], ...},
         "price": {"average": [...], ...}}
    """
    wine: WineSelectors = field(default_factory=WineSelectors)
    ratings: RatingSelectors = field(default_factory=RatingSelectors)
    price: PriceSelectors = field(default_factory=PriceSelectors)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorMap":
        if not isinstance(data, dict):
            raise ValueError(f"Selector map must be an object, got {type(data).__name__}")
        return cls(
            wine=_section_from_dict(WineSelectors, data.get("wine", {}), "wine"),
            ratings=_section_from_dict(RatingSelectors, data.get("ratings", {}), "ratings"),
            price=_section_from_dict(PriceSelectors, data.get("price", {}), "price"),
        )

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "SelectorMap":
        with open(path, encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))


DEFAULT_SELECTORS = SelectorMap()
