"""
Tests for WineScope Domain Entities

Entities are immutable and validate on construction.
"""
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest


def _wine(**overrides):
    from winescope.domain.entities import Wine
    from winescope.domain.value_objects import Vintage, WineName

    fields = {
        "name": WineName.create("Opus One"),
        "region": "Napa Valley",
        "winery": "Opus One Winery",
        "variety": "Cabernet Sauvignon",
        "vintage": Vintage.create(2018),
    }
    fields.update(overrides)
    return Wine(**fields)


class TestWine:
    """Tests for Wine entity."""

    def test_create_valid_wine(self):
        """A fully populated wine is accepted."""
        wine = _wine()
        assert wine.name.value == "Opus One"
        assert wine.vintage.value == 2018

    @pytest.mark.parametrize("field_name", ["region", "winery", "variety"])
    def test_blank_text_fields_rejected(self, field_name):
        """Region, winery and variety are required."""
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError) as exc_info:
            _wine(**{field_name: "   "})
        assert exc_info.value.field == field_name

    def test_region_too_long(self):
        """101-character region is rejected."""
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError) as exc_info:
            _wine(region="r" * 101)
        assert "too long" in str(exc_info.value)

    def test_name_must_be_value_object(self):
        """A plain string name is rejected."""
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError):
            _wine(name="Opus One")

    def test_full_description(self):
        """Description joins name, vintage, region and variety."""
        assert _wine().full_description == "Opus One 2018, Napa Valley, Cabernet Sauvignon"

    def test_region_and_winery_matching(self):
        """Matching is case-insensitive substring."""
        wine = _wine()
        assert wine.is_from_region("napa")
        assert not wine.is_from_region("Sonoma")
        assert wine.is_from_winery("OPUS")

    def test_to_dict(self):
        assert _wine().to_dict() == {
            "name": "Opus One",
            "region": "Napa Valley",
            "winery": "Opus One Winery",
            "variety": "Cabernet Sauvignon",
            "vintage": 2018,
        }

    def test_immutable(self):
        """Wine is frozen."""
        wine = _wine()
        with pytest.raises(FrozenInstanceError):
            wine.region = "Sonoma"


class TestRating:
    """Tests for Rating entity."""

    def test_defaults(self):
        """Critic defaults to None and review count to 0."""
        from winescope.domain.entities import Rating
        from winescope.domain.value_objects import Score

        rating = Rating(source="Wine Spectator", score=Score.create(95))
        assert rating.critic is None
        assert rating.review_count == 0

    def test_empty_critic_rejected(self):
        """An empty critic must be None instead."""
        from winescope.domain.entities import Rating
        from winescope.domain.errors import ValidationError
        from winescope.domain.value_objects import Score

        with pytest.raises(ValidationError) as exc_info:
            Rating(source="Wine Spectator", score=Score.create(95), critic="")
        assert exc_info.value.field == "critic"

    def test_negative_review_count_rejected(self):
        from winescope.domain.entities import Rating
        from winescope.domain.errors import ValidationError
        from winescope.domain.value_objects import Score

        with pytest.raises(ValidationError):
            Rating(source="Community", score=Score.create(90), review_count=-1)

    def test_blank_source_rejected(self):
        from winescope.domain.entities import Rating
        from winescope.domain.errors import ValidationError
        from winescope.domain.value_objects import Score

        with pytest.raises(ValidationError):
            Rating(source="", score=Score.create(90))

    @pytest.mark.parametrize(
        "source,critic,expected",
        [
            ("Wine Advocate", "Robert Parker", True),
            ("RP Score", None, True),
            ("Wine Spectator", "James Suckling", False),
        ],
    )
    def test_is_robert_parker(self, source, critic, expected):
        """Parker is detected from source or critic."""
        from winescope.domain.entities import Rating
        from winescope.domain.value_objects import Score

        rating = Rating(source=source, score=Score.create(95), critic=critic)
        assert rating.is_robert_parker() is expected

    def test_high_rated_and_reliable(self):
        """Thresholds are 90 points and 10 reviews."""
        from winescope.domain.entities import Rating
        from winescope.domain.value_objects import Score

        rating = Rating(source="Community", score=Score.create(90), review_count=10)
        assert rating.is_high_rated()
        assert rating.is_reliable()

        weak = Rating(source="Community", score=Score.create(89), review_count=9)
        assert not weak.is_high_rated()
        assert not weak.is_reliable()

    def test_to_dict_uses_wire_keys(self):
        from winescope.domain.entities import Rating
        from winescope.domain.value_objects import Score

        rating = Rating(source="Wine Advocate", score=Score.create(98), critic="Robert Parker", review_count=12)
        assert rating.to_dict() == {
            "source": "Wine Advocate",
            "score": 98,
            "critic": "Robert Parker",
            "reviewCount": 12,
        }


class TestPrice:
    """Tests for Price entity."""

    def test_format_two_decimals(self):
        """format() renders currency and two decimals."""
        from winescope.domain.entities import Price
        assert Price(average=325, currency="USD").format() == "USD 325.00"

    def test_negative_average_rejected(self):
        from winescope.domain.entities import Price
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError) as exc_info:
            Price(average=-1, currency="USD")
        assert exc_info.value.field == "average"

    def test_nan_average_rejected(self):
        from winescope.domain.entities import Price
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError):
            Price(average=float("nan"), currency="USD")

    @pytest.mark.parametrize("currency", ["", "   ", "ABCDEFGHIJK"])
    def test_currency_length(self, currency):
        """Currency must be 1-10 characters once trimmed."""
        from winescope.domain.entities import Price
        from winescope.domain.errors import ValidationError

        with pytest.raises(ValidationError):
            Price(average=10, currency=currency)

    def test_is_expensive_threshold(self):
        """200 or more is expensive regardless of currency."""
        from winescope.domain.entities import Price
        assert Price(average=200, currency="EUR").is_expensive()
        assert not Price(average=199.99, currency="EUR").is_expensive()

    def test_is_recent(self):
        """Recent means updated within seven days."""
        from winescope.domain.entities import Price

        now = datetime(2024, 3, 20, tzinfo=timezone.utc)
        fresh = Price(average=10, currency="USD", updated_at=now - timedelta(days=6))
        stale = Price(average=10, currency="USD", updated_at=now - timedelta(days=8))
        assert fresh.is_recent(now)
        assert not stale.is_recent(now)

    def test_default_updated_at_is_now(self):
        """updated_at defaults to the construction time in UTC."""
        from winescope.domain.entities import Price

        price = Price(average=10, currency="USD")
        assert price.updated_at.tzinfo is not None
        assert price.is_recent()

    def test_to_dict_serializes_timestamp(self):
        from winescope.domain.entities import Price

        price = Price(
            average=1325.5,
            currency="USD",
            price_range="$1,100 - $1,600",
            updated_at=datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc),
        )
        assert price.to_dict() == {
            "average": 1325.5,
            "currency": "USD",
            "priceRange": "$1,100 - $1,600",
            "updatedAt": "2024-03-15T10:30:00.000Z",
        }


class TestToIso8601:
    """Tests for timestamp rendering."""

    def test_naive_datetime_treated_as_utc(self):
        from winescope.domain.entities import to_iso8601
        assert to_iso8601(datetime(2024, 1, 2, 3, 4, 5, 678901)) == "2024-01-02T03:04:05.678Z"

    def test_offset_datetime_converted(self):
        from winescope.domain.entities import to_iso8601

        plus_two = timezone(timedelta(hours=2))
        assert to_iso8601(datetime(2024, 1, 2, 12, 0, tzinfo=plus_two)) == "2024-01-02T10:00:00.000Z"


class TestWineData:
    """Tests for WineData entity."""

    def test_crawled_at_iso(self):
        from winescope.domain.entities import WineData

        data = WineData(
            wine=_wine(),
            ratings=(),
            price=None,
            source_url="https://example.com",
            crawled_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        assert data.crawled_at_iso == "2024-05-01T00:00:00.000Z"

    def test_to_dict(self):
        """Nested entities serialize with wire keys; absent price is None."""
        from winescope.domain.entities import Rating, WineData
        from winescope.domain.value_objects import Score

        data = WineData(
            wine=_wine(),
            ratings=(Rating(source="Vinous", score=Score.create(97)),),
            price=None,
            source_url="https://example.com",
            crawled_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        assert data.to_dict() == {
            "wine": _wine().to_dict(),
            "ratings": [{"source": "Vinous", "score": 97, "critic": None, "reviewCount": 0}],
            "price": None,
            "sourceUrl": "https://example.com",
            "crawledAt": "2024-05-01T00:00:00.000Z",
        }
