"""
WineScope Domain Value Objects

Value objects are immutable and defined by their attributes.
They have no identity beyond their values.

Each one validates itself in ``__post_init__``; the ``create`` factory
normalizes raw input before validation.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from numbers import Real

from winescope.domain.errors import ValidationError

MAX_NAME_LENGTH = 100
MIN_VINTAGE = 1900
FUTURE_VINTAGE_YEARS = 5
MIN_SCORE = 0
MAX_SCORE = 100


def max_vintage() -> int:
    """Latest acceptable vintage year (current year plus five)."""
    return datetime.now().year + FUTURE_VINTAGE_YEARS


@dataclass(frozen=True)
class WineName:
    """
    Wine name value object.

    Trimmed, 1 to 100 characters.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError(
                f"Wine name must be a string, got: {type(self.value).__name__}",
                field="name",
            )
        if self.value != self.value.strip():
            raise ValidationError("Wine name must be trimmed", field="name")
        if not self.value:
            raise ValidationError("Wine name cannot be empty", field="name")
        if len(self.value) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Wine name cannot exceed {MAX_NAME_LENGTH} characters, "
                f"got: {len(self.value)}",
                field="name",
            )

    @classmethod
    def create(cls, value: str) -> "WineName":
        """Trim and validate a raw wine name."""
        if isinstance(value, str):
            value = value.strip()
        return cls(value)

    def contains(self, keyword: str) -> bool:
        """Case-insensitive substring search."""
        return keyword.lower() in self.value.lower()

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Vintage:
    """
    Vintage year value object.

    Accepts 1900 up to the current year plus five (future vintages).
    """
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Vintage must be an integer, got: {self.value!r}",
                field="vintage",
            )
        upper = max_vintage()
        if self.value < MIN_VINTAGE or self.value > upper:
            raise ValidationError(
                f"Vintage must be between {MIN_VINTAGE} and {upper}, got: {self.value}",
                field="vintage",
            )

    @classmethod
    def create(cls, value: int) -> "Vintage":
        return cls(value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Score:
    """
    Critic or community score, 0 to 100.
    """
    value: float

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, Real):
            raise ValidationError(
                f"Score must be a valid number, got: {self.value!r}",
                field="score",
            )
        if math.isnan(self.value):
            raise ValidationError("Score must be a valid number, got: nan", field="score")
        if self.value < MIN_SCORE or self.value > MAX_SCORE:
            raise ValidationError(
                f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got: {self.value}",
                field="score",
            )

    @classmethod
    def create(cls, value: float) -> "Score":
        return cls(value)

    @property
    def is_high_rated(self) -> bool:
        """90 points or more."""
        return self.value >= 90

    @property
    def is_excellent(self) -> bool:
        """85 points or more."""
        return self.value >= 85

    def __str__(self) -> str:
        return str(self.value)
