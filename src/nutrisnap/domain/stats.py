"""Domain models for statistics."""

from dataclasses import dataclass, field
from datetime import date

from nutrisnap.domain.entries import FoodEntry


@dataclass(frozen=True)
class DayStats:
    """Totals and entries for one local calendar day."""

    day: date
    total_calories: int = 0
    total_protein: int = 0
    total_carbs: int = 0
    total_fats: int = 0
    entries: tuple[FoodEntry, ...] = field(default_factory=tuple)

    @property
    def key(self) -> str:
        """Return the YYYY-MM-DD bucket key."""
        return self.day.isoformat()


@dataclass(frozen=True)
class WeekdaySummary:
    """Chart-ready totals for one day of the trailing week."""

    label: str
    day: date
    total_calories: int
    protein: int
    carbs: int
    fats: int


@dataclass(frozen=True)
class MacroSplit:
    """Share of each macro in a day's grams, between 0 and 1."""

    protein: float
    carbs: float
    fats: float


@dataclass(frozen=True)
class CalendarDay:
    """One cell of the monthly history."""

    stats: DayStats
    is_today: bool
    intensity: float

    @property
    def day_of_month(self) -> int:
        return self.stats.day.day

    @property
    def has_data(self) -> bool:
        return bool(self.stats.entries)


@dataclass(frozen=True)
class MonthCalendar:
    """Daily history for a month."""

    year: int
    month: int
    leading_blanks: int
    days: list[CalendarDay]
