"""Statistics derived from food entries."""

import calendar
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from nutrisnap.domain.entries import FoodEntry
from nutrisnap.domain.stats import (
    CalendarDay,
    DayStats,
    MacroSplit,
    MonthCalendar,
    WeekdaySummary,
)
from nutrisnap.services.calendar import LocalCalendar

WEEK_DAYS = 7
CALORIE_INTENSITY_CEILING = 2500

# Indexed by date.weekday(), Monday first.
WEEKDAY_LABELS: dict[str, tuple[str, ...]] = {
    "en": ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
    "pt-BR": ("seg", "ter", "qua", "qui", "sex", "sáb", "dom"),
}


@dataclass
class StatsService:
    """Pure aggregations over entry snapshots in the local timezone.

    Nothing is cached: every call recomputes from the entries it is given.
    """

    local_calendar: LocalCalendar = field(default_factory=LocalCalendar)
    weekday_locale: str = "en"

    def stats_for_date(self, day: date, entries: Sequence[FoodEntry]) -> DayStats:
        """Return totals and entries for a local calendar day."""
        return _aggregate_day(day, tuple(entries), self.local_calendar)

    def stats_for_today(self, entries: Sequence[FoodEntry]) -> DayStats:
        """Return totals for the current local day."""
        return self.stats_for_date(self.local_calendar.today(), entries)

    def weekly_stats(self, entries: Sequence[FoodEntry]) -> list[WeekdaySummary]:
        """Return the trailing seven days, oldest first, ending today."""
        snapshot = tuple(entries)
        today = self.local_calendar.today()
        labels = WEEKDAY_LABELS.get(self.weekday_locale, WEEKDAY_LABELS["en"])
        week = []
        for offset in range(WEEK_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            stats = _aggregate_day(day, snapshot, self.local_calendar)
            week.append(
                WeekdaySummary(
                    label=labels[day.weekday()],
                    day=day,
                    total_calories=stats.total_calories,
                    protein=stats.total_protein,
                    carbs=stats.total_carbs,
                    fats=stats.total_fats,
                )
            )
        return week

    def month_calendar(
        self,
        entries: Sequence[FoodEntry],
        year: int | None = None,
        month: int | None = None,
    ) -> MonthCalendar:
        """Return per-day history for a month, the current one by default."""
        snapshot = tuple(entries)
        today = self.local_calendar.today()
        if year is None:
            year = today.year
        if month is None:
            month = today.month
        first_weekday, days_in_month = calendar.monthrange(year, month)
        days = []
        for day_of_month in range(1, days_in_month + 1):
            day = date(year, month, day_of_month)
            stats = _aggregate_day(day, snapshot, self.local_calendar)
            days.append(
                CalendarDay(
                    stats=stats,
                    is_today=day == today,
                    intensity=min(stats.total_calories / CALORIE_INTENSITY_CEILING, 1),
                )
            )
        # Grid columns start on Sunday.
        return MonthCalendar(
            year=year,
            month=month,
            leading_blanks=(first_weekday + 1) % WEEK_DAYS,
            days=days,
        )


def macro_split(stats: DayStats) -> MacroSplit | None:
    """Return each macro's share of the day's grams, or None when empty."""
    total = stats.total_protein + stats.total_carbs + stats.total_fats
    if total == 0:
        return None
    return MacroSplit(
        protein=stats.total_protein / total,
        carbs=stats.total_carbs / total,
        fats=stats.total_fats / total,
    )


def _aggregate_day(
    day: date, entries: tuple[FoodEntry, ...], local_calendar: LocalCalendar
) -> DayStats:
    matching = tuple(
        entry for entry in entries if local_calendar.date_of(entry.timestamp) == day
    )
    return DayStats(
        day=day,
        total_calories=sum(entry.calories for entry in matching),
        total_protein=sum(entry.protein for entry in matching),
        total_carbs=sum(entry.carbs for entry in matching),
        total_fats=sum(entry.fats for entry in matching),
        entries=matching,
    )
