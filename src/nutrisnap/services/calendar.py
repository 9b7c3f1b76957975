"""Local calendar used for date bucketing."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta, tzinfo

# Epoch milliseconds whose local date exists in every timezone.
MIN_TIMESTAMP_MS = -62_135_510_400_000  # 0001-01-02T00:00:00Z
MAX_TIMESTAMP_MS = 253_402_214_400_000  # 9999-12-31T00:00:00Z


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class LocalCalendar:
    """Current time source and local-date conversion in one place.

    ``tz=None`` means the host's local timezone. Tests pin both the timezone
    and the clock so bucketing does not depend on the machine running them.
    """

    tz: tzinfo | None = None
    clock: Callable[[], datetime] = field(default=_utc_now)

    def now(self) -> datetime:
        """Return the current time in the local timezone."""
        return self.clock().astimezone(self.tz)

    def now_ms(self) -> int:
        """Return the current time as milliseconds since the epoch."""
        current = self.clock()
        return int(current.timestamp()) * 1000 + current.microsecond // 1000

    def today(self) -> date:
        """Return the current local date."""
        return self.now().date()

    def date_of(self, timestamp_ms: int) -> date:
        """Return the local calendar date of an epoch-milliseconds timestamp."""
        seconds, millis = divmod(timestamp_ms, 1000)
        moment = datetime.fromtimestamp(seconds, tz=UTC) + timedelta(
            milliseconds=millis
        )
        return moment.astimezone(self.tz).date()
