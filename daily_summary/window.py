"""The calendar day being summarized."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo


class DayWindow:
    """A single calendar day in a given zone (system local when `tz` is None).

    Membership compares calendar components rather than an instant range so a
    timestamp near midnight is judged by its local date, not by truncation.
    """

    def __init__(self, reference: date | datetime, tz: tzinfo | None = None) -> None:
        self.tz = tz
        if isinstance(reference, datetime):
            self.day = reference.astimezone(tz).date()
        else:
            self.day = reference

    @classmethod
    def today(cls, tz: tzinfo | None = None) -> DayWindow:
        return cls(datetime.now().astimezone(), tz)

    @classmethod
    def yesterday(cls, tz: tzinfo | None = None) -> DayWindow:
        return cls(datetime.now().astimezone(tz).date() - timedelta(days=1), tz)

    @property
    def label(self) -> str:
        """ISO date of the window, e.g. 2025-03-14."""
        return self.day.isoformat()

    @property
    def start(self) -> datetime:
        """First instant of the day as an aware datetime."""
        return self._localize(datetime.combine(self.day, time.min))

    @property
    def end(self) -> datetime:
        """Last representable instant of the day as an aware datetime."""
        return self._localize(datetime.combine(self.day, time.max))

    def contains(self, timestamp: datetime) -> bool:
        """Return True if the timestamp falls on this calendar day."""
        local = timestamp.astimezone(self.tz)
        return (local.year, local.month, local.day) == (
            self.day.year,
            self.day.month,
            self.day.day,
        )

    def _localize(self, moment: datetime) -> datetime:
        if self.tz is None:
            return moment.astimezone()
        return moment.replace(tzinfo=self.tz)

    def __repr__(self) -> str:
        return f"DayWindow({self.label!r}, tz={self.tz!r})"
