"""Display-date normalization, date ranges, and rolling time windows."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from inspection_insights.settings import get_settings

DEFAULT_DATE_FORMAT = "%d/%m/%Y"
DEFAULT_SEPARATOR = " - "


@dataclass(frozen=True)
class ReportDateParser:
    """Parses the display ``date`` field of reports into grouping keys.

    Display dates may carry a prefix such as ``"Inspection - 12/03/2024"``; the
    trailing component after the separator is the candidate date.
    """

    date_format: str = DEFAULT_DATE_FORMAT
    separator: str = DEFAULT_SEPARATOR

    @classmethod
    def from_settings(cls) -> "ReportDateParser":
        dates = get_settings().dates
        return cls(date_format=dates.date_format, separator=dates.separator)

    def parse(self, raw: str) -> Optional[date]:
        """Return the parsed date for ``raw`` or ``None`` when it does not match."""

        candidate = self._trailing_component(raw)
        if not candidate:
            return None
        try:
            return datetime.strptime(candidate, self.date_format).date()
        except ValueError:
            return None

    def group_key(self, raw: str) -> str:
        """Return the normalized key, falling back to ``raw`` verbatim."""

        candidate = self._trailing_component(raw)
        if candidate and self.parse(candidate) is not None:
            return candidate
        return raw

    def sort_keys(self, keys: Iterable[str]) -> List[str]:
        """Sort keys by parsed date descending; unparseable keys last, raw descending."""

        parsed: List[Tuple[date, str]] = []
        unparsed: List[str] = []
        for key in keys:
            value = self.parse(key)
            if value is None:
                unparsed.append(key)
            else:
                parsed.append((value, key))
        parsed.sort(key=lambda item: item[0], reverse=True)
        unparsed.sort(reverse=True)
        return [key for _, key in parsed] + unparsed

    def _trailing_component(self, raw: str) -> str:
        if not raw:
            return ""
        return raw.rsplit(self.separator, 1)[-1].strip()


@dataclass(frozen=True)
class DateRange:
    """Inclusive range compared against report timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_utc(self.start))
        object.__setattr__(self, "end", _as_utc(self.end))

    def contains(self, moment: datetime) -> bool:
        return self.start <= _as_utc(moment) <= self.end

    def label(self) -> str:
        return f"{self.start:%d/%m/%Y} - {self.end:%d/%m/%Y}"


class TimeWindow(str, Enum):
    """Rolling windows ending at a reference moment."""

    LAST_30_DAYS = "30 Days"
    LAST_3_MONTHS = "3 Months"
    LAST_6_MONTHS = "6 Months"
    LAST_12_MONTHS = "1 Year"

    def start(self, now: datetime) -> datetime:
        now = _as_utc(now)
        if self is TimeWindow.LAST_30_DAYS:
            return now - timedelta(days=30)
        months = {
            TimeWindow.LAST_3_MONTHS: 3,
            TimeWindow.LAST_6_MONTHS: 6,
            TimeWindow.LAST_12_MONTHS: 12,
        }[self]
        return subtract_months(now, months)

    def date_range(self, now: Optional[datetime] = None) -> DateRange:
        reference = _as_utc(now or datetime.now(timezone.utc))
        return DateRange(start=self.start(reference), end=reference)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` back by whole months, clamping to the month's last day."""

    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


__all__ = ["DateRange", "ReportDateParser", "TimeWindow", "subtract_months"]
