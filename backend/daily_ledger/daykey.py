# daily_ledger/daykey.py
"""
DAY KEY NORMALIZER

Every ledger-day boundary in the system goes through this module:
mutation targets, ledger lookups, carry-forward steps and aggregation
range filters.

A day key is the absolute instant (aware, UTC) at which a civil day begins
under the single configured offset. With the default UTC+05:30 offset,
civil day 2025-11-23 has key 2025-11-22T18:30:00Z.

Rules:
- normalize(normalize(x)) == normalize(x)
- two instants within the same civil day share one key
- previous_day / next_day move exactly one civil day
- naive datetimes are read as civil wall-clock time under the offset
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Iterator

from django.conf import settings
from django.utils.dateparse import parse_date, parse_datetime

from daily_ledger.exceptions import LedgerValidationError


ONE_DAY = timedelta(days=1)


class DayKeyNormalizer:
    def __init__(self, offset_minutes: int):
        if not -24 * 60 < offset_minutes < 24 * 60:
            raise LedgerValidationError(f"Invalid ledger UTC offset: {offset_minutes} minutes")
        self.offset_minutes = offset_minutes
        self.civil_tz = dt_timezone(timedelta(minutes=offset_minutes))

    def __repr__(self):
        return f"DayKeyNormalizer(offset_minutes={self.offset_minutes})"

    def civil_date(self, value) -> date:
        """Civil calendar date that `value` falls on under the ledger offset."""
        if isinstance(value, str):
            value = self._parse(value)

        if isinstance(value, datetime):
            if value.tzinfo is None or value.utcoffset() is None:
                return value.date()
            return value.astimezone(self.civil_tz).date()

        if isinstance(value, date):
            return value

        raise LedgerValidationError(f"Cannot derive a ledger day from {value!r}")

    def for_date(self, civil_date: date) -> datetime:
        """Day key for a civil calendar date."""
        start = datetime.combine(civil_date, time.min, tzinfo=self.civil_tz)
        try:
            return start.astimezone(dt_timezone.utc)
        except OverflowError:
            raise LedgerValidationError(f"Day {civil_date} has no representable start instant in UTC")

    def normalize(self, value) -> datetime:
        return self.for_date(self.civil_date(value))

    def previous_day(self, day_key) -> datetime:
        return self._shift(day_key, -1)

    def next_day(self, day_key) -> datetime:
        return self._shift(day_key, 1)

    def today(self, now: datetime) -> datetime:
        return self.normalize(now)

    def iter_days(self, from_day, to_day) -> Iterator[datetime]:
        """Yield every day key from `from_day` to `to_day`, inclusive."""
        start = self.civil_date(from_day)
        end = self.civil_date(to_day)
        if end < start:
            raise LedgerValidationError(f"Range end {end} is before start {start}")

        current = start
        while current <= end:
            yield self.for_date(current)
            current += ONE_DAY

    def _shift(self, day_key, days: int) -> datetime:
        try:
            target = self.civil_date(day_key) + timedelta(days=days)
        except OverflowError:
            raise LedgerValidationError(f"Day {day_key!r} has no neighbour {days:+d} days away")
        return self.for_date(target)

    @staticmethod
    def _parse(value: str):
        text = value.strip()
        try:
            parsed = parse_datetime(text) or parse_date(text)
        except ValueError:
            parsed = None

        if parsed is None:
            raise LedgerValidationError(f"Malformed date input: {value!r}")
        return parsed


def get_normalizer() -> DayKeyNormalizer:
    """Normalizer for the configured ledger offset."""
    return DayKeyNormalizer(settings.LEDGER_UTC_OFFSET_MINUTES)
