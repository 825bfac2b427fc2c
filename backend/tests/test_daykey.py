# tests/test_daykey.py
"""
Tests for the day key normalizer.

Tests cover:
- Civil day boundaries under a fixed offset
- Idempotency and same-day collapse
- Previous/next day stepping
- Input parsing and rejection
"""

from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest

from daily_ledger.daykey import DayKeyNormalizer, get_normalizer
from daily_ledger.exceptions import LedgerValidationError


UTC = dt_timezone.utc
IST = dt_timezone(timedelta(hours=5, minutes=30))


# =============================================================================
# Boundaries
# =============================================================================

class TestCivilDayBoundary:

    def test_civil_date_maps_to_start_of_day_in_utc(self, normalizer):
        key = normalizer.for_date(date(2025, 11, 23))

        assert key == datetime(2025, 11, 22, 18, 30, tzinfo=UTC)
        assert key.tzinfo is not None

    def test_instants_in_same_civil_day_share_a_key(self, normalizer):
        first_instant = datetime(2025, 11, 22, 18, 30, tzinfo=UTC)  # 00:00 IST
        last_instant = datetime(2025, 11, 23, 18, 29, 59, tzinfo=UTC)  # 23:59:59 IST

        assert normalizer.normalize(first_instant) == normalizer.normalize(last_instant)

    def test_instant_after_midnight_belongs_to_next_day(self, normalizer):
        before = datetime(2025, 11, 23, 18, 29, 59, tzinfo=UTC)
        after = datetime(2025, 11, 23, 18, 30, tzinfo=UTC)

        assert normalizer.next_day(normalizer.normalize(before)) == normalizer.normalize(after)

    def test_normalize_is_idempotent(self, normalizer):
        instant = datetime(2025, 11, 23, 9, 15, tzinfo=UTC)
        key = normalizer.normalize(instant)

        assert normalizer.normalize(key) == key
        assert normalizer.normalize(normalizer.normalize(key)) == key

    def test_utc_calendar_date_differs_from_civil_date(self, normalizer):
        # 20:00 UTC on the 22nd is already the 23rd in IST
        instant = datetime(2025, 11, 22, 20, 0, tzinfo=UTC)

        assert normalizer.civil_date(instant) == date(2025, 11, 23)

    def test_key_does_not_depend_on_input_timezone(self, normalizer):
        in_utc = datetime(2025, 11, 23, 4, 30, tzinfo=UTC)
        in_ist = in_utc.astimezone(IST)

        assert normalizer.normalize(in_utc) == normalizer.normalize(in_ist)

    def test_negative_offset(self):
        normalizer = DayKeyNormalizer(-300)

        assert normalizer.for_date(date(2025, 11, 23)) == datetime(2025, 11, 23, 5, 0, tzinfo=UTC)

    def test_configured_normalizer_uses_settings_offset(self, settings):
        settings.LEDGER_UTC_OFFSET_MINUTES = 60

        assert get_normalizer().for_date(date(2025, 1, 1)) == datetime(2024, 12, 31, 23, 0, tzinfo=UTC)


# =============================================================================
# Stepping
# =============================================================================

class TestDayStepping:

    def test_previous_day_is_exactly_one_civil_day_earlier(self, normalizer):
        key = normalizer.for_date(date(2025, 3, 1))

        assert normalizer.previous_day(key) == normalizer.for_date(date(2025, 2, 28))
        assert key - normalizer.previous_day(key) == timedelta(days=1)

    def test_previous_and_next_are_inverse(self, normalizer):
        key = normalizer.for_date(date(2024, 12, 31))

        assert normalizer.next_day(normalizer.previous_day(key)) == key
        assert normalizer.next_day(key) == normalizer.for_date(date(2025, 1, 1))

    def test_iter_days_is_inclusive(self, normalizer):
        days = list(normalizer.iter_days(date(2025, 11, 1), date(2025, 11, 5)))

        assert len(days) == 5
        assert days[0] == normalizer.for_date(date(2025, 11, 1))
        assert days[-1] == normalizer.for_date(date(2025, 11, 5))

    def test_iter_days_single_day(self, normalizer):
        assert list(normalizer.iter_days("2025-11-01", "2025-11-01")) == [
            normalizer.for_date(date(2025, 11, 1))
        ]

    def test_iter_days_rejects_reversed_range(self, normalizer):
        with pytest.raises(LedgerValidationError):
            list(normalizer.iter_days(date(2025, 11, 5), date(2025, 11, 1)))

    def test_previous_day_of_minimum_date_is_rejected(self, normalizer):
        with pytest.raises(LedgerValidationError):
            normalizer.previous_day(date.min)

    def test_minimum_date_under_positive_offset_is_rejected(self, normalizer):
        # Civil midnight of 0001-01-01 at +05:30 falls before the first UTC instant
        with pytest.raises(LedgerValidationError):
            normalizer.normalize(date.min)

    def test_next_day_of_maximum_date_is_rejected(self, normalizer):
        with pytest.raises(LedgerValidationError):
            normalizer.next_day(date.max)


# =============================================================================
# Input handling
# =============================================================================

class TestInputParsing:

    def test_date_string(self, normalizer):
        assert normalizer.normalize("2025-11-23") == normalizer.for_date(date(2025, 11, 23))

    def test_aware_datetime_string(self, normalizer):
        assert normalizer.civil_date("2025-11-22T20:00:00+00:00") == date(2025, 11, 23)

    def test_naive_datetime_is_civil_wall_time(self, normalizer):
        naive = datetime(2025, 11, 23, 23, 59)

        assert normalizer.civil_date(naive) == date(2025, 11, 23)

    def test_plain_date_passes_through(self, normalizer):
        assert normalizer.civil_date(date(2025, 11, 23)) == date(2025, 11, 23)

    @pytest.mark.parametrize("value", ["not-a-date", "2025-13-45", "", "   "])
    def test_malformed_strings_are_rejected(self, normalizer, value):
        with pytest.raises(LedgerValidationError):
            normalizer.normalize(value)

    @pytest.mark.parametrize("value", [None, 20251123, 3.5])
    def test_unsupported_types_are_rejected(self, normalizer, value):
        with pytest.raises(LedgerValidationError):
            normalizer.normalize(value)

    @pytest.mark.parametrize("offset", [24 * 60, -24 * 60, 2000])
    def test_offsets_of_a_day_or_more_are_rejected(self, offset):
        with pytest.raises(LedgerValidationError):
            DayKeyNormalizer(offset)
