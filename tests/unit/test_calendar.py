"""Unit tests for calendar and schedule-time utilities."""

from datetime import date, datetime, timedelta, timezone

import pytest
from freezegun import freeze_time

from medtracker.data.models import Medication
from medtracker.utils import MalformedScheduleError
from medtracker.utils.calendar import (
    is_medication_active_on_date,
    is_medication_due,
    next_dose_instant,
    parse_clock_time,
    parse_duration_days,
)

UTC = timezone.utc


def make_medication(times=("09:00",), start_date="2024-01-10", duration="Ongoing"):
    return Medication(
        id="med-1",
        name="Aspirin",
        dosage="100 mg",
        times=list(times),
        start_date=start_date,
        duration=duration,
    )


class TestParsing:
    """Test cases for clock-time and duration parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("09:00", (9, 0)),
        ("9:05", (9, 5)),
        ("00:00", (0, 0)),
        ("23:59", (23, 59)),
    ])
    def test_valid_clock_times(self, value, expected):
        parsed = parse_clock_time(value)
        assert (parsed.hour, parsed.minute) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "9", "09:00:00", None])
    def test_malformed_clock_times(self, value):
        with pytest.raises(MalformedScheduleError):
            parse_clock_time(value)

    @pytest.mark.parametrize("duration,expected", [
        ("7 days", 7),
        ("30", 30),
        ("90 days", 90),
        ("Ongoing", None),
        ("-1", None),
        ("0 days", 0),
        ("", None),
    ])
    def test_duration_days(self, duration, expected):
        assert parse_duration_days(duration) == expected


class TestActiveOnDate:
    """Test cases for is_medication_active_on_date."""

    def test_before_start_is_inactive(self):
        medication = make_medication(start_date="2024-02-01", duration="7 days")
        assert not is_medication_active_on_date(medication, date(2024, 1, 31))

    def test_within_fixed_duration_is_active(self):
        medication = make_medication(start_date="2024-02-01", duration="7 days")
        for offset in range(7):
            assert is_medication_active_on_date(medication, date(2024, 2, 1) + timedelta(days=offset))

    def test_after_fixed_duration_is_inactive(self):
        medication = make_medication(start_date="2024-02-01", duration="7 days")
        assert not is_medication_active_on_date(medication, date(2024, 2, 8))

    def test_ongoing_is_active_indefinitely(self):
        medication = make_medication(start_date="2024-02-01", duration="Ongoing")
        assert is_medication_active_on_date(medication, date(2024, 2, 1))
        assert is_medication_active_on_date(medication, date(2030, 12, 31))

    def test_minus_one_is_ongoing(self):
        medication = make_medication(start_date="2024-02-01", duration="-1")
        assert is_medication_active_on_date(medication, date(2025, 2, 1))

    def test_zero_duration_is_never_active(self):
        medication = make_medication(start_date="2025-01-01", duration="0 days")
        assert not is_medication_active_on_date(medication, date(2025, 1, 1))
        assert not is_medication_active_on_date(medication, date(2025, 1, 2))

    def test_time_of_day_is_ignored(self):
        # Given: Start stored as an instant late in the day
        medication = make_medication(start_date="2024-02-01T23:30:00+00:00", duration="1 day")

        # Then: Any time on the start day counts, the next day does not
        assert is_medication_active_on_date(medication, datetime(2024, 2, 1, 0, 1, tzinfo=UTC), UTC)
        assert not is_medication_active_on_date(medication, datetime(2024, 2, 2, 0, 1, tzinfo=UTC), UTC)

    def test_start_instant_projected_into_timezone(self):
        # 2024-01-31T22:00Z is already February 1st at +03:00
        tz = timezone(timedelta(hours=3))
        medication = make_medication(start_date="2024-01-31T22:00:00.000Z", duration="1 day")

        assert is_medication_active_on_date(medication, date(2024, 2, 1), tz)
        assert not is_medication_active_on_date(medication, date(2024, 1, 31), tz)


class TestMedicationDue:
    """Test cases for is_medication_due with one dose at 09:00."""

    def test_not_due_before_scheduled_time_today(self):
        now = datetime(2024, 1, 10, 8, 59, tzinfo=UTC)
        assert is_medication_due(make_medication(), date(2024, 1, 10), now) is False

    def test_due_at_scheduled_time_today(self):
        now = datetime(2024, 1, 10, 9, 0, tzinfo=UTC)
        assert is_medication_due(make_medication(), date(2024, 1, 10), now) is True

    def test_due_after_scheduled_time_today(self):
        now = datetime(2024, 1, 10, 15, 0, tzinfo=UTC)
        assert is_medication_due(make_medication(), date(2024, 1, 10), now) is True

    def test_past_day_always_due(self):
        now = datetime(2024, 1, 10, 0, 1, tzinfo=UTC)
        assert is_medication_due(make_medication(), date(2024, 1, 9), now) is True

    def test_future_day_never_due(self):
        now = datetime(2024, 1, 10, 23, 59, tzinfo=UTC)
        assert is_medication_due(make_medication(), date(2024, 1, 11), now) is False

    def test_as_needed_due_today(self):
        now = datetime(2024, 1, 10, 0, 0, tzinfo=UTC)
        assert is_medication_due(make_medication(times=()), date(2024, 1, 10), now) is True

    def test_as_needed_not_due_in_future(self):
        now = datetime(2024, 1, 10, 0, 0, tzinfo=UTC)
        assert is_medication_due(make_medication(times=()), date(2024, 1, 11), now) is False

    def test_any_passed_time_makes_today_due(self):
        medication = make_medication(times=("21:00", "08:00"))
        now = datetime(2024, 1, 10, 8, 30, tzinfo=UTC)
        assert is_medication_due(medication, date(2024, 1, 10), now) is True

    def test_malformed_time_is_skipped(self):
        medication = make_medication(times=("bad", "09:00"))
        now = datetime(2024, 1, 10, 9, 30, tzinfo=UTC)
        assert is_medication_due(medication, date(2024, 1, 10), now) is True

    def test_datetime_argument_uses_calendar_day(self):
        # Time of day of the selected date does not matter, only "now" does
        now = datetime(2024, 1, 10, 8, 0, tzinfo=UTC)
        selected = datetime(2024, 1, 10, 23, 0, tzinfo=UTC)
        assert is_medication_due(make_medication(), selected, now) is False

    @freeze_time("2024-01-10 08:30:00")
    def test_defaults_to_system_clock_before_time(self):
        assert is_medication_due(make_medication(), date(2024, 1, 10)) is False

    @freeze_time("2024-01-10 09:30:00")
    def test_defaults_to_system_clock_after_time(self):
        assert is_medication_due(make_medication(), date(2024, 1, 10)) is True


class TestNextDoseInstant:
    """Test cases for next_dose_instant."""

    def test_later_today(self):
        medication = make_medication(times=("21:00", "09:00"))
        now = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)
        assert next_dose_instant(medication, now) == datetime(2024, 1, 10, 21, 0, tzinfo=UTC)

    def test_rolls_over_to_tomorrow(self):
        medication = make_medication(times=("09:00",))
        now = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)
        assert next_dose_instant(medication, now) == datetime(2024, 1, 11, 9, 0, tzinfo=UTC)

    def test_future_start(self):
        medication = make_medication(times=("09:00",), start_date="2024-01-15")
        now = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)
        assert next_dose_instant(medication, now) == datetime(2024, 1, 15, 9, 0, tzinfo=UTC)

    def test_course_ended(self):
        # Last active day is 2024-01-10 and its only dose already passed
        medication = make_medication(times=("09:00",), start_date="2024-01-04", duration="7 days")
        now = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)
        assert next_dose_instant(medication, now) is None

    def test_as_needed_has_no_next_dose(self):
        now = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)
        assert next_dose_instant(make_medication(times=()), now) is None
