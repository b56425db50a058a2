"""Tests for dt_utils and math_utils."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from fairshare.utils import dt_utils, math_utils


# =============================================================================
# dt_utils
# =============================================================================


class TestWeeks:
    """ISO week helpers."""

    def test_week_bounds(self) -> None:
        """Monday to Sunday around a Wednesday, and on the edges."""
        assert dt_utils.week_bounds(date(2026, 1, 21)) == (
            date(2026, 1, 19),
            date(2026, 1, 25),
        )
        assert dt_utils.week_bounds(date(2026, 1, 19))[0] == date(2026, 1, 19)
        assert dt_utils.week_bounds(date(2026, 1, 25))[0] == date(2026, 1, 19)

    def test_week_key_iso_year(self) -> None:
        """Early January can belong to the previous ISO year."""
        assert dt_utils.week_key(date(2026, 1, 21)) == "2026-W04"
        assert dt_utils.week_key(date(2021, 1, 2)) == "2020-W53"

    def test_previous_period(self) -> None:
        """A week maps to the week before it."""
        assert dt_utils.previous_period(date(2026, 1, 19), date(2026, 1, 25)) == (
            date(2026, 1, 12),
            date(2026, 1, 18),
        )


class TestLocalDates:
    """Local calendar days depend on the household timezone."""

    def test_dt_to_date_uses_default_timezone(self) -> None:
        """03:00 UTC is still the previous evening in New York."""
        instant = datetime(2026, 1, 21, 3, 0, tzinfo=timezone.utc)

        assert dt_utils.dt_to_date(instant) == date(2026, 1, 21)
        dt_utils.set_default_timezone(ZoneInfo("America/New_York"))
        assert dt_utils.dt_to_date(instant) == date(2026, 1, 20)

    def test_days_between_never_negative(self) -> None:
        """Later-than-reference instants count as zero days."""
        assert dt_utils.days_between(date(2026, 1, 1), date(2026, 1, 21)) == 20
        assert dt_utils.days_between(date(2026, 1, 22), date(2026, 1, 21)) == 0

    @freeze_time("2026-01-21 02:00:00", tz_offset=0)
    def test_today_local(self) -> None:
        """Today follows the default timezone."""
        assert dt_utils.dt_today_local() == date(2026, 1, 21)
        dt_utils.set_default_timezone(ZoneInfo("America/New_York"))
        assert dt_utils.dt_today_local() == date(2026, 1, 20)


class TestParsing:
    """String, date and datetime inputs."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2025-04-07", date(2025, 4, 7)),
            ("2025-04-07T10:00:00+00:00", date(2025, 4, 7)),
            ("04/07/2025", date(2025, 4, 7)),
            ("garbage", None),
            (None, None),
        ],
    )
    def test_dt_parse_date(self, raw, expected) -> None:
        """Several formats are accepted."""
        assert dt_utils.dt_parse_date(raw) == expected

    def test_dt_parse_naive_uses_default_timezone(self) -> None:
        """Naive inputs are localized to the default timezone."""
        parsed = dt_utils.dt_parse("2026-01-21T08:00:00")

        assert parsed == datetime(2026, 1, 21, 8, 0, tzinfo=timezone.utc)

    def test_dt_parse_date_object(self) -> None:
        """A date becomes local midnight."""
        assert dt_utils.dt_parse(date(2026, 1, 21)) == datetime(
            2026, 1, 21, tzinfo=timezone.utc
        )


# =============================================================================
# math_utils
# =============================================================================


class TestMath:
    """Point arithmetic."""

    def test_round_points(self) -> None:
        """Float drift is removed."""
        assert math_utils.round_points(27.499999999999996) == 27.5

    def test_calculate_percentage(self) -> None:
        """Zero total never divides."""
        assert math_utils.calculate_percentage(40, 50) == 80
        assert math_utils.calculate_percentage(5, 0) == 0

    def test_safe_ratio(self) -> None:
        """The denominator is floored at 1."""
        assert math_utils.safe_ratio(40, 10) == 4.0
        assert math_utils.safe_ratio(12, 0) == 12.0
        assert math_utils.safe_ratio(10, 3) == 3.33

    def test_clamp_and_multiplier(self) -> None:
        """Bounds and multipliers."""
        assert math_utils.clamp(7, 1, 5) == 5
        assert math_utils.clamp(-1, 1, 5) == 1
        assert math_utils.apply_multiplier(2, 1.5) == 3.0
