"""Tests for subscription time matching."""

from datetime import datetime, timedelta, timezone

import pytest

from src.digest_scheduler.matcher import SubscriptionMatcher, parse_time_of_day
from src.weather_alerts.clock import resolve_timezone
from src.weather_alerts.config import SubscriptionKind
from src.weather_alerts.models import Subscription

# 2024-01-15 is a Monday
MONDAY = datetime(2024, 1, 15, tzinfo=timezone.utc)


def _at(day: datetime, hour: int, minute: int, second: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute, second=second)


def _daily(time_of_day="08:00", **kwargs):
    return Subscription(user_id="1", kind=SubscriptionKind.DAILY, time_of_day=time_of_day, **kwargs)


class TestParseTimeOfDay:

    def test_valid(self):
        assert parse_time_of_day("08:00").hour == 8
        assert parse_time_of_day("8:05").minute == 5
        assert parse_time_of_day("23:59") is not None

    @pytest.mark.parametrize("value", ["24:00", "12:60", "8", "08:0", "08-00", "", "ab:cd", "08:00:00"])
    def test_invalid(self, value):
        assert parse_time_of_day(value) is None


class TestDailyWindow:
    """Forward-only window of five minutes."""

    @pytest.mark.parametrize("hour,minute,second,expected", [
        (7, 59, 59, False),
        (8, 0, 0, True),
        (8, 2, 30, True),
        (8, 4, 59, True),
        (8, 5, 0, False),
        (9, 0, 0, False),
    ])
    def test_boundaries(self, hour, minute, second, expected):
        matcher = SubscriptionMatcher(window_minutes=5)
        assert matcher.matches(_daily(), _at(MONDAY, hour, minute, second)) is expected

    def test_occurrence_is_target(self):
        matcher = SubscriptionMatcher()
        target = matcher.occurrence(_daily(), _at(MONDAY, 8, 3))
        assert target == _at(MONDAY, 8, 0)

    def test_wraps_midnight(self):
        matcher = SubscriptionMatcher()
        sub = _daily("23:58")
        tuesday = MONDAY + timedelta(days=1)
        target = matcher.occurrence(sub, _at(tuesday, 0, 1))
        assert target == _at(MONDAY, 23, 58)
        assert matcher.matches(sub, _at(tuesday, 0, 3)) is False

    def test_wider_window(self):
        matcher = SubscriptionMatcher(window_minutes=15)
        assert matcher.matches(_daily(), _at(MONDAY, 8, 14)) is True
        assert matcher.matches(_daily(), _at(MONDAY, 8, 15)) is False

    def test_local_time_in_zone(self):
        matcher = SubscriptionMatcher()
        tokyo = resolve_timezone("Asia/Tokyo")
        local_now = datetime(2024, 1, 15, 8, 1, tzinfo=tokyo)
        assert matcher.matches(_daily(), local_now) is True

    def test_inactive_never_matches(self):
        assert SubscriptionMatcher().matches(_daily(active=False), _at(MONDAY, 8, 0)) is False

    def test_malformed_time_never_matches(self, caplog):
        with caplog.at_level("WARNING"):
            assert SubscriptionMatcher().matches(_daily("25:00"), _at(MONDAY, 8, 0)) is False
        assert "Invalid time_of_day" in caplog.text


class TestWeekly:

    def _weekly(self):
        return Subscription(user_id="1", kind=SubscriptionKind.WEEKLY, time_of_day="09:00")

    def test_monday_matches(self):
        assert SubscriptionMatcher().matches(self._weekly(), _at(MONDAY, 9, 2)) is True

    @pytest.mark.parametrize("offset", [1, 2, 3, 4, 5, 6])
    def test_other_days_do_not_match(self, offset):
        day = MONDAY + timedelta(days=offset)
        assert SubscriptionMatcher().matches(self._weekly(), _at(day, 9, 2)) is False

    def test_monday_outside_window(self):
        assert SubscriptionMatcher().matches(self._weekly(), _at(MONDAY, 9, 5)) is False

    def test_no_midnight_wrap(self):
        matcher = SubscriptionMatcher()
        sub = Subscription(user_id="1", kind=SubscriptionKind.WEEKLY, time_of_day="23:58")
        tuesday = MONDAY + timedelta(days=1)
        assert matcher.occurrence(sub, _at(tuesday, 0, 1)) is None
        assert matcher.occurrence(sub, _at(MONDAY, 0, 1)) is None
        assert matcher.occurrence(sub, _at(MONDAY, 23, 59)) == _at(MONDAY, 23, 58)

    def test_daily_still_wraps_on_tuesday(self):
        matcher = SubscriptionMatcher()
        tuesday = MONDAY + timedelta(days=1)
        assert matcher.matches(_daily("23:58"), _at(tuesday, 0, 1)) is True


class TestUnscheduledKinds:

    @pytest.mark.parametrize("kind", [SubscriptionKind.ALERTS_ONLY, SubscriptionKind.EXTREME_ONLY])
    def test_never_match(self, kind):
        matcher = SubscriptionMatcher()
        sub = Subscription(user_id="1", kind=kind, time_of_day="08:00")
        for minute in range(0, 60):
            assert matcher.matches(sub, _at(MONDAY, 8, minute)) is False
