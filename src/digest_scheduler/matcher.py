"""Subscription matching.

Decides whether a scheduled subscription is due at a given local time. The
window is forward-only: a subscription for 08:00 with a five-minute window
is due from 08:00:00 up to but not including 08:05:00. Weekly subscriptions
are due only on a local Monday.
"""

import logging
import re
from datetime import datetime, time, timedelta
from typing import Optional

from src.weather_alerts.config import SubscriptionKind
from src.weather_alerts.models import Subscription

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})$")

MONDAY = 0


def parse_time_of_day(value: str) -> Optional[time]:
    """Parse ``HH:MM`` into a time, or None if malformed or out of range."""
    match = _TIME_OF_DAY.match(value.strip()) if value else None
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


class SubscriptionMatcher:
    """Matches subscriptions against owner-local wall-clock time."""

    def __init__(self, window_minutes: int = 5) -> None:
        self.window = timedelta(minutes=window_minutes)

    def occurrence(self, subscription: Subscription, local_now: datetime) -> Optional[datetime]:
        """Return the target instant the subscription is due for, if any.

        Daily: the most recent target at or before ``local_now``, which is
        yesterday's when ``local_now`` is earlier than today's. Weekly: only
        today's target, and only when the local day is Monday.
        """
        if not subscription.active or not subscription.kind.is_scheduled:
            return None

        target_time = parse_time_of_day(subscription.time_of_day)
        if target_time is None:
            logger.warning(
                "Invalid time_of_day %r on subscription %s",
                subscription.time_of_day, subscription.subscription_id,
            )
            return None

        weekly = subscription.kind == SubscriptionKind.WEEKLY
        if weekly and local_now.weekday() != MONDAY:
            return None

        target = datetime.combine(local_now.date(), target_time, tzinfo=local_now.tzinfo)
        if local_now < target:
            if weekly:
                return None
            target = datetime.combine(
                local_now.date() - timedelta(days=1), target_time, tzinfo=local_now.tzinfo,
            )

        delta = local_now - target
        if not (timedelta(0) <= delta < self.window):
            return None
        return target

    def matches(self, subscription: Subscription, local_now: datetime) -> bool:
        return self.occurrence(subscription, local_now) is not None
