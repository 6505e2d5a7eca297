"""Pytest configuration and shared fixtures."""

import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.weather_alerts.channels.base import DeliveryChannel  # noqa: E402
from src.weather_alerts.config import SubscriptionKind  # noqa: E402
from src.weather_alerts.exceptions import DeliveryError, WeatherProviderError  # noqa: E402
from src.weather_alerts.models import MetricSample  # noqa: E402
from src.weather_alerts.providers.base import WeatherProvider  # noqa: E402


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeWeather(WeatherProvider):
    """Returns a fixed sample; can be told to fail or block per coordinate."""

    def __init__(self, sample: MetricSample = None):
        self.sample = sample or MetricSample(temperature=20.0, humidity=50, aqi=40)
        self.failing: set[tuple[float, float]] = set()
        self.blocking: set[tuple[float, float]] = set()
        self.release = threading.Event()
        self.calls: list[tuple[float, float]] = []
        self.on_fetch = None
        self._lock = threading.Lock()

    def current_metrics(self, latitude, longitude):
        if self.on_fetch is not None:
            self.on_fetch()
        with self._lock:
            self.calls.append((latitude, longitude))
        if (latitude, longitude) in self.blocking:
            self.release.wait(5)
        if (latitude, longitude) in self.failing:
            raise WeatherProviderError("API request failed with status: 500")
        return self.sample


class RecordingChannel(DeliveryChannel):
    """Records sends; fails for users listed in ``fail_for``."""

    def __init__(self, name: str = "recording"):
        self.name = name
        self.alerts = []
        self.digests = []
        self.fail_for: set[str] = set()
        self._lock = threading.Lock()

    def send_alert(self, alert, user):
        if user.user_id in self.fail_for:
            raise DeliveryError(self.name, "forbidden: bot was blocked by the user", status_code=403)
        with self._lock:
            self.alerts.append((user.user_id, alert))

    def send_digest(self, sample, user, kind=SubscriptionKind.DAILY):
        if user.user_id in self.fail_for:
            raise DeliveryError(self.name, "forbidden: bot was blocked by the user", status_code=403)
        with self._lock:
            self.digests.append((user.user_id, kind))


@pytest.fixture
def clock():
    # Monday 2024-01-15 08:00 UTC
    return FakeClock(datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def weather():
    return FakeWeather()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def make_channel():
    return RecordingChannel
