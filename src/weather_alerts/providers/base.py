"""Weather provider interface."""

from abc import ABC, abstractmethod

from src.weather_alerts.models import MetricSample


class WeatherProvider(ABC):
    """Source of current metric samples."""

    @abstractmethod
    def current_metrics(self, latitude: float, longitude: float) -> MetricSample:
        """Fetch current conditions at a coordinate.

        Raises:
            WeatherProviderError: If the sample could not be fetched.
        """
