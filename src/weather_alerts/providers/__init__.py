"""Weather data providers."""

from src.weather_alerts.providers.base import WeatherProvider
from src.weather_alerts.providers.openweather import OpenWeatherProvider, pm25_to_aqi

__all__ = [
    "WeatherProvider",
    "OpenWeatherProvider",
    "pm25_to_aqi",
]
