"""OpenWeatherMap provider.

Combines the current-weather and air-pollution endpoints into one
MetricSample. Units are normalized to °C, km/h, km, and hPa; air quality is
reported on the US EPA AQI scale computed from PM2.5.
"""

import logging
from typing import Any, Optional

import httpx

from src.weather_alerts.config import OpenWeatherConfig
from src.weather_alerts.exceptions import WeatherProviderError
from src.weather_alerts.models import MetricSample, _utc_now
from src.weather_alerts.providers.base import WeatherProvider

logger = logging.getLogger(__name__)

# (conc_low, conc_high, aqi_low, aqi_high) for 24h PM2.5 in µg/m³
PM25_AQI_BREAKPOINTS: tuple[tuple[float, float, int, int], ...] = (
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 51, 100),
    (35.5, 55.4, 101, 150),
    (55.5, 150.4, 151, 200),
    (150.5, 250.4, 201, 300),
    (250.5, 350.4, 301, 400),
    (350.5, 500.4, 401, 500),
)

MS_TO_KMH = 3.6


def pm25_to_aqi(concentration: float) -> float:
    """Convert a PM2.5 concentration to a US EPA AQI value."""
    # EPA truncates to one decimal before lookup
    conc = int(max(concentration, 0.0) * 10) / 10
    for conc_low, conc_high, aqi_low, aqi_high in PM25_AQI_BREAKPOINTS:
        if conc <= conc_high:
            return float(round(
                (aqi_high - aqi_low) / (conc_high - conc_low) * (conc - conc_low) + aqi_low
            ))
    return 500.0


class OpenWeatherProvider(WeatherProvider):
    """Weather provider backed by the OpenWeatherMap REST API."""

    def __init__(
        self,
        config: Optional[OpenWeatherConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config or OpenWeatherConfig()
        self._client = client or httpx.Client(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
        )

    def _get(self, path: str, params: dict[str, Any]) -> dict:
        params = {**params, "appid": self.config.api_key}
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise WeatherProviderError(
                f"API request failed with status: {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise WeatherProviderError(f"Request to {path} failed: {exc}") from exc

    def _air_quality(self, latitude: float, longitude: float) -> Optional[float]:
        data = self._get(
            "/data/2.5/air_pollution",
            {"lat": f"{latitude:.6f}", "lon": f"{longitude:.6f}"},
        )
        entries = data.get("list") or []
        if not entries:
            return None
        pm25 = entries[0].get("components", {}).get("pm2_5")
        if pm25 is None:
            return None
        return pm25_to_aqi(float(pm25))

    def current_metrics(self, latitude: float, longitude: float) -> MetricSample:
        data = self._get(
            "/data/2.5/weather",
            {"lat": f"{latitude:.6f}", "lon": f"{longitude:.6f}", "units": "metric"},
        )
        main = data.get("main", {})
        wind = data.get("wind", {})
        weather = data.get("weather") or [{}]

        try:
            aqi = self._air_quality(latitude, longitude)
        except WeatherProviderError as exc:
            logger.warning("Air quality unavailable for %.4f, %.4f: %s", latitude, longitude, exc)
            aqi = None

        visibility = data.get("visibility")
        wind_speed = wind.get("speed")
        return MetricSample(
            temperature=main.get("temp"),
            humidity=main.get("humidity"),
            pressure=main.get("pressure"),
            wind_speed=wind_speed * MS_TO_KMH if wind_speed is not None else None,
            wind_direction=wind.get("deg"),
            visibility=visibility / 1000 if visibility is not None else None,
            uv_index=data.get("uvi"),
            aqi=aqi,
            description=weather[0].get("description", ""),
            location_name=data.get("name", ""),
            observed_at=_utc_now(),
        )

    def close(self) -> None:
        self._client.close()
