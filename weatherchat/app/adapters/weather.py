"""Weather adapter using Open-Meteo API (keyless, free tier).

Current-day lookups use the live `current=` query; other days use a
single-day `daily=` range against the forecast or archive endpoint.
"""

import logging
import math
from typing import Any, Protocol

import httpx

from weatherchat.app.adapters.geocoding import resolve_location
from weatherchat.app.context.store import Clock
from weatherchat.app.errors import WeatherDataUnavailableError
from weatherchat.app.models.common import DateType
from weatherchat.app.models.context import LocationData, utcnow
from weatherchat.app.models.weather import (
    DateClassification,
    WeatherLookup,
    WeatherObservation,
    WeatherToolParams,
)
from weatherchat.app.orchestration.dates import classify_date

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,precipitation,wind_speed_10m,uv_index,weather_code"
DAILY_FIELDS = (
    "temperature_2m_max,temperature_2m_min,relative_humidity_2m_max,"
    "precipitation_sum,wind_speed_10m_max,uv_index_max,weather_code"
)

# WMO weather interpretation codes
WEATHER_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
}


def describe_weather_code(code: Any) -> str:
    """Label for a WMO weather code ("Unknown" when unmapped)."""
    try:
        return WEATHER_DESCRIPTIONS.get(int(code), "Unknown")
    except (TypeError, ValueError):
        return "Unknown"


def round_temperature(value: float) -> int:
    """Round half up (12.5 -> 13, -0.5 -> 0)."""
    return math.floor(value + 0.5)


class WeatherService(Protocol):
    """Executes one get_weather tool call."""

    async def lookup(self, params: WeatherToolParams) -> WeatherLookup:
        """Resolve the location and fetch the observation for the requested date."""
        ...


class OpenMeteoWeatherService:
    """Weather lookups backed by Open-Meteo forecast, archive and geocoding APIs."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        forecast_url: str = "https://api.open-meteo.com/v1/forecast",
        archive_url: str = "https://archive-api.open-meteo.com/v1/archive",
        geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search",
        timeout_seconds: float = 4.0,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize service.

        Args:
            client: Optional httpx client (for testing with mocks)
            forecast_url: Forecast endpoint (current and future days)
            archive_url: Historical archive endpoint
            geocoding_url: Geocoding search endpoint
            timeout_seconds: Timeout for an owned client
            clock: Source of "today" for date classification
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._forecast_url = forecast_url
        self._archive_url = archive_url
        self._geocoding_url = geocoding_url
        self._clock = clock

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def lookup(self, params: WeatherToolParams) -> WeatherLookup:
        """Execute one weather lookup.

        Raises:
            LocationNotFoundError: Location could not be resolved
            WeatherDataUnavailableError: Weather provider failed or returned no data
        """
        location = await resolve_location(params.location, self._client, self._geocoding_url)
        classification = classify_date(params.date, self._clock().date())
        logger.info(
            f"Weather lookup: {location.label} "
            f"({classification.date_type.value}, {classification.target_date})"
        )

        if classification.date_type == DateType.current or classification.target_date is None:
            observation = await self._fetch_current(location)
        else:
            observation = await self._fetch_day(location, classification)

        return WeatherLookup(
            location=location,
            observation=observation,
            classification=classification,
            requested_date=params.date,
        )

    async def _get_json(self, url: str, params: dict[str, str | float]) -> dict[str, Any]:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise WeatherDataUnavailableError(
                f"Weather API error: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise WeatherDataUnavailableError(f"Weather API request failed: {e}") from e

        if not isinstance(data, dict):
            raise WeatherDataUnavailableError("Weather API returned an unexpected payload")
        return data

    async def _fetch_current(self, location: LocationData) -> WeatherObservation:
        # Docs: https://open-meteo.com/en/docs
        params: dict[str, str | float] = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": CURRENT_FIELDS,
            "timezone": "auto",
        }
        data = await self._get_json(self._forecast_url, params)

        current = data.get("current")
        if not isinstance(current, dict) or current.get("temperature_2m") is None:
            raise WeatherDataUnavailableError(
                f"No current weather available for {location.label}", location=location.city
            )

        return WeatherObservation(
            city=location.city,
            country=location.country,
            temperature=round_temperature(current["temperature_2m"]),
            description=describe_weather_code(current.get("weather_code")),
            humidity=current.get("relative_humidity_2m"),
            wind_speed=current.get("wind_speed_10m"),
            precipitation=current.get("precipitation"),
            uv_index=current.get("uv_index"),
            timestamp=str(current.get("time", "")),
            date_type=DateType.current,
        )

    async def _fetch_day(
        self, location: LocationData, classification: DateClassification
    ) -> WeatherObservation:
        target = classification.target_date
        assert target is not None
        url = self._archive_url if classification.date_type == DateType.historical else self._forecast_url
        params: dict[str, str | float] = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "start_date": target.isoformat(),
            "end_date": target.isoformat(),
            "daily": DAILY_FIELDS,
            "timezone": "auto",
        }
        data = await self._get_json(url, params)

        # Response structure: {daily: {time: [...], temperature_2m_max: [...], ...}}
        daily = data.get("daily")
        if not isinstance(daily, dict) or not daily.get("time"):
            raise WeatherDataUnavailableError(
                "No weather data available for the requested date", location=location.city
            )

        def first(field: str) -> Any:
            values = daily.get(field) or []
            return values[0] if values else None

        temp_max = first("temperature_2m_max")
        temp_min = first("temperature_2m_min")
        if temp_max is None or temp_min is None:
            raise WeatherDataUnavailableError(
                f"No temperature data for {location.label} on {target.isoformat()}",
                location=location.city,
            )

        return WeatherObservation(
            city=location.city,
            country=location.country,
            temperature=round_temperature((temp_max + temp_min) / 2),
            description=describe_weather_code(first("weather_code")),
            humidity=first("relative_humidity_2m_max"),
            wind_speed=first("wind_speed_10m_max"),
            precipitation=first("precipitation_sum"),
            uv_index=first("uv_index_max"),
            timestamp=str(daily["time"][0]),
            date_type=classification.date_type,
            target_date=target,
        )
