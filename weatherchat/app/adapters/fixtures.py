"""Fixture-based weather service for evals and tests (no network)."""

import json
from pathlib import Path
from typing import Any

from weatherchat.app.adapters.geocoding import lookup_known_city
from weatherchat.app.adapters.weather import describe_weather_code, round_temperature
from weatherchat.app.context.store import Clock
from weatherchat.app.errors import LocationNotFoundError
from weatherchat.app.models.context import utcnow
from weatherchat.app.models.weather import WeatherLookup, WeatherObservation, WeatherToolParams
from weatherchat.app.orchestration.dates import classify_date

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def load_weather_fixtures(path: Path = FIXTURES_DIR / "weather.json") -> dict[str, dict[str, Any]]:
    """Load per-city canned weather values keyed by lowercase city name."""
    with open(path) as f:
        data: dict[str, dict[str, Any]] = json.load(f)
    return data


class FixtureWeatherService:
    """Deterministic weather lookups for cities present in the fixtures."""

    def __init__(
        self,
        fixtures: dict[str, dict[str, Any]] | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._fixtures = fixtures if fixtures is not None else load_weather_fixtures()
        self._clock = clock
        self.calls: list[WeatherToolParams] = []

    async def lookup(self, params: WeatherToolParams) -> WeatherLookup:
        """Look up canned weather.

        Raises:
            LocationNotFoundError: City is not in the table or has no fixture
        """
        self.calls.append(params)

        location = lookup_known_city(params.location)
        values = self._fixtures.get(params.location.strip().lower())
        if location is None or values is None:
            raise LocationNotFoundError(
                f'Location "{params.location}" not found', location=params.location
            )

        classification = classify_date(params.date, self._clock().date())
        timestamp = (
            classification.target_date.isoformat()
            if classification.target_date
            else self._clock().strftime("%Y-%m-%dT%H:%M")
        )
        observation = WeatherObservation(
            city=location.city,
            country=location.country,
            temperature=round_temperature(values["temperature"]),
            description=describe_weather_code(values.get("weather_code")),
            humidity=values.get("humidity"),
            wind_speed=values.get("wind_speed"),
            precipitation=values.get("precipitation"),
            uv_index=values.get("uv_index"),
            timestamp=timestamp,
            date_type=classification.date_type,
            target_date=classification.target_date,
        )
        return WeatherLookup(
            location=location,
            observation=observation,
            classification=classification,
            requested_date=params.date,
        )
