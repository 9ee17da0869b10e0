"""Location name to coordinates: built-in table first, Open-Meteo geocoding second."""

import logging

import httpx

from weatherchat.app.errors import LocationNotFoundError
from weatherchat.app.models.context import LocationData

logger = logging.getLogger(__name__)

# Common cities resolved without a network call.
# key: lowercase name -> (display name, country, lat, lon)
CITY_COORDINATES: dict[str, tuple[str, str, float, float]] = {
    # India
    "mumbai": ("Mumbai", "India", 19.0760, 72.8777),
    "delhi": ("Delhi", "India", 28.7041, 77.1025),
    "bangalore": ("Bangalore", "India", 12.9716, 77.5946),
    "varanasi": ("Varanasi", "India", 25.3176, 82.9739),
    "kolkata": ("Kolkata", "India", 22.5726, 88.3639),
    "chennai": ("Chennai", "India", 13.0827, 80.2707),
    "hyderabad": ("Hyderabad", "India", 17.3850, 78.4867),
    "pune": ("Pune", "India", 18.5204, 73.8567),
    # International
    "tokyo": ("Tokyo", "Japan", 35.6762, 139.6503),
    "london": ("London", "UK", 51.5074, -0.1278),
    "paris": ("Paris", "France", 48.8566, 2.3522),
    "new york": ("New York", "USA", 40.7128, -74.0060),
    "sydney": ("Sydney", "Australia", -33.8688, 151.2093),
    "berlin": ("Berlin", "Germany", 52.5200, 13.4050),
    "rome": ("Rome", "Italy", 41.9028, 12.4964),
    "madrid": ("Madrid", "Spain", 40.4168, -3.7038),
}


def lookup_known_city(name: str) -> LocationData | None:
    """Resolve a name against the built-in table (case-insensitive)."""
    entry = CITY_COORDINATES.get(name.strip().lower())
    if entry is None:
        return None
    city, country, lat, lon = entry
    return LocationData(city=city, country=country, latitude=lat, longitude=lon)


async def resolve_location(
    name: str,
    client: httpx.AsyncClient,
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search",
) -> LocationData:
    """Resolve a location name to coordinates.

    Args:
        name: City name as requested (e.g. "Tokyo", "Kyoto, Japan")
        client: Shared httpx client
        geocoding_url: Open-Meteo geocoding search endpoint

    Returns:
        LocationData with city/country as given by the resolving source

    Raises:
        LocationNotFoundError: Unknown place, or the geocoding call failed
    """
    known = lookup_known_city(name)
    if known is not None:
        return known

    # Docs: https://open-meteo.com/en/docs/geocoding-api
    params: dict[str, str | int] = {"name": name, "count": 1, "language": "en", "format": "json"}
    try:
        response = await client.get(geocoding_url, params=params)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise LocationNotFoundError(
            f'Could not find coordinates for "{name}": {e}', location=name
        ) from e

    results = data.get("results") if isinstance(data, dict) else None
    if not results:
        raise LocationNotFoundError(f'Location "{name}" not found', location=name)

    top = results[0]
    try:
        return LocationData(
            city=top["name"],
            country=top.get("country") or top.get("country_code") or "",
            latitude=float(top["latitude"]),
            longitude=float(top["longitude"]),
            timezone=top.get("timezone"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise LocationNotFoundError(
            f'Geocoding result for "{name}" is malformed: {e}', location=name
        ) from e
