"""Tests for location resolution."""

import httpx
import pytest

from weatherchat.app.adapters.geocoding import CITY_COORDINATES, lookup_known_city, resolve_location
from weatherchat.app.errors import LocationNotFoundError


def test_known_cities_table_covers_common_cities() -> None:
    for name in ("mumbai", "varanasi", "tokyo", "london", "new york", "madrid"):
        assert name in CITY_COORDINATES
    assert len(CITY_COORDINATES) == 16


@pytest.mark.parametrize("name", ["Tokyo", "  tokyo ", "TOKYO"])
def test_lookup_known_city_is_case_insensitive(name: str) -> None:
    location = lookup_known_city(name)
    assert location is not None
    assert location.label == "Tokyo, Japan"


def test_lookup_unknown_city_returns_none() -> None:
    assert lookup_known_city("Kyoto") is None


@pytest.mark.asyncio
async def test_known_city_skips_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("geocoding API must not be called")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        location = await resolve_location("New York", client)

    assert location.country == "USA"


@pytest.mark.asyncio
async def test_malformed_geocoding_result_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": [{"name": "Nowhere"}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(LocationNotFoundError):
            await resolve_location("Nowhere", client)


@pytest.mark.asyncio
async def test_geocoding_http_error_raises_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(LocationNotFoundError):
            await resolve_location("Kyoto", client)
