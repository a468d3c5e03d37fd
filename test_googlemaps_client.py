"""Tests for address geocoding with the Google Maps client stubbed out."""

import pytest

from geo import GeoLocation
from googlemaps_client import GeocodingError, GoogleMapsClient


@pytest.fixture
def maps():
    return GoogleMapsClient("AIza-test-key")


def test_requires_api_key():
    with pytest.raises(ValueError):
        GoogleMapsClient("")


def test_geocode_returns_first_match(maps, monkeypatch):
    calls = []

    def fake_geocode(address, **kwargs):
        calls.append((address, kwargs))
        return [
            {"geometry": {"location": {"lat": 23.7925, "lng": 90.4152}}},
            {"geometry": {"location": {"lat": 0.0, "lng": 0.0}}},
        ]

    monkeypatch.setattr(maps.client, "geocode", fake_geocode)

    location = maps.geocode_address("Gulshan 2, Dhaka", region="bd")

    assert location == GeoLocation(latitude=23.7925, longitude=90.4152)
    assert calls == [("Gulshan 2, Dhaka", {"region": "bd"})]


def test_no_match_raises(maps, monkeypatch):
    monkeypatch.setattr(maps.client, "geocode", lambda address, **kwargs: [])

    with pytest.raises(GeocodingError):
        maps.geocode_address("nowhere at all")
