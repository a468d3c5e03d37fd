"""
Google Maps geocoding for user locations

The browser UI lets a user type an address instead of raw coordinates;
this client turns it into a GeoLocation for distance ranking.
"""

import logging
from typing import Optional

import googlemaps
from googlemaps.exceptions import ApiError

from geo import GeoLocation

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised when an address cannot be resolved to coordinates"""
    pass


class GoogleMapsClient:
    """Google Maps API client for address geocoding"""

    def __init__(self, api_key: str):
        """
        Initialize Google Maps client.

        Args:
            api_key: Google Maps API key

        Raises:
            ValueError: If API key is missing
        """
        if not api_key:
            raise ValueError("Google Maps API key is required")

        self.client = googlemaps.Client(key=api_key)
        logger.info("Google Maps client initialized")

    def geocode_address(self, address: str, region: Optional[str] = None) -> GeoLocation:
        """
        Geocode an address.

        Args:
            address: Street address, city or postcode
            region: Optional ccTLD region bias (e.g. "bd")

        Returns:
            GeoLocation of the best match

        Raises:
            GeocodingError: If nothing matches
            ApiError: If the API call fails
        """
        try:
            results = self.client.geocode(address, region=region) if region else self.client.geocode(address)
        except ApiError as e:
            logger.error(f"Google Maps API error: {e}")
            raise

        if not results:
            raise GeocodingError(f"Could not geocode address: {address}")

        location = results[0]["geometry"]["location"]
        geo_loc = GeoLocation(latitude=location["lat"], longitude=location["lng"])

        logger.info(f"Geocoded: {address} -> ({geo_loc.latitude:.4f}, {geo_loc.longitude:.4f})")
        return geo_loc
