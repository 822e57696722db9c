import logging

from pyyard.pyyard_base import PyYardBase, DEFAULT_TIMEOUT

GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"

log = logging.getLogger(__name__)


class MapboxAPI(PyYardBase):
    """Reverse geocoding of a coordinate pair to candidate places."""

    def __init__(self, api_key: str, timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__(timeout, poolmaxsize)
        self.api_key = api_key

    def authenticate(self) -> dict:
        return {}

    def get_address(self, latitude: float, longitude: float) -> list:
        # Mapbox expects longitude first
        url = f"{GEOCODE_URL}/{longitude},{latitude}.json"
        payload = self.get(url, params={"access_token": self.api_key}) or {}
        return payload.get("features") or []
