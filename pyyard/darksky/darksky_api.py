import logging

from pyyard.pyyard_base import PyYardBase, DEFAULT_TIMEOUT

WEATHER_URL = "https://api.darksky.net/forecast"
EXCLUDE = "minutely,hourly,alerts,flags"

log = logging.getLogger(__name__)


class DarkSkyAPI(PyYardBase):
    """Current and daily forecast conditions for a coordinate pair."""

    def __init__(self, api_key: str, timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__(timeout, poolmaxsize)
        self.api_key = api_key

    def authenticate(self) -> dict:
        # The key travels in the URL, there is no token exchange
        return {}

    def get_forecast(self, latitude: float, longitude: float) -> dict:
        url = f"{WEATHER_URL}/{self.api_key}/{latitude},{longitude}"
        return self.get(url, params={"exclude": EXCLUDE}) or {}
