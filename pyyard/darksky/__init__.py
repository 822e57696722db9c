from pyyard.darksky.darksky_api import DarkSkyAPI

__all__ = ["DarkSkyAPI"]
