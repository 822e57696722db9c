from pyyard.mapbox.mapbox_api import MapboxAPI

__all__ = ["MapboxAPI"]
