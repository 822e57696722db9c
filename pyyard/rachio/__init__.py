from pyyard.rachio.rachio_api import RachioAPI

__all__ = ["RachioAPI"]
