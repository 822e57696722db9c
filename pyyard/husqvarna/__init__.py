from pyyard.husqvarna.husqvarna_api import HusqvarnaAPI
from pyyard.husqvarna.husqvarna_internal import HusqvarnaInternal

__all__ = ["HusqvarnaAPI", "HusqvarnaInternal"]
