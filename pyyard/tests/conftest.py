"""Pytest configuration and fixtures."""
import copy

import pytest
from sqlalchemy.pool import StaticPool

from pyyard.store import Store

EXTERNAL_MOWER = {
    "type": "mower",
    "id": "c8f5a1d2-0000-4000-8000-000000000001",
    "attributes": {
        "system": {"name": "Front Yard", "model": "AUTOMOWER 430X", "serialNumber": 190412345},
        "battery": {"batteryPercent": 87},
        "mower": {"mode": "MAIN_AREA", "activity": "PARKED_IN_CS", "state": "RESTRICTED",
                  "errorCode": 0, "errorCodeTimestamp": 0},
        "calendar": {"tasks": [
            {"start": 420, "duration": 600, "monday": True, "tuesday": False, "wednesday": True,
             "thursday": False, "friday": True, "saturday": False, "sunday": False},
            {"start": 900, "duration": 120, "monday": False, "tuesday": True, "wednesday": False,
             "thursday": True, "friday": False, "saturday": True, "sunday": True},
        ]},
        "planner": {"nextStartTimestamp": 1589446800000, "override": {"action": "NOT_ACTIVE"},
                    "restrictedReason": "WEEK_SCHEDULE"},
        "metadata": {"connected": True, "statusTimestamp": 1589390125224},
    },
}

INTERNAL_MOWER = {
    "id": "190412345-190400001",
    "model": "G",
    "status": {"mowerStatus": "PARKED_TIMER", "operatingMode": "AUTO"},
}

STATUS = {
    "lastLocations": [
        {"latitude": 40.0150, "longitude": -75.1800, "gpsStatus": "USING_GPS_AREA"},
        {"latitude": 40.0151, "longitude": -75.1801, "gpsStatus": "USING_GPS_AREA"},
        {"latitude": 40.0152, "longitude": -75.1802, "gpsStatus": "USING_GPS_AREA"},
    ],
}

GEOFENCE = {
    "centralPoint": {
        "location": {"latitude": 40.0149, "longitude": -75.1799},
        "sensitivity": {"level": "MEDIUM", "radius": 250},
    },
}

SETTINGS = {
    "settings": [
        {"id": "cuttingHeight", "value": 5},
        {"id": "ecoMode", "value": False},
        {"id": "headlight", "value": "evening"},
        {"id": "timerOverride", "value": 1.5},
        {"id": "language", "value": "en"},
    ],
}

WEATHER = {
    "currently": {
        "time": 1589391000, "summary": "Clear", "nearestStormDistance": 12, "nearestStormBearing": 250,
        "precipIntensity": 0, "precipProbability": 0, "temperature": 61.2, "dewPoint": 40.1,
        "humidity": 0.46, "pressure": 1015.2, "windSpeed": 6.1, "cloudCover": 0.1, "uvIndex": 3,
        "visibility": 10, "ozone": 350.2,
    },
    "daily": {"data": [
        {"time": 1589342400, "summary": "Clear throughout the day.", "sunriseTime": 1589363520,
         "sunsetTime": 1589415180, "precipIntensity": 0.0001, "precipProbability": 0.03,
         "temperatureMax": 66.1, "temperatureMin": 45.3, "dewPoint": 38.9, "humidity": 0.5,
         "pressure": 1016.1, "windSpeed": 5.2, "cloudCover": 0.05, "uvIndex": 7, "visibility": 10,
         "ozone": 349.9},
        {"time": 1589428800, "summary": "Rain in the afternoon.", "sunriseTime": 1589449860,
         "sunsetTime": 1589501640, "precipIntensity": 0.02, "precipProbability": 0.8,
         "precipType": "rain", "precipAccumulation": 0.4, "temperatureMax": 60.0, "temperatureMin": 50.2,
         "dewPoint": 48.0, "humidity": 0.8, "pressure": 1008.0, "windSpeed": 9.5, "cloudCover": 0.9,
         "uvIndex": 2, "visibility": 7.5, "ozone": 340.0},
    ]},
}

RACHIO_DEVICE = {
    "id": "2a5e7d3c-0000-4000-8000-00000000000a",
    "name": "Backyard",
    "model": "GENERATION2_8ZONE",
    "serialNumber": "RCH123",
    "macAddress": "74C63B1234AB",
    "status": "ONLINE",
    "on": True,
    "latitude": 39.95,
    "longitude": -75.16,
    "timeZone": "America/New_York",
    "utcOffset": -18000000,
    "deleted": False,
    "zones": [
        {"id": "zone-b", "zoneNumber": 2, "name": "Beds", "enabled": True, "yardAreaSquareFeet": 300,
         "customNozzle": {"name": "Drip Line", "inchesPerHour": 0.8}, "customSoil": {"name": "Loam"},
         "customSlope": {"name": "Flat"}, "customCrop": {"name": "Shrubs"}, "customShade": {"name": "Lots of sun"},
         "rootZoneDepth": 8, "efficiency": 0.9, "availableWater": 0.17},
        {"id": "zone-a", "zoneNumber": 1, "name": "Lawn", "enabled": True, "yardAreaSquareFeet": 1200,
         "customNozzle": {"name": "Rotor Head", "inchesPerHour": 0.5}, "customSoil": {"name": "Clay"},
         "customSlope": {"name": "Flat"}, "customCrop": {"name": "Cool Season Grass"},
         "customShade": {"name": "Some shade"}, "rootZoneDepth": 6, "efficiency": 0.7, "availableWater": 0.15},
    ],
    "scheduleRules": [
        {"id": "rule-1", "name": "Morning", "startDate": 1589446800000, "operator": "AFTER",
         "cycleSoak": True, "cycles": 2, "scheduleJobTypes": ["DAY_OF_WEEK_1", "DAY_OF_WEEK_4"],
         "zones": [{"zoneId": "zone-b", "duration": 600, "sortOrder": 2},
                   {"zoneId": "zone-a", "duration": 1200, "sortOrder": 1}]},
    ],
}


ENV_VARS = (
    "HUSQVARNA_API_KEY", "API_KEY", "HUSQVARNA_USERNAME", "USERNAME", "HUSQVARNA_PASSWORD", "PASSWORD",
    "RACHIO_API_KEY", "DARKSKY_API_KEY", "MAPBOX_API_KEY", "MYSQL_HOST", "MYSQL_USERNAME", "MYSQL_PASSWORD",
    "MYSQL_DATABASE", "PYYARD_DB_URL", "PYYARD_TIMEOUT", "PYYARD_WORKERS", "PYYARD_INTERVAL",
    "PYYARD_LOCK_TIMEOUT", "PYYARD_GEOCODE", "PYYARD_TIMEZONE", "PYYARD_DEBUG", "PYYARD_ENV_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every pyyard setting from the environment for the test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def external_mower():
    return copy.deepcopy(EXTERNAL_MOWER)


@pytest.fixture
def internal_mower():
    return copy.deepcopy(INTERNAL_MOWER)


@pytest.fixture
def weather_payload():
    return copy.deepcopy(WEATHER)


@pytest.fixture
def rachio_device():
    return copy.deepcopy(RACHIO_DEVICE)


@pytest.fixture
def internal_client():
    """Stub for the internal Husqvarna API detail calls."""

    class StubInternal:
        def __init__(self):
            self.calls = []
            self.fail = {}  # mower_id -> stage that raises

        def _call(self, stage, mower_id, payload):
            self.calls.append((stage, mower_id))
            if self.fail.get(mower_id) == stage:
                from pyyard.exceptions import PyYardHTTPError
                raise PyYardHTTPError(500, f"https://example.invalid/{mower_id}/{stage}", "Server Error")
            return copy.deepcopy(payload)

        def get_status(self, mower_id):
            return self._call("status", mower_id, STATUS)

        def get_geofence(self, mower_id):
            return self._call("geofence", mower_id, GEOFENCE)

        def get_settings(self, mower_id):
            return self._call("settings", mower_id, SETTINGS)

    return StubInternal()


@pytest.fixture
def store():
    s = Store("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    s.create_schema()
    yield s
    s.close()
