# pyYard - Rachio Public API Class
# -*- coding: utf-8 -*-
"""
 Rachio Public API Class

 Lists the sprinkler controllers (with zones and schedule rules) that
 belong to the owner of an API key.

 Class:
    RachioAPI - Rachio public API client

 Functions:
    authenticate() - look up the person id for the API key
    get_devices() - list controllers of that person

 Reference: https://rachio.readme.io/docs
"""

import logging

from pyyard.exceptions import PyYardAuthError
from pyyard.pyyard_base import PyYardBase, DEFAULT_TIMEOUT

BASE_URL = "https://api.rach.io/1/public"

log = logging.getLogger(__name__)


class RachioAPI(PyYardBase):
    def __init__(self, api_key: str, timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__(timeout, poolmaxsize)
        self.api_key = api_key

    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def authenticate(self) -> dict:
        """
        The API key is the credential; the person id returned by
        /person/info is what every other call is scoped by.
        """
        log.debug("Requesting person id from Rachio API")
        payload = self.get(f"{BASE_URL}/person/info", auth=True) or {}
        if not payload.get("id"):
            raise PyYardAuthError("Rachio person info did not include an id")
        self.token = payload["id"]
        return {"internal_id": self.token}

    def get_devices(self) -> list:
        # Get the controllers for this person.
        """
        {
            'id': 'c8d10892-...',
            'username': 'someone',
            'devices': [
                {
                    'id': '2a5e7d3c-...', 'name': 'Backyard', 'model': 'GENERATION2_8ZONE',
                    'serialNumber': 'ABC123', 'macAddress': '74C63B1234AB', 'status': 'ONLINE', 'on': True,
                    'latitude': 39.95, 'longitude': -75.16, 'timeZone': 'America/New_York',
                    'zones': [{'id': '..', 'zoneNumber': 1, 'name': 'Lawn', 'enabled': True, ...}],
                    'scheduleRules': [{'id': '..', 'name': 'Morning', 'startDate': 1589446800000, ...}]
                }
            ]
        }
        """
        log.debug("Fetching device data from Rachio API")
        payload = self.get(f"{BASE_URL}/person/{self.token}") or {}
        devices = payload.get("devices") or []
        log.debug(f"Rachio API returned {len(devices)} device(s)")
        return devices
