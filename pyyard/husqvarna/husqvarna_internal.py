# pyYard - Husqvarna Internal API Class
# -*- coding: utf-8 -*-
"""
 Husqvarna Internal API Class

 The Automower Connect app talks to a set of undocumented endpoints that
 expose data the public API does not: GPS location history, the geofence
 central point and the full mower settings list.

 Class:
    HusqvarnaInternal - Husqvarna internal (app) API client

 Functions:
    authenticate() - request an IAM token
    get_mowers() - list paired mowers
    get_status(mower_id) - mower status including last locations
    get_geofence(mower_id) - geofence central point and sensitivity
    get_settings(mower_id) - mower settings list

 Note: the endpoints are unofficial and may change without notice.
"""

import logging

from pyyard.exceptions import PyYardAuthError
from pyyard.pyyard_base import PyYardBase, DEFAULT_TIMEOUT

IAM_URL = "https://iam-api.dss.husqvarnagroup.net/api/v3"
AMC_URL = "https://amc-api.dss.husqvarnagroup.net/v1"

log = logging.getLogger(__name__)


class HusqvarnaInternal(PyYardBase):
    def __init__(self, api_key: str, username: str, password: str,
                 timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__(timeout, poolmaxsize)
        self.api_key = api_key
        self.username = username
        self.password = password

    def headers(self) -> dict:
        headers = {"X-Api-Key": self.api_key}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
            headers["Authorization-Provider"] = "husqvarna"
        return headers

    def authenticate(self) -> dict:
        """
        Request an access token from the internal IAM endpoint.

        Returns {'internal_id': ...}; the token id is used as the bearer token.
        """
        body = {
            "data": {
                "attributes": {
                    "username": self.username,
                    "password": self.password
                },
                "type": "token"
            }
        }
        payload = self.post(f"{IAM_URL}/token", json=body, auth=True) or {}
        token = (payload.get("data") or {}).get("id")
        if not token:
            raise PyYardAuthError("Husqvarna internal token response did not include data.id")
        self.token = token
        return {"internal_id": token}

    def get_mowers(self) -> list:
        # [{'id': '190412345-190400001', 'model': 'G', 'status': {'mowerStatus': 'PARKED_TIMER', 'operatingMode': 'AUTO'}}]
        mowers = self.get(f"{AMC_URL}/mowers") or []
        log.debug(f"Husqvarna internal API returned {len(mowers)} mower(s)")
        return mowers

    def get_status(self, mower_id: str) -> dict:
        # {'lastLocations': [{'latitude': 40.1, 'longitude': -75.2, 'gpsStatus': 'USING_GPS_AREA'}], ...}
        return self.get(f"{AMC_URL}/mowers/{mower_id}/status") or {}

    def get_geofence(self, mower_id: str) -> dict:
        # {'centralPoint': {'location': {'latitude': .., 'longitude': ..}, 'sensitivity': {'level': 'MEDIUM', 'radius': 250}}}
        return self.get(f"{AMC_URL}/mowers/{mower_id}/geofence") or {}

    def get_settings(self, mower_id: str) -> dict:
        # {'settings': [{'id': 'cuttingHeight', 'value': 5}, {'id': 'ecoMode', 'value': False}, ...]}
        return self.get(f"{AMC_URL}/mowers/{mower_id}/settings") or {}
