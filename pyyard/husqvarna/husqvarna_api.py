# pyYard - Husqvarna Automower Connect API Class
# -*- coding: utf-8 -*-
"""
 Husqvarna Automower Connect API Class

 This module accesses the documented Husqvarna Authentication and
 Automower Connect APIs to list the mowers paired with an account.

 Class:
    HusqvarnaAPI - Husqvarna external API client

 Functions:
    authenticate() - request access token (OAuth2 password grant)
    validate_token() - validate the cached access token
    invalidate_token() - invalidate the cached access token
    get_user() - get user information for the token owner
    get_mowers() - list paired mowers

 Reference: https://developer.husqvarnagroup.cloud/
"""

import logging
from typing import Optional

import requests

from pyyard.exceptions import PyYardAuthError, PyYardTransportError
from pyyard.pyyard_base import PyYardBase, DEFAULT_TIMEOUT

AUTH_URL = "https://api.authentication.husqvarnagroup.dev/v1"
AUTOMOWER_URL = "https://api.amc.husqvarna.dev/v1"

log = logging.getLogger(__name__)


class HusqvarnaAPI(PyYardBase):
    def __init__(self, api_key: str, username: str, password: str,
                 timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__(timeout, poolmaxsize)
        self.api_key = api_key
        self.username = username
        self.password = password
        self.user_id = None

    def headers(self) -> dict:
        headers = {"X-Api-Key": self.api_key}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
            headers["Authorization-Provider"] = "husqvarna"
        return headers

    def authenticate(self) -> dict:
        """
        Request an access token from the Authentication API.

        Returns {'access_token': ..., 'user_id': ...}
        """
        data = {
            "grant_type": "password",
            "client_id": self.api_key,
            "username": self.username,
            "password": self.password,
        }
        payload = self.post(f"{AUTH_URL}/oauth2/token", data=data, auth=True) or {}
        if not payload.get("access_token"):
            raise PyYardAuthError("Husqvarna token response did not include an access_token")
        self.token = payload["access_token"]
        self.user_id = payload.get("user_id")
        log.debug(f"Husqvarna token acquired for user {self.user_id}")
        return {"access_token": self.token, "user_id": self.user_id}

    def validate_token(self) -> Optional[dict]:
        return self.get(f"{AUTH_URL}/token/{self.token}", auth=True)

    def invalidate_token(self) -> bool:
        if not self.token:
            return False
        url = f"{AUTH_URL}/token/{self.token}"
        try:
            r = self.session.request("DELETE", url, headers={"X-Api-Key": self.api_key}, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise PyYardTransportError(f"Unable to reach {url}: {exc}") from exc
        self.token = None
        return r.ok

    def get_user(self, user_id: Optional[str] = None) -> Optional[dict]:
        return self.get(f"{AUTH_URL}/users/{user_id or self.user_id}")

    def get_mowers(self) -> list:
        # Get the mowers paired with this account.
        """
        {
            'data': [
                {
                    'type': 'mower',
                    'id': 'a1b2c3d4-...',
                    'attributes': {
                        'system': {'name': 'Front', 'model': 'AUTOMOWER 430X', 'serialNumber': 190412345},
                        'battery': {'batteryPercent': 87},
                        'mower': {'mode': 'MAIN_AREA', 'activity': 'PARKED_IN_CS', 'state': 'RESTRICTED',
                                  'errorCode': 0, 'errorCodeTimestamp': 0},
                        'calendar': {'tasks': [{'start': 420, 'duration': 600, 'monday': True, ...}]},
                        'planner': {'nextStartTimestamp': 1589446800000, 'override': {'action': 'NOT_ACTIVE'},
                                    'restrictedReason': 'WEEK_SCHEDULE'},
                        'metadata': {'connected': True, 'statusTimestamp': 1589390125224}
                    }
                }
            ]
        }
        """
        payload = self.get(f"{AUTOMOWER_URL}/mowers") or {}
        mowers = payload.get("data") or []
        log.debug(f"Husqvarna API returned {len(mowers)} mower(s)")
        return mowers
