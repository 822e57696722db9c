# pyYard Module
# -*- coding: utf-8 -*-
"""
 Python module to collect lawn mower, sprinkler controller and weather data
 into a SQL database

 Features
    * Husqvarna Automower data from the public API merged with the internal
      (app) API for GPS history, geofence and settings
    * Rachio sprinkler controllers with zones and schedule rules
    * Current and daily forecast weather at each device's last location
    * Optional street address lookup for each device
    * One database transaction per device - a failing device never affects
      the others
    * Run lock so overlapping collections are skipped

 Classes
    Collector(settings, store)

 Functions
    set_debug(toggle, color)          # Enable verbose logging
    configure_logging(timezone, debug)  # Log with timestamps in a timezone
    Collector.run()                   # Collect and store one snapshot, returns summary dict
    Collector.collect()               # Collect enriched records without storing them

 Requirements
    This module requires the following modules: requests, python-dotenv,
    python-dateutil, pydantic-settings, sqlalchemy, pymysql
"""
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional

from dateutil import tz
from sqlalchemy.exc import SQLAlchemyError

version_tuple = (0, 3, 0)
version = __version__ = '%d.%d.%d' % version_tuple
__author__ = 'pyyard'

from pyyard.config import Settings
from pyyard.darksky import DarkSkyAPI
from pyyard.details import aggregate_details
from pyyard.exceptions import PyYardError
from pyyard.husqvarna import HusqvarnaAPI, HusqvarnaInternal
from pyyard.location import enrich_address
from pyyard.mapbox import MapboxAPI
from pyyard.merge import merge_positional
from pyyard.normalize import normalize_external_mower, normalize_internal_mower, normalize_sprinkler
from pyyard.rachio import RachioAPI
from pyyard.run_lock import run_lock
from pyyard.store import Store, classify_error
from pyyard.weather import enrich_weather

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)

LOG_FORMAT = '[%(asctime)s] %(levelname)s:%(name)s:%(message)s'
LOG_DATEFMT = '%a, %b %d, %Y, %I:%M:%S %p'

# Held while a collection runs in this process
RUN_LOCK = threading.Lock()


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)


class TimezoneFormatter(logging.Formatter):
    """Render record timestamps in a fixed timezone."""

    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATEFMT, timezone="America/New_York"):
        super().__init__(fmt, datefmt)
        self.tz = tz.gettz(timezone) or tz.tzlocal()

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, self.tz).strftime(datefmt or self.datefmt)


def configure_logging(timezone="America/New_York", debug=False):
    handler = logging.StreamHandler()
    handler.setFormatter(TimezoneFormatter(timezone=timezone))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def _login_and_list(client, listing):
    token = client.authenticate()
    return token, listing()


class Collector(object):
    def __init__(self, settings: Settings, store: Optional[Store] = None):
        """
        Collects one snapshot of every configured device per run.

        Args:
            settings = pyyard.config.Settings
            store    = Store to write to (default: created from settings for each run)
        """
        self.settings = settings
        self.store = store

    def run(self) -> dict:
        """
        Collect and store one snapshot. Never raises; failures are logged
        and reported in the returned summary.
        """
        with run_lock(RUN_LOCK, self.settings.lock_timeout) as acquired:
            if not acquired:
                log.warning("Previous collection still running - skipping this run.")
                return {"skipped": True}
            try:
                return self._run()
            except Exception as exc:  # pylint: disable=broad-except
                log.exception(f"Collection failed: {exc}")
                return {"error": str(exc)}

    def _run(self) -> dict:
        self.settings.validate_run()
        store = self.store or Store(self.settings.database_url())
        try:
            try:
                with store.advisory_lock() as acquired:
                    if not acquired:
                        log.warning("Another collector holds the database lock - skipping this run.")
                        return {"skipped": True}
                    records = self.collect()
                    result = store.persist(records)
            except SQLAlchemyError as exc:
                category, message = classify_error(exc, "connection")
                log.error(f"{message} [{category}] {exc}")
                return {"error": str(exc)}
        finally:
            if self.store is None:
                store.close()
        result["devices"] = len(records)
        log.info(f"Collection complete: {result}")
        return result

    def collect(self) -> List[dict]:
        """Fetch, normalize, merge and enrich the records of every device family."""
        families = {}
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="pyyard-family") as executor:
            if self.settings.husqvarna_enabled:
                families["husqv"] = executor.submit(self.collect_mowers)
            if self.settings.rachio_enabled:
                families["rachio"] = executor.submit(self.collect_sprinklers)
            records = []
            for family, future in families.items():
                try:
                    records.extend(future.result())
                except PyYardError as exc:
                    log.error(f"Skipping {family} devices: {exc}")

        unique = []
        seen = set()
        for record in records:
            key = (record["manufacturer"], record["device_id"])
            if key in seen:
                log.error(f"Duplicate device {key[0]}/{key[1]} - keeping the first record")
                continue
            seen.add(key)
            unique.append(record)
        return self.enrich(unique)

    def collect_mowers(self) -> List[dict]:
        s = self.settings
        external = HusqvarnaAPI(s.husqvarna_api_key, s.husqvarna_username, s.husqvarna_password, timeout=s.timeout)
        internal = HusqvarnaInternal(s.husqvarna_api_key, s.husqvarna_username, s.husqvarna_password,
                                     timeout=s.timeout)
        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="pyyard-husqv") as executor:
                external_future = executor.submit(_login_and_list, external, external.get_mowers)
                internal_future = executor.submit(_login_and_list, internal, internal.get_mowers)
                token, external_mowers = external_future.result()
                _, internal_mowers = internal_future.result()
            records = merge_positional(
                [normalize_external_mower(mower, token.get("user_id")) for mower in external_mowers],
                [normalize_internal_mower(mower) for mower in internal_mowers],
            )
            return aggregate_details(records, internal, s.workers)
        finally:
            external.close_session()
            internal.close_session()

    def collect_sprinklers(self) -> List[dict]:
        rachio = RachioAPI(self.settings.rachio_api_key, timeout=self.settings.timeout)
        try:
            token, devices = _login_and_list(rachio, rachio.get_devices)
            return [normalize_sprinkler(device, token.get("internal_id")) for device in devices]
        finally:
            rachio.close_session()

    def enrich(self, records: List[dict]) -> List[dict]:
        """
        Attach weather (required) and address (optional) to each record.
        Records whose weather cannot be fetched are dropped.
        """
        log.info(f"Fetching current and forecasted weather conditions for {len(records)} device(s)")
        weather = DarkSkyAPI(self.settings.darksky_api_key, timeout=self.settings.timeout)
        geocoder = None
        if self.settings.geocode_enabled:
            geocoder = MapboxAPI(self.settings.mapbox_api_key, timeout=self.settings.timeout)
        enriched = []
        try:
            for record in records:
                device = f"{record['manufacturer']}/{record['device_id']}"
                try:
                    enrich_weather(record, weather)
                except PyYardError as exc:
                    log.error(f"Skipping {device}: weather fetch failed - {exc}")
                    continue
                record["address"] = None
                if geocoder:
                    try:
                        enrich_address(record, geocoder)
                    except PyYardError as exc:
                        log.warning(f"No address for {device}: {exc}")
                enriched.append(record)
        finally:
            weather.close_session()
            if geocoder:
                geocoder.close_session()
        return enriched
