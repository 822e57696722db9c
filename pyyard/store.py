"""
 Persistence Engine

 Expands one device record into insert batches for the related tables and
 writes them in a single transaction per device:

    Idle -> TransactionOpen -> StatementsQueued -> Committed | RolledBack

 A failure while storing one device rolls back that device only; devices
 already committed stay committed and the next device gets a fresh
 transaction. Nothing is retried within a run.
"""
import json
import logging
from contextlib import contextmanager
from typing import List, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from pyyard.models import (Address, Base, Forecast, Location, Mower, Schedule, Setting, Sprinkler,
                           SprinklerSchedule, Zone)
from pyyard.normalize import MANUFACTURER_RACHIO, WEEKDAYS

log = logging.getLogger(__name__)

IDLE = "Idle"
TRANSACTION_OPEN = "TransactionOpen"
STATEMENTS_QUEUED = "StatementsQueued"
COMMITTED = "Committed"
ROLLED_BACK = "RolledBack"

# MySQL error code -> (category, message)
MYSQL_ERRORS = {
    2003: ("connection", "database server is down or unreachable."),
    2005: ("connection", "database server is down or unreachable."),
    1251: ("connection", "unrecognized username or authentication protocol."),
    1045: ("connection", "invalid password for username."),
    1049: ("connection", "unrecognized schema."),
    1146: ("statement", "error in SQL statement, rollback."),
    1064: ("statement", "error in SQL statement, rollback."),
}

DEFAULT_MESSAGES = {
    "connection": "unknown and unhandled exception.",
    "statement": "unknown SQL exception, rollback.",
    "commit": "failed commit, rollback.",
}

MOWER_COLUMNS = ("internal_id", "device_type", "device_name", "device_model", "internal_model", "serial_no",
                 "battery_pct", "mower_mode", "mower_activity", "mower_state", "internal_status",
                 "internal_op_mode", "last_error", "last_error_ts", "next_start_ts", "override",
                 "restrict_reason", "connected", "user_id")
SPRINKLER_COLUMNS = ("device_name", "device_model", "serial_no", "mac_address", "device_status", "connected",
                     "enabled", "user_id")
SPRINKLER_SCHEDULE_COLUMNS = ("rule_id", "rule_name", "zone_number", "start_ts", "duration", "operator",
                              "cycle_soak", "cycles") + WEEKDAYS
ZONE_COLUMNS = ("zone_number", "zone_id", "zone_name", "enabled", "area_sqft", "nozzle_name", "nozzle_rate",
                "soil_name", "slope_name", "crop_name", "shade_name", "root_depth", "efficiency",
                "available_water")
FORECAST_COLUMNS = ("forecast_type", "forecast_day", "summary", "sunrise_ts", "sunset_ts", "storm_dist",
                    "storm_bearing", "precip_accum", "precip_intensity", "precip_chance", "precip_type", "temp",
                    "temp_high", "temp_low", "dew_point", "humidity", "pressure", "wind_speed", "cloud_cover",
                    "uv_index", "visibility", "ozone")
ADDRESS_COLUMNS = ("street", "city", "state", "zip", "country")


def mysql_error_code(exc):
    args = getattr(getattr(exc, "orig", None), "args", None) or ()
    if args and isinstance(args[0], int):
        return args[0]
    return None


def classify_error(exc, phase: str) -> Tuple[str, str]:
    """Map a database failure to (category, log message)."""
    code = mysql_error_code(exc)
    if code in MYSQL_ERRORS:
        return MYSQL_ERRORS[code]
    return phase, DEFAULT_MESSAGES.get(phase, DEFAULT_MESSAGES["statement"])


def serialize_value(value):
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _pick(source: dict, columns) -> dict:
    return {column: source.get(column) for column in columns}


def build_batches(record: dict) -> List[tuple]:
    """
    Return [(table, rows), ...] for one record: the device row first, then
    one batch per child collection. Child batches may be empty.
    """
    fetch_ts = record["weather"][0]["fetch_ts"]
    key = {"manufacturer": record["manufacturer"], "device_id": record["device_id"], "fetch_ts": fetch_ts}
    batches = []

    if record["manufacturer"] == MANUFACTURER_RACHIO:
        device = dict(key, **_pick(record, SPRINKLER_COLUMNS))
        device["zone_count"] = len(record.get("zones") or [])
        batches.append((Sprinkler.__table__, [device]))
        batches.append((SprinklerSchedule.__table__, [
            dict(key, schedule_idx=idx, **_pick(schedule, SPRINKLER_SCHEDULE_COLUMNS))
            for idx, schedule in enumerate(record.get("schedules") or [])
        ]))
        batches.append((Zone.__table__, [dict(key, **_pick(zone, ZONE_COLUMNS)) for zone in record.get("zones") or []]))
    else:
        geofence = record.get("geofence") or {}
        device = dict(key, **_pick(record, MOWER_COLUMNS))
        device.update({
            "geofence_lat": geofence.get("latitude"),
            "geofence_long": geofence.get("longitude"),
            "geofence_lvl": geofence.get("level"),
            "geofence_radius": geofence.get("radius"),
        })
        if device["serial_no"] is not None:
            device["serial_no"] = str(device["serial_no"])
        batches.append((Mower.__table__, [device]))
        batches.append((Schedule.__table__, [
            dict(key, schedule_idx=idx, start=schedule.get("start"), duration=schedule.get("duration"),
                 **_pick(schedule, WEEKDAYS))
            for idx, schedule in enumerate(record.get("schedules") or [])
        ]))

    batches.append((Location.__table__, [
        dict(key, location_idx=idx, latitude=location.get("latitude"), longitude=location.get("longitude"))
        for idx, location in enumerate(record.get("last_locations") or [])
    ]))
    batches.append((Setting.__table__, [
        dict(key, setting_name=setting["setting_name"], setting_value=serialize_value(setting["setting_value"]),
             setting_datatype=setting["setting_datatype"])
        for setting in record.get("settings") or []
    ]))
    batches.append((Forecast.__table__, [dict(key, **_pick(entry, FORECAST_COLUMNS)) for entry in record["weather"]]))
    address = record.get("address")
    batches.append((Address.__table__, [dict(key, **_pick(address, ADDRESS_COLUMNS))] if address else []))
    return batches


class Store:
    """
    SQL store for yard snapshots.

    Args:
        url            = SQLAlchemy database URL (e.g. mysql+pymysql://user:pw@host/db)
        engine_kwargs  = Passed through to sqlalchemy.create_engine
    """

    def __init__(self, url: str, **engine_kwargs):
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine = create_engine(url, **engine_kwargs)
        self.states = {}  # (manufacturer, device_id) -> last transaction state

    def create_schema(self):
        Base.metadata.create_all(self.engine)

    def close(self):
        self.engine.dispose()

    @contextmanager
    def advisory_lock(self, name: str = "pyyard", timeout: int = 0):
        """
        Named lock held for the duration of the block; yields True if it was
        acquired. Only MySQL has named locks, other databases always yield True.
        """
        if self.engine.dialect.name != "mysql":
            yield True
            return
        with self.engine.connect() as conn:
            acquired = conn.execute(text("SELECT GET_LOCK(:name, :timeout)"),
                                    {"name": name, "timeout": timeout}).scalar() == 1
            try:
                yield acquired
            finally:
                if acquired:
                    conn.execute(text("SELECT RELEASE_LOCK(:name)"), {"name": name})

    def persist_record(self, record: dict) -> bool:
        device_key = (record.get("manufacturer"), record.get("device_id"))
        device = "%s/%s" % device_key
        self.states[device_key] = IDLE
        try:
            batches = build_batches(record)
        except (KeyError, IndexError, TypeError) as exc:
            log.error(f"Unable to build statements for {device}: {exc!r}")
            self.states[device_key] = ROLLED_BACK
            return False

        phase = "connection"
        try:
            with self.engine.connect() as conn:
                trans = conn.begin()
                self.states[device_key] = TRANSACTION_OPEN
                try:
                    phase = "statement"
                    for table, rows in batches:
                        if rows:
                            conn.execute(table.insert(), rows)
                    self.states[device_key] = STATEMENTS_QUEUED
                    phase = "commit"
                    trans.commit()
                except SQLAlchemyError:
                    if trans.is_active:
                        trans.rollback()
                    raise
        except SQLAlchemyError as exc:
            category, message = classify_error(exc, phase)
            log.error(f"{device}: {message} [{category}] {exc}")
            self.states[device_key] = ROLLED_BACK
            return False

        self.states[device_key] = COMMITTED
        rows = sum(len(rows) for _, rows in batches)
        log.debug(f"{device}: committed {rows} row(s) at fetch_ts {batches[0][1][0]['fetch_ts']}")
        return True

    def persist(self, records: List[dict]) -> dict:
        """Store every record in its own transaction, in input order."""
        log.info(f"Writing {len(records)} record(s) to database")
        result = {"committed": 0, "rolled_back": 0}
        for record in records:
            if self.persist_record(record):
                result["committed"] += 1
            else:
                result["rolled_back"] += 1
        if records and not result["rolled_back"]:
            log.info("Successful commit, records inserted.")
        return result
