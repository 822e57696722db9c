"""
 Record Normalizer

 Reshapes the raw payload of each upstream service into the flat, snake_case
 attribute maps that the rest of the pipeline works with. Every canonical key
 comes from exactly one source path (or one computed rule); a path missing in
 the payload yields None, and a missing nested collection yields an empty
 list, so one absent field never aborts the record.
"""
import logging
import re

from pyyard.pyyard_base import lookup

log = logging.getLogger(__name__)

MANUFACTURER_HUSQVARNA = "husqv"
MANUFACTURER_RACHIO = "rachio"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Rachio numbers days from Sunday: DAY_OF_WEEK_0 .. DAY_OF_WEEK_6
RACHIO_DAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

# Scalar controller attributes kept as sprinkler settings
RACHIO_SETTINGS = ("on", "timeZone", "utcOffset", "rainDelayStartDate", "rainDelayExpirationDate",
                   "scheduleModeType", "deleted")

# canonical key -> path in the public Automower API payload
EXTERNAL_MOWER_FIELDS = {
    "device_id": ["id"],
    "device_type": ["type"],
    "device_name": ["attributes", "system", "name"],
    "device_model": ["attributes", "system", "model"],
    "serial_no": ["attributes", "system", "serialNumber"],
    "battery_pct": ["attributes", "battery", "batteryPercent"],
    "mower_mode": ["attributes", "mower", "mode"],
    "mower_activity": ["attributes", "mower", "activity"],
    "mower_state": ["attributes", "mower", "state"],
    "last_error": ["attributes", "mower", "errorCode"],
    "last_error_ts": ["attributes", "mower", "errorCodeTimestamp"],
    "next_start_ts": ["attributes", "planner", "nextStartTimestamp"],
    "override": ["attributes", "planner", "override", "action"],
    "restrict_reason": ["attributes", "planner", "restrictedReason"],
    "connected": ["attributes", "metadata", "connected"],
}

INTERNAL_ID_REGEX = re.compile(r"^(?P<serial>\d+)-\d+$")

# canonical key -> path in the internal (app) mower listing
INTERNAL_MOWER_FIELDS = {
    "internal_id": ["id"],
    "internal_model": ["model"],
    "internal_status": ["status", "mowerStatus"],
    "internal_op_mode": ["status", "operatingMode"],
}

SPRINKLER_FIELDS = {
    "device_id": ["id"],
    "device_name": ["name"],
    "device_model": ["model"],
    "serial_no": ["serialNumber"],
    "mac_address": ["macAddress"],
    "device_status": ["status"],
    "enabled": ["on"],
}

ZONE_FIELDS = {
    "zone_number": ["zoneNumber"],
    "zone_id": ["id"],
    "zone_name": ["name"],
    "enabled": ["enabled"],
    "area_sqft": ["yardAreaSquareFeet"],
    "nozzle_name": ["customNozzle", "name"],
    "nozzle_rate": ["customNozzle", "inchesPerHour"],
    "soil_name": ["customSoil", "name"],
    "slope_name": ["customSlope", "name"],
    "crop_name": ["customCrop", "name"],
    "shade_name": ["customShade", "name"],
    "root_depth": ["rootZoneDepth"],
    "efficiency": ["efficiency"],
    "available_water": ["availableWater"],
}


def _project(raw, fields: dict) -> dict:
    return {key: lookup(raw, path) for key, path in fields.items()}


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def infer_datatype(value) -> str:
    """Name the runtime type of a setting value."""
    # bool is a subclass of int, test it first
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return "object"


def normalize_external_mower(raw: dict, user_id=None) -> dict:
    record = {"manufacturer": MANUFACTURER_HUSQVARNA}
    record.update(_project(raw, EXTERNAL_MOWER_FIELDS))
    record["schedules"] = normalize_mower_schedule(lookup(raw, ["attributes", "calendar", "tasks"]))
    record["user_id"] = user_id
    return record


def normalize_internal_mower(raw: dict) -> dict:
    record = _project(raw, INTERNAL_MOWER_FIELDS)
    # internal ids are "<serial>-<suffix>"
    match = INTERNAL_ID_REGEX.match(str(record["internal_id"] or ""))
    record["serial_no"] = match.group("serial") if match else None
    return record


def normalize_mower_schedule(tasks) -> list:
    schedules = []
    for task in _as_list(tasks):
        entry = {"start": lookup(task, ["start"]), "duration": lookup(task, ["duration"])}
        for day in WEEKDAYS:
            entry[day] = bool(lookup(task, [day]))
        schedules.append(entry)
    return schedules


def normalize_locations(status: dict) -> list:
    """Location samples, most recent first; GPS status is dropped."""
    return [
        {"latitude": lookup(location, ["latitude"]), "longitude": lookup(location, ["longitude"])}
        for location in _as_list(lookup(status, ["lastLocations"]))
    ]


def normalize_geofence(geofence: dict) -> dict:
    point = lookup(geofence, ["centralPoint"])
    return {
        "latitude": lookup(point, ["location", "latitude"]),
        "longitude": lookup(point, ["location", "longitude"]),
        "level": lookup(point, ["sensitivity", "level"]),
        "radius": lookup(point, ["sensitivity", "radius"]),
    }


def normalize_setting(name, value) -> dict:
    return {"setting_name": name, "setting_value": value, "setting_datatype": infer_datatype(value)}


def normalize_settings(payload: dict) -> list:
    return [
        normalize_setting(lookup(setting, ["id"]), lookup(setting, ["value"]))
        for setting in _as_list(lookup(payload, ["settings"]))
    ]


def normalize_zones(zones) -> list:
    normalized = [_project(zone, ZONE_FIELDS) for zone in _as_list(zones)]
    # zones without a number sort last
    return sorted(normalized, key=lambda zone: (zone["zone_number"] is None, zone["zone_number"] or 0))


def normalize_sprinkler_schedules(rules, zones) -> list:
    """
    Flatten Rachio schedule rules into one entry per (rule, zone) in
    rule order then zone sort order.
    """
    zone_numbers = {zone["zone_id"]: zone["zone_number"] for zone in zones}
    schedules = []
    for rule in _as_list(rules):
        job_types = _as_list(lookup(rule, ["scheduleJobTypes"]))
        days = {day: f"DAY_OF_WEEK_{idx}" in job_types for idx, day in enumerate(RACHIO_DAYS)}
        rule_zones = sorted(_as_list(lookup(rule, ["zones"])), key=lambda z: lookup(z, ["sortOrder"]) or 0)
        for rule_zone in rule_zones:
            entry = {
                "rule_id": lookup(rule, ["id"]),
                "rule_name": lookup(rule, ["name"]),
                "zone_number": zone_numbers.get(lookup(rule_zone, ["zoneId"])),
                "start_ts": lookup(rule, ["startDate"]),
                "duration": lookup(rule_zone, ["duration"]),
                "operator": lookup(rule, ["operator"]),
                "cycle_soak": bool(lookup(rule, ["cycleSoak"])),
                "cycles": lookup(rule, ["cycles"]),
            }
            for day in WEEKDAYS:
                entry[day] = days[day]
            schedules.append(entry)
    return schedules


def normalize_sprinkler(raw: dict, user_id=None) -> dict:
    record = {"manufacturer": MANUFACTURER_RACHIO}
    record.update(_project(raw, SPRINKLER_FIELDS))
    record["connected"] = record["device_status"] == "ONLINE"
    record["user_id"] = user_id
    latitude = lookup(raw, ["latitude"])
    longitude = lookup(raw, ["longitude"])
    if latitude is None or longitude is None:
        record["last_locations"] = []
    else:
        record["last_locations"] = [{"latitude": latitude, "longitude": longitude}]
    record["zones"] = normalize_zones(lookup(raw, ["zones"]))
    record["schedules"] = normalize_sprinkler_schedules(lookup(raw, ["scheduleRules"]), record["zones"])
    record["settings"] = [normalize_setting(name, raw[name]) for name in RACHIO_SETTINGS
                          if isinstance(raw, dict) and name in raw]
    return record
