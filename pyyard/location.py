"""
 Location Enricher

 Reverse geocodes the most recent location of a record and splits the
 place name of the first candidate into address fields. Only US style
 place names are understood:

    "123 Main St, Springfield, IL 62704, USA"
     street       city         state zip  country

 Anything else raises PyYardAddressError rather than guessing.
"""
import logging
import re

from pyyard.exceptions import PyYardAddressError, PyYardLocationError

log = logging.getLogger(__name__)

STATE_ZIP_REGEX = re.compile(r"^(?P<state>.+) (?P<zip>\d{5})$")


def parse_place_name(place_name: str) -> dict:
    if not isinstance(place_name, str):
        raise PyYardAddressError(f"Place name is not a string: {place_name!r}")
    parts = [part.strip() for part in place_name.split(",")]
    if len(parts) != 4 or not all(parts):
        raise PyYardAddressError(f"Expected 4 components in place name, got {len(parts)}: {place_name!r}")
    match = STATE_ZIP_REGEX.match(parts[2])
    if not match:
        raise PyYardAddressError(f"Unrecognized state and zip {parts[2]!r} in {place_name!r}")
    return {
        "street": parts[0],
        "city": parts[1],
        "state": match.group("state").strip(),
        "zip": match.group("zip"),
        "country": parts[3],
        "place_name": place_name,
    }


def enrich_address(record: dict, client) -> dict:
    locations = record.get("last_locations") or []
    if not locations:
        raise PyYardLocationError(f"No location for {record.get('manufacturer')}/{record.get('device_id')}")
    candidates = client.get_address(locations[0]["latitude"], locations[0]["longitude"])
    if not candidates:
        raise PyYardAddressError(f"No address candidates for {record.get('device_id')}")
    record["address"] = parse_place_name(candidates[0].get("place_name"))
    return record
