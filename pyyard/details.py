"""
 Per-device detail aggregation

 Each mower needs three more calls against the internal API (status,
 geofence, settings). They run in that order for one device; devices are
 spread over a bounded thread pool so the load on the upstream service never
 exceeds max_workers concurrent devices. With max_workers=1 the devices are
 fetched strictly one after another.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from pyyard.exceptions import PyYardError
from pyyard.normalize import normalize_geofence, normalize_locations, normalize_settings

log = logging.getLogger(__name__)

STAGES = ("status", "geofence", "settings")


def fetch_mower_details(record: dict, client) -> dict:
    """Fold internal status, geofence and settings into one mower record."""
    mower_id = record.get("internal_id")
    stage = STAGES[0]
    try:
        status = client.get_status(mower_id)
        record["last_locations"] = normalize_locations(status)
        stage = STAGES[1]
        geofence = client.get_geofence(mower_id)
        record["geofence"] = normalize_geofence(geofence)
        stage = STAGES[2]
        settings = client.get_settings(mower_id)
        record["settings"] = normalize_settings(settings)
    except PyYardError as exc:
        exc.stage = stage
        raise
    return record


def aggregate_details(records: List[dict], client, max_workers: int = 1) -> List[dict]:
    """
    Fetch details for every record. Returns the records that completed, in
    input order; a device whose fetch fails is logged and left out.
    """
    if not records:
        return []
    max_workers = max(1, max_workers)
    log.info(f"Fetching internal status, geofence and settings for {len(records)} mower(s)")
    results = []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pyyard-details") as executor:
        futures = [executor.submit(fetch_mower_details, record, client) for record in records]
        for record, future in zip(records, futures):
            try:
                results.append(future.result())
            except PyYardError as exc:
                log.error(f"Skipping mower {record.get('device_id')}: {getattr(exc, 'stage', '?')} fetch failed - {exc}")
    return results
