"""
 Weather Enricher

 Attaches a weather snapshot to a record: element 0 is the current
 conditions (forecast_day -1), elements 1..N the daily forecast
 (forecast_day 0..N-1). Every entry carries the current-conditions time as
 fetch_ts, which later keys every row stored for the device.
"""
import logging

from pyyard.exceptions import PyYardLocationError
from pyyard.pyyard_base import lookup

log = logging.getLogger(__name__)

CURRENTLY = "currently"
DAILY = "daily"


def build_current(currently: dict) -> dict:
    return {
        "forecast_type": CURRENTLY,
        "forecast_day": -1,
        "summary": currently.get("summary"),
        "sunrise_ts": None,
        "sunset_ts": None,
        "storm_dist": currently.get("nearestStormDistance"),
        "storm_bearing": currently.get("nearestStormBearing"),
        "precip_accum": None,
        "precip_intensity": currently.get("precipIntensity"),
        "precip_chance": currently.get("precipProbability"),
        "precip_type": None,
        "temp": currently.get("temperature"),
        "temp_high": None,
        "temp_low": None,
        "dew_point": currently.get("dewPoint"),
        "humidity": currently.get("humidity"),
        "pressure": currently.get("pressure"),
        "wind_speed": currently.get("windSpeed"),
        "cloud_cover": currently.get("cloudCover"),
        "uv_index": currently.get("uvIndex"),
        "visibility": currently.get("visibility"),
        "ozone": currently.get("ozone"),
        "fetch_ts": currently.get("time"),
    }


def build_daily(day: int, daily: dict, fetch_ts) -> dict:
    return {
        "forecast_type": DAILY,
        "forecast_day": day,
        "summary": daily.get("summary"),
        "sunrise_ts": daily.get("sunriseTime"),
        "sunset_ts": daily.get("sunsetTime"),
        "storm_dist": None,
        "storm_bearing": None,
        "precip_accum": daily.get("precipAccumulation") or 0,
        "precip_intensity": daily.get("precipIntensity"),
        "precip_chance": daily.get("precipProbability"),
        "precip_type": daily.get("precipType") or "none",
        "temp": None,
        "temp_high": daily.get("temperatureMax"),
        "temp_low": daily.get("temperatureMin"),
        "dew_point": daily.get("dewPoint"),
        "humidity": daily.get("humidity"),
        "pressure": daily.get("pressure"),
        "wind_speed": daily.get("windSpeed"),
        "cloud_cover": daily.get("cloudCover"),
        "uv_index": daily.get("uvIndex"),
        "visibility": daily.get("visibility"),
        "ozone": daily.get("ozone"),
        "fetch_ts": fetch_ts,
    }


def build_snapshot(payload: dict) -> list:
    currently = lookup(payload, ["currently"]) or {}
    forecast = lookup(payload, ["daily", "data"]) or []
    current = build_current(currently)
    snapshot = [current]
    for day, daily in enumerate(forecast):
        snapshot.append(build_daily(day, daily, current["fetch_ts"]))
    return snapshot


def enrich_weather(record: dict, client) -> dict:
    """
    Look up the weather at the most recent location of the record. Client
    errors propagate and leave the record without weather.
    """
    locations = record.get("last_locations") or []
    if not locations:
        raise PyYardLocationError(f"No location for {record.get('manufacturer')}/{record.get('device_id')}")
    latitude = locations[0]["latitude"]
    longitude = locations[0]["longitude"]
    log.debug(f"Fetching weather for {record.get('device_id')} at {latitude},{longitude}")
    payload = client.get_forecast(latitude, longitude)
    record["weather"] = build_snapshot(payload)
    return record
