"""
SQLAlchemy models for the yard snapshot tables.

Every row is keyed by (manufacturer, device_id, <sub-index>, fetch_ts) where
fetch_ts is the epoch time of the current weather conditions fetched for the
device in that run.
"""
from sqlalchemy import BigInteger, Boolean, Column, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Mower(Base):
    __tablename__ = "mowers"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    internal_id = Column(String(64))
    device_type = Column(String(32))
    device_name = Column(String(128))
    device_model = Column(String(64))
    internal_model = Column(String(32))
    serial_no = Column(String(32))
    battery_pct = Column(Integer)
    mower_mode = Column(String(32))
    mower_activity = Column(String(32))
    mower_state = Column(String(32))
    internal_status = Column(String(32))
    internal_op_mode = Column(String(32))
    geofence_lat = Column(Float)
    geofence_long = Column(Float)
    geofence_lvl = Column(String(16))
    geofence_radius = Column(Integer)
    last_error = Column(Integer)
    last_error_ts = Column(BigInteger)
    next_start_ts = Column(BigInteger)
    override = Column(String(32))
    restrict_reason = Column(String(32))
    connected = Column(Boolean)
    user_id = Column(String(64))


class Schedule(Base):
    __tablename__ = "schedules"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    schedule_idx = Column(Integer, primary_key=True, autoincrement=False)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    start = Column(Integer)
    duration = Column(Integer)
    monday = Column(Boolean)
    tuesday = Column(Boolean)
    wednesday = Column(Boolean)
    thursday = Column(Boolean)
    friday = Column(Boolean)
    saturday = Column(Boolean)
    sunday = Column(Boolean)


class Location(Base):
    __tablename__ = "locations"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    location_idx = Column(Integer, primary_key=True, autoincrement=False)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    latitude = Column(Float)
    longitude = Column(Float)


class Setting(Base):
    __tablename__ = "settings"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    setting_name = Column(String(64), primary_key=True)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    setting_value = Column(String(255))
    setting_datatype = Column(String(16))


class Forecast(Base):
    __tablename__ = "forecasts"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    forecast_type = Column(String(16), primary_key=True)
    forecast_day = Column(Integer, primary_key=True, autoincrement=False)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    summary = Column(String(255))
    sunrise_ts = Column(BigInteger)
    sunset_ts = Column(BigInteger)
    storm_dist = Column(Float)
    storm_bearing = Column(Float)
    precip_accum = Column(Float)
    precip_intensity = Column(Float)
    precip_chance = Column(Float)
    precip_type = Column(String(16))
    temp = Column(Float)
    temp_high = Column(Float)
    temp_low = Column(Float)
    dew_point = Column(Float)
    humidity = Column(Float)
    pressure = Column(Float)
    wind_speed = Column(Float)
    cloud_cover = Column(Float)
    uv_index = Column(Float)
    visibility = Column(Float)
    ozone = Column(Float)


class Sprinkler(Base):
    __tablename__ = "sprinklers"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    device_name = Column(String(128))
    device_model = Column(String(64))
    serial_no = Column(String(32))
    mac_address = Column(String(32))
    device_status = Column(String(32))
    connected = Column(Boolean)
    enabled = Column(Boolean)
    zone_count = Column(Integer)
    user_id = Column(String(64))


class SprinklerSchedule(Base):
    __tablename__ = "sprinkler_schedules"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    schedule_idx = Column(Integer, primary_key=True, autoincrement=False)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    rule_id = Column(String(64))
    rule_name = Column(String(128))
    zone_number = Column(Integer)
    start_ts = Column(BigInteger)
    duration = Column(Integer)
    operator = Column(String(32))
    cycle_soak = Column(Boolean)
    cycles = Column(Integer)
    monday = Column(Boolean)
    tuesday = Column(Boolean)
    wednesday = Column(Boolean)
    thursday = Column(Boolean)
    friday = Column(Boolean)
    saturday = Column(Boolean)
    sunday = Column(Boolean)


class Zone(Base):
    __tablename__ = "zones"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    zone_number = Column(Integer, primary_key=True, autoincrement=False)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    zone_id = Column(String(64))
    zone_name = Column(String(128))
    enabled = Column(Boolean)
    area_sqft = Column(Float)
    nozzle_name = Column(String(64))
    nozzle_rate = Column(Float)
    soil_name = Column(String(64))
    slope_name = Column(String(64))
    crop_name = Column(String(64))
    shade_name = Column(String(64))
    root_depth = Column(Float)
    efficiency = Column(Float)
    available_water = Column(Float)


class Address(Base):
    __tablename__ = "addresses"

    manufacturer = Column(String(16), primary_key=True)
    device_id = Column(String(64), primary_key=True)
    fetch_ts = Column(BigInteger, primary_key=True, autoincrement=False)
    street = Column(String(128))
    city = Column(String(64))
    state = Column(String(64))
    zip = Column(String(10))
    country = Column(String(64))
