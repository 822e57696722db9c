import copy
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError

from pyyard.details import fetch_mower_details
from pyyard.merge import merge_positional
from pyyard.models import Address, Forecast, Location, Mower, Schedule, Setting, Sprinkler, SprinklerSchedule, Zone
from pyyard.normalize import normalize_external_mower, normalize_internal_mower, normalize_sprinkler
from pyyard.store import (COMMITTED, ROLLED_BACK, build_batches, classify_error, serialize_value)
from pyyard.weather import build_snapshot

DEVICE_TABLES = (Mower, Schedule, Location, Setting, Forecast)


def make_mower(external_mower, internal_mower, internal_client, weather_payload, device_id=None):
    external_mower = copy.deepcopy(external_mower)
    if device_id:
        external_mower["id"] = device_id
    record = merge_positional([normalize_external_mower(external_mower, "user-1")],
                              [normalize_internal_mower(internal_mower)])[0]
    fetch_mower_details(record, internal_client)
    record["weather"] = build_snapshot(weather_payload)
    return record


def count(store, model, device_id=None):
    stmt = select(func.count()).select_from(model.__table__)
    if device_id:
        stmt = stmt.where(model.__table__.c.device_id == device_id)
    with store.engine.connect() as conn:
        return conn.execute(stmt).scalar()


@pytest.fixture
def mower_record(external_mower, internal_mower, internal_client, weather_payload):
    return make_mower(external_mower, internal_mower, internal_client, weather_payload)


def test_end_to_end_row_counts(store, mower_record):
    assert store.persist([mower_record]) == {"committed": 1, "rolled_back": 0}
    assert count(store, Mower) == 1
    assert count(store, Schedule) == 2
    assert count(store, Location) == 3
    assert count(store, Setting) == 5
    assert count(store, Forecast) == 3
    with store.engine.connect() as conn:
        for model in DEVICE_TABLES:
            stamps = conn.execute(select(model.__table__.c.fetch_ts).distinct()).scalars().all()
            assert stamps == [1589391000]


def test_device_row_values(store, mower_record):
    store.persist([mower_record])
    with store.engine.connect() as conn:
        row = conn.execute(select(Mower.__table__)).mappings().one()
    assert row["manufacturer"] == "husqv"
    assert row["internal_id"] == "190412345-190400001"
    assert row["serial_no"] == "190412345"
    assert row["geofence_lvl"] == "MEDIUM"
    assert row["geofence_radius"] == 250
    assert row["connected"] is True
    assert row["user_id"] == "user-1"


def test_settings_values_are_serialized(store, mower_record):
    store.persist([mower_record])
    with store.engine.connect() as conn:
        rows = dict(conn.execute(select(Setting.__table__.c.setting_name, Setting.__table__.c.setting_value)).all())
    assert rows["cuttingHeight"] == "5"
    assert rows["ecoMode"] == "false"
    assert rows["headlight"] == "evening"


def test_forecast_failure_rolls_back_device_only(store, external_mower, internal_mower, internal_client,
                                                 weather_payload):
    good = make_mower(external_mower, internal_mower, internal_client, weather_payload, device_id="D2")
    bad = make_mower(external_mower, internal_mower, internal_client, weather_payload, device_id="D")
    # a repeated forecast key makes the forecast batch fail after the other tables were written
    bad["weather"].append(dict(bad["weather"][1]))

    result = store.persist([good, bad])

    assert result == {"committed": 1, "rolled_back": 1}
    for model in DEVICE_TABLES:
        assert count(store, model, "D") == 0
    assert count(store, Mower, "D2") == 1
    assert count(store, Forecast, "D2") == 3
    assert store.states[("husqv", "D2")] == COMMITTED
    assert store.states[("husqv", "D")] == ROLLED_BACK


def test_failure_does_not_affect_later_devices(store, external_mower, internal_mower, internal_client,
                                               weather_payload):
    bad = make_mower(external_mower, internal_mower, internal_client, weather_payload, device_id="D")
    bad["weather"].append(dict(bad["weather"][1]))
    later = make_mower(external_mower, internal_mower, internal_client, weather_payload, device_id="D3")
    assert store.persist([bad, later]) == {"committed": 1, "rolled_back": 1}
    assert count(store, Mower, "D3") == 1


def test_empty_child_batches(store, mower_record):
    mower_record["schedules"] = []
    mower_record["settings"] = []
    assert store.persist_record(mower_record) is True
    assert count(store, Schedule) == 0
    assert count(store, Setting) == 0
    assert count(store, Mower) == 1


def test_record_without_weather_is_not_stored(store, mower_record):
    del mower_record["weather"]
    assert store.persist_record(mower_record) is False
    assert count(store, Mower) == 0


def test_sprinkler_record(store, rachio_device, weather_payload):
    record = normalize_sprinkler(rachio_device, "person-1")
    record["weather"] = build_snapshot(weather_payload)
    record["address"] = {"street": "1 Elm Rd", "city": "Lower Merion", "state": "PA", "zip": "19066",
                         "country": "United States", "place_name": "..."}
    assert store.persist_record(record) is True
    assert count(store, Sprinkler) == 1
    assert count(store, SprinklerSchedule) == 2
    assert count(store, Zone) == 2
    assert count(store, Location) == 1
    assert count(store, Setting) == 4
    assert count(store, Forecast) == 3
    assert count(store, Address) == 1
    assert count(store, Mower) == 0
    with store.engine.connect() as conn:
        zone_count = conn.execute(select(Sprinkler.__table__.c.zone_count)).scalar()
    assert zone_count == 2


def test_build_batches_device_row_first(mower_record):
    batches = build_batches(mower_record)
    assert batches[0][0] is Mower.__table__
    assert len(batches[0][1]) == 1
    assert [table.name for table, _ in batches] == ["mowers", "schedules", "locations", "settings", "forecasts",
                                                    "addresses"]
    assert batches[-1][1] == []


def test_serialize_value():
    assert serialize_value("auto") == "auto"
    assert serialize_value(42) == "42"
    assert serialize_value(True) == "true"
    assert serialize_value(None) is None


def test_classify_mysql_codes():
    exc = OperationalError("SELECT 1", {}, Exception(1045, "Access denied"))
    assert classify_error(exc, "connection") == ("connection", "invalid password for username.")
    exc = OperationalError("INSERT", {}, Exception(1146, "Table 'yard.mowers' doesn't exist"))
    assert classify_error(exc, "statement") == ("statement", "error in SQL statement, rollback.")


def test_classify_unknown_uses_phase():
    exc = OperationalError("COMMIT", {}, Exception("disk full"))
    assert classify_error(exc, "commit") == ("commit", "failed commit, rollback.")


def test_unreachable_database_rolls_back(mower_record):
    from pyyard.store import Store
    broken = Store("sqlite://")
    broken.engine = MagicMock()
    broken.engine.connect.side_effect = OperationalError("connect", {}, Exception(2003, "Can't connect"))
    assert broken.persist([mower_record]) == {"committed": 0, "rolled_back": 1}


def test_advisory_lock_noop_on_sqlite(store):
    with store.advisory_lock() as acquired:
        assert acquired is True
    with store.engine.connect() as conn:
        assert conn.execute(text("SELECT 1")).scalar() == 1


def mysql_store(get_lock_result):
    from pyyard.store import Store
    s = Store("sqlite://")
    s.engine = MagicMock()
    s.engine.dialect.name = "mysql"
    conn = s.engine.connect.return_value.__enter__.return_value
    conn.execute.return_value.scalar.return_value = get_lock_result
    return s, conn


def executed_sql(conn):
    return [str(call.args[0]) for call in conn.execute.call_args_list]


def test_advisory_lock_acquired_is_released():
    s, conn = mysql_store(1)
    with s.advisory_lock("pyyard", 5) as acquired:
        assert acquired is True
        assert executed_sql(conn) == ["SELECT GET_LOCK(:name, :timeout)"]
    assert executed_sql(conn) == ["SELECT GET_LOCK(:name, :timeout)", "SELECT RELEASE_LOCK(:name)"]
    assert conn.execute.call_args_list[0].args[1] == {"name": "pyyard", "timeout": 5}


def test_advisory_lock_held_elsewhere_is_not_released():
    s, conn = mysql_store(0)
    with s.advisory_lock() as acquired:
        assert acquired is False
    assert executed_sql(conn) == ["SELECT GET_LOCK(:name, :timeout)"]
