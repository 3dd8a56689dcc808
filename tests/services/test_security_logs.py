"""Tests for threatintel/services/logs.py — security log store."""

from datetime import datetime, timedelta, timezone

import pytest

from threatintel.models.common import LogLevel
from threatintel.models.logs import SecurityLogCreate, SecurityLogMetadata
from threatintel.services import logs

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_log(minutes_ago: int, **overrides) -> SecurityLogCreate:
    defaults = dict(
        source="firewall",
        level=LogLevel.WARN,
        message="Blocked inbound connection",
        timestamp=NOW - timedelta(minutes=minutes_ago),
        source_ip="198.51.100.7",
        anomaly_score=40,
    )
    defaults.update(overrides)
    return SecurityLogCreate(**defaults)


@pytest.fixture
def seeded(db):
    return [
        logs.create_log(db, make_log(5, level=LogLevel.CRITICAL, anomaly_score=98, source="ids")),
        logs.create_log(db, make_log(60, level=LogLevel.ERROR, anomaly_score=75)),
        logs.create_log(db, make_log(60 * 30, level=LogLevel.INFO, anomaly_score=10, source="auth_system")),
        logs.create_log(db, make_log(30, anomaly_score=71, is_demo=True)),
    ]


def test_list_orders_by_event_timestamp_not_insertion(db, seeded):
    result = logs.list_logs(db)
    assert [l.id for l in result] == [seeded[0].id, seeded[3].id, seeded[1].id, seeded[2].id]


def test_timestamps_round_trip_as_utc(db, seeded):
    assert logs.list_logs(db, source="ids")[0].timestamp == NOW - timedelta(minutes=5)


def test_filter_by_source_and_level(db, seeded):
    result = logs.list_logs(db, source="firewall", level="error")
    assert [l.id for l in result] == [seeded[1].id]


def test_time_range_is_inclusive(db, seeded):
    result = logs.list_logs(
        db,
        start_time=NOW - timedelta(minutes=60),
        end_time=NOW - timedelta(minutes=5),
    )
    assert {l.id for l in result} == {seeded[0].id, seeded[1].id, seeded[3].id}


def test_min_anomaly_score(db, seeded):
    result = logs.list_logs(db, min_anomaly_score=75)
    assert {l.id for l in result} == {seeded[0].id, seeded[1].id}


def test_live_only_excludes_demo_rows(db, seeded):
    assert seeded[3].id not in {l.id for l in logs.list_logs(db, live_only=True)}


def test_level_all_sentinel(db, seeded):
    assert len(logs.list_logs(db, level="all", source="all")) == 4


def test_metadata_is_preserved(db):
    created = logs.create_log(
        db,
        make_log(1, metadata=SecurityLogMetadata(endpoint="/login", method="POST", status_code=401)),
    )
    assert created.metadata.endpoint == "/login"
    assert created.metadata.status_code == 401


def test_timestamp_defaults_to_now(db):
    created = logs.create_log(db, make_log(0, timestamp=None))
    assert created.timestamp.tzinfo is not None
    assert datetime.now(timezone.utc) - created.timestamp < timedelta(minutes=1)


def test_stats(db, seeded):
    stats = logs.log_stats(db, now=NOW)

    assert stats.total == 4
    assert stats.last_24h == 3
    assert stats.anomalies == 3
    assert stats.by_level == {"info": 1, "warn": 1, "error": 1, "critical": 1}
    assert stats.by_source == {"firewall": 2, "ids": 1, "auth_system": 1}


def test_stats_live_only(db, seeded):
    stats = logs.log_stats(db, live_only=True, now=NOW)
    assert stats.total == 3
    assert stats.anomalies == 2
    assert stats.by_level["warn"] == 0


def test_sample_logs_are_demo_and_recent(db):
    assert logs.create_sample_logs(db) == 4

    created = logs.list_logs(db)
    assert len(created) == 4
    assert all(l.is_demo for l in created)
    assert logs.log_stats(db).last_24h == 4
    assert logs.list_logs(db, live_only=True) == []
