"""Tests for threatintel/services/hunt.py — cross-kind threat hunt."""

from datetime import datetime, timedelta, timezone

import pytest

from threatintel.db.tables import AnalysisRow, IocRow, SecurityLogRow
from threatintel.models.common import Severity
from threatintel.services import hunt

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded(db):
    """Five records with distinct timestamps: a1 > l1 > i1 > l2 > i2."""
    rows = {
        "i1": IocRow(
            type="ip", value="203.0.113.5", severity="high", description="SSH brute force source",
            source="honeypot", tags=[], is_active=True, confidence=95, created_by="alice",
            first_seen=NOW - timedelta(days=2), last_seen=NOW - timedelta(hours=1),
            mitre_techniques=[],
        ),
        "i2": IocRow(
            type="domain", value="evil.example", severity="low", description=None,
            source="feed", tags=[], is_active=True, confidence=40, created_by="alice",
            first_seen=NOW - timedelta(hours=4), last_seen=NOW - timedelta(hours=3),
            mitre_techniques=[],
        ),
        "l1": SecurityLogRow(
            source="ids", level="critical", message="Brute force detected on ssh",
            timestamp=NOW - timedelta(minutes=30), anomaly_score=90,
        ),
        "l2": SecurityLogRow(
            source="auth", level="info", message="User login ok",
            timestamp=NOW - timedelta(hours=2), anomaly_score=5,
        ),
        "a1": AnalysisRow(
            target_type="threat_log", analysis_type="ai_threat_analysis",
            summary="Brute force suspected", details="Cause: repeated auth failures.",
            recommendations=["Block IP"], severity="medium", confidence=85,
            created_at=NOW - timedelta(minutes=10),
        ),
    }
    db.add_all(rows.values())
    db.commit()
    return {name: row.id for name, row in rows.items()}


def ids(results, seeded):
    by_id = {v: k for k, v in seeded.items()}
    return [by_id[r.id] for r in results]


def test_no_filters_returns_union_newest_first(db, seeded):
    assert ids(hunt.hunt_search(db), seeded) == ["a1", "l1", "i1", "l2", "i2"]


def test_keyword_is_case_insensitive_across_kinds(db, seeded):
    assert ids(hunt.hunt_search(db, keyword="BRUTE"), seeded) == ["a1", "l1", "i1"]


def test_min_severity_constrains_iocs_and_analyses_only(db, seeded):
    assert ids(hunt.hunt_search(db, min_severity="high"), seeded) == ["l1", "i1", "l2"]
    assert ids(hunt.hunt_search(db, min_severity="medium"), seeded) == ["a1", "l1", "i1", "l2"]
    assert len(hunt.hunt_search(db, min_severity="all")) == 5


def test_min_anomaly_constrains_logs_only(db, seeded):
    assert ids(hunt.hunt_search(db, min_anomaly=50), seeded) == ["a1", "l1", "i1", "i2"]


def test_min_confidence_constrains_iocs_and_analyses_only(db, seeded):
    assert ids(hunt.hunt_search(db, min_confidence=80), seeded) == ["a1", "l1", "i1", "l2"]


@pytest.mark.parametrize(
    "source,expected",
    [("ids", ["a1", "l1"]), ("honeypot", ["a1", "i1"]), ("threat_log", ["a1"]), ("all", ["a1", "l1", "i1", "l2", "i2"])],
)
def test_source_filter_skips_analyses(db, seeded, source, expected):
    assert ids(hunt.hunt_search(db, source=source), seeded) == expected


def test_time_range_skips_analyses(db, seeded):
    result = hunt.hunt_search(db, start_time=NOW - timedelta(minutes=90), end_time=NOW)
    assert ids(result, seeded) == ["a1", "l1"]


def test_filters_are_anded(db, seeded):
    result = hunt.hunt_search(db, keyword="brute", min_severity="high")
    assert ids(result, seeded) == ["l1", "i1"]


def test_limit_truncates_after_sorting(db, seeded):
    assert ids(hunt.hunt_search(db, limit=2), seeded) == ["a1", "l1"]


def test_result_shape_per_kind(db, seeded):
    results = {r.id: r for r in hunt.hunt_search(db)}

    ioc = results[seeded["i1"]]
    assert ioc.type == "ioc"
    assert ioc.title == "IP: 203.0.113.5"
    assert ioc.confidence == 95
    assert ioc.anomaly_score is None
    assert ioc.timestamp == NOW - timedelta(hours=1)

    log = results[seeded["l1"]]
    assert log.type == "log"
    assert log.severity == Severity.CRITICAL
    assert log.confidence is None
    assert log.anomaly_score == 90

    assert results[seeded["l2"]].severity == Severity.MEDIUM

    analysis = results[seeded["a1"]]
    assert analysis.type == "analysis"
    assert analysis.source == "threat_log"
    assert analysis.title == "Brute force suspected"


def test_unknown_min_severity_raises(db, seeded):
    with pytest.raises(ValueError):
        hunt.hunt_search(db, min_severity="extreme")


def test_stats(db, seeded):
    stats = hunt.hunt_stats(db)

    assert stats.total_iocs == 2
    assert stats.total_logs == 2
    assert stats.total_analyses == 1
    assert stats.high_severity_iocs == 1
    assert stats.anomalous_logs == 1
    assert stats.high_confidence_analyses == 1


def test_log_and_analysis_filters_are_independent(db):
    log = SecurityLogRow(
        source="firewall", level="info", message="Port scan blocked",
        timestamp=NOW - timedelta(minutes=5), anomaly_score=20,
    )
    analysis = AnalysisRow(
        target_type="network_traffic", analysis_type="ai_threat_analysis",
        summary="Ransomware staging", details="Cause: mass file renames.",
        recommendations=[], severity="critical", confidence=90,
        created_at=NOW - timedelta(days=30),
    )
    db.add_all([log, analysis])
    db.commit()

    assert {r.type for r in hunt.hunt_search(db, source="firewall")} == {"log", "analysis"}
    assert {r.type for r in hunt.hunt_search(db, min_severity="critical")} == {"log", "analysis"}
    assert {r.type for r in hunt.hunt_search(db, start_time=NOW - timedelta(hours=1))} == {"log", "analysis"}
