"""Tests for threatintel/services/mitre.py — ATT&CK reference and coverage."""

import pytest

from threatintel.models.analysis import AnalysisResult
from threatintel.models.common import Severity
from threatintel.models.incident import IncidentCreate
from threatintel.models.ioc import IocCreate
from threatintel.services import analyses, incidents, iocs, mitre


@pytest.mark.parametrize(
    "detected,total,expected",
    [(0, 0, 0), (3, 0, 0), (0, 6, 0), (1, 6, 17), (2, 6, 33), (6, 6, 100), (1, 3, 33)],
)
def test_coverage_percent(detected, total, expected):
    assert mitre.coverage_percent(detected, total) == expected


def test_coverage_on_empty_store_is_zero(db):
    stats = mitre.coverage_stats(db)
    assert stats.total_techniques == 0
    assert stats.coverage_percent == 0
    assert stats.by_tactic == {}


def test_seed_is_a_one_time_load(db):
    assert mitre.seed_techniques(db) == 6
    assert mitre.seed_techniques(db) == 0
    assert len(mitre.list_techniques(db)) == 6


def test_list_by_tactic(db):
    mitre.seed_techniques(db)

    initial_access = mitre.list_techniques(db, tactic="Initial Access")
    assert [t.technique_id for t in initial_access] == ["T1190", "T1566"]
    assert len(mitre.list_techniques(db, tactic="all")) == 6
    assert "Exfiltration" in mitre.list_tactics(db)
    assert mitre.list_tactics(db) == sorted(mitre.list_tactics(db))


def test_detected_is_union_across_iocs_analyses_and_incidents(db, analyst):
    mitre.seed_techniques(db)
    iocs.create_ioc(
        db, analyst,
        IocCreate(type="domain", value="evil.example", severity="high", source="feed",
                  confidence=90, mitre_techniques=["T1566", "T1071"]),
    )
    analyses.save_analysis(
        db,
        AnalysisResult(summary="s", details="Cause: x", recommendations=[],
                       severity=Severity.HIGH, confidence=90),
        mitre_techniques=["T1566", "T1110"],
    )
    incidents.create_incident(
        db, analyst, IncidentCreate(title="t", severity="low", mitre_techniques=["T1110"])
    )

    assert mitre.detected_technique_ids(db) == {"T1566", "T1071", "T1110"}

    stats = mitre.coverage_stats(db)
    assert stats.total_techniques == 6
    assert stats.detected_techniques == 3
    assert stats.coverage_percent == 50
    assert stats.by_tactic["Initial Access"].total == 2
    assert stats.by_tactic["Initial Access"].detected == 1
    assert stats.by_tactic["Execution"].detected == 0
