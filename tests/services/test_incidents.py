"""Tests for threatintel/services/incidents.py."""

import pytest
from sqlalchemy.orm import Session

from threatintel.errors import RecordNotFoundError
from threatintel.models.common import EvidenceKind, IncidentStatus, Severity
from threatintel.models.incident import Evidence, IncidentCreate
from threatintel.services import incidents


def make_incident(**overrides) -> IncidentCreate:
    defaults = dict(
        title="Credential stuffing against VPN",
        description="Spike of failed VPN logins",
        severity=Severity.HIGH,
        tags=["vpn"],
        mitre_techniques=["T1110"],
    )
    defaults.update(overrides)
    return IncidentCreate(**defaults)


def test_create_starts_open_and_records_creator(db, analyst):
    incident = incidents.create_incident(db, analyst, make_incident())

    assert incident.status == IncidentStatus.OPEN
    assert incident.created_by == "alice"
    assert incident.evidence == []


def test_create_without_identity_uses_system(db):
    incident = incidents.create_incident(db, None, make_incident())
    assert incident.created_by == "system"


def test_status_transitions(db, analyst):
    incident = incidents.create_incident(db, analyst, make_incident())

    updated = incidents.update_incident_status(db, incident.id, IncidentStatus.IN_PROGRESS)
    assert updated.status == IncidentStatus.IN_PROGRESS

    reopened = incidents.update_incident_status(db, incident.id, IncidentStatus.OPEN)
    assert reopened.status == IncidentStatus.OPEN


def test_add_evidence_appends(db, analyst):
    incident = incidents.create_incident(
        db, analyst, make_incident(evidence=[Evidence(kind=EvidenceKind.IOC, ref_id="ioc-1")])
    )

    incidents.add_incident_evidence(db, incident.id, Evidence(kind=EvidenceKind.LOG, ref_id="log-9"))
    fetched = incidents.get_incident(db, incident.id)

    assert [(e.kind, e.ref_id) for e in fetched.evidence] == [
        (EvidenceKind.IOC, "ioc-1"),
        (EvidenceKind.LOG, "log-9"),
    ]


def test_evidence_survives_a_fresh_session(engine, db, analyst):
    incident = incidents.create_incident(db, analyst, make_incident())
    incidents.add_incident_evidence(db, incident.id, Evidence(kind=EvidenceKind.ANALYSIS, ref_id="a-1"))

    with Session(engine) as other:
        assert len(incidents.get_incident(other, incident.id).evidence) == 1


def test_list_by_status(db, analyst):
    first = incidents.create_incident(db, analyst, make_incident(title="one"))
    second = incidents.create_incident(db, analyst, make_incident(title="two"))
    incidents.update_incident_status(db, first.id, IncidentStatus.RESOLVED)

    assert [i.id for i in incidents.list_incidents(db, status="open")] == [second.id]
    assert [i.id for i in incidents.list_incidents(db, status="resolved")] == [first.id]
    assert [i.id for i in incidents.list_incidents(db, status="all")] == [second.id, first.id]
    assert len(incidents.list_incidents(db, limit=1)) == 1


def test_missing_incident_raises_not_found(db):
    with pytest.raises(RecordNotFoundError):
        incidents.update_incident_status(db, "missing", IncidentStatus.RESOLVED)
    with pytest.raises(RecordNotFoundError):
        incidents.add_incident_evidence(db, "missing", Evidence(kind=EvidenceKind.IOC, ref_id="x"))


def test_unknown_evidence_kind_is_rejected():
    with pytest.raises(ValueError):
        Evidence(kind="screenshot", ref_id="x")
