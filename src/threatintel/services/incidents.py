"""
Incident store. Incidents are never deleted; status and evidence change
incrementally.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import IncidentRow
from threatintel.errors import RecordNotFoundError
from threatintel.models.common import SYSTEM_IDENTITY, Identity, IncidentStatus
from threatintel.models.incident import Evidence, Incident, IncidentCreate
from threatintel.services.query import enum_filter

logger = logging.getLogger(__name__)


def list_incidents(
    db: Session, status: Optional[str] = None, limit: Optional[int] = None
) -> list[Incident]:
    stmt = select(IncidentRow)
    st = enum_filter(IncidentStatus, status)
    if st is not None:
        stmt = stmt.where(IncidentRow.status == st.value)
    stmt = stmt.order_by(IncidentRow.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return to_records(Incident, db.scalars(stmt).all())


def get_incident(db: Session, incident_id: str) -> Incident:
    return to_record(Incident, _get_row(db, incident_id))


def create_incident(
    db: Session, identity: Optional[Identity], data: IncidentCreate
) -> Incident:
    creator = identity or SYSTEM_IDENTITY
    row = IncidentRow(
        title=data.title,
        description=data.description,
        severity=data.severity.value,
        status=IncidentStatus.OPEN.value,
        assignee=data.assignee,
        tags=list(data.tags),
        evidence=[e.model_dump(mode="json") for e in data.evidence],
        created_by=creator.user_id,
        mitre_techniques=list(data.mitre_techniques),
    )
    db.add(row)
    db.commit()
    logger.info(
        "incident_store.created",
        extra={"incident_id": row.id, "severity": row.severity, "user": creator.user_id},
    )
    return to_record(Incident, row)


def update_incident_status(db: Session, incident_id: str, status: IncidentStatus) -> Incident:
    row = _get_row(db, incident_id)
    row.status = IncidentStatus(status).value
    db.commit()
    logger.info("incident_store.status_changed", extra={"incident_id": incident_id, "status": row.status})
    return to_record(Incident, row)


def add_incident_evidence(db: Session, incident_id: str, evidence: Evidence) -> Incident:
    row = _get_row(db, incident_id)
    # reassign so the JSON column is flagged dirty
    row.evidence = [*(row.evidence or []), evidence.model_dump(mode="json")]
    db.commit()
    logger.info(
        "incident_store.evidence_added",
        extra={"incident_id": incident_id, "kind": evidence.kind.value, "ref_id": evidence.ref_id},
    )
    return to_record(Incident, row)


def _get_row(db: Session, incident_id: str) -> IncidentRow:
    row = db.get(IncidentRow, incident_id)
    if row is None:
        raise RecordNotFoundError("Incident", incident_id)
    return row
