"""
Threat log store — raw event payloads queued for AI analysis.

A threat log is inserted with analyzed=False and flipped exactly once by
mark_threat_log_analyzed(), which also links the analysis id, so
analyzed=True always implies ai_analysis_id is set.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import AnalysisRow, ThreatLogRow, utcnow
from threatintel.errors import RecordNotFoundError
from threatintel.models.analysis import AIAnalysis
from threatintel.models.common import Severity
from threatintel.models.logs import ThreatLog, ThreatLogCreate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def insert_threat_log(db: Session, data: ThreatLogCreate) -> ThreatLog:
    now = utcnow()
    row = ThreatLogRow(
        raw_data=data.raw_data,
        source=data.source,
        event_type=data.event_type,
        timestamp=now,
        analyzed=False,
        extra=data.metadata.model_dump(exclude_none=True) if data.metadata else None,
        created_at=now,
    )
    db.add(row)
    db.commit()
    logger.info(
        "threat_log_store.inserted",
        extra={"threat_log_id": row.id, "source": row.source, "event_type": row.event_type},
    )
    return to_record(ThreatLog, row)


def mark_threat_log_analyzed(
    db: Session, threat_log_id: str, analysis_id: str, severity: Severity
) -> ThreatLog:
    row = db.get(ThreatLogRow, threat_log_id)
    if row is None:
        raise RecordNotFoundError("Threat log", threat_log_id)

    row.analyzed = True
    row.ai_analysis_id = analysis_id
    row.severity = severity.value
    db.commit()
    logger.info(
        "threat_log_store.analyzed",
        extra={"threat_log_id": threat_log_id, "analysis_id": analysis_id},
    )
    return to_record(ThreatLog, row)


def list_threat_logs(
    db: Session, analyzed: Optional[bool] = None, limit: int = DEFAULT_LIMIT
) -> list[ThreatLog]:
    stmt = select(ThreatLogRow)
    if analyzed is not None:
        stmt = stmt.where(ThreatLogRow.analyzed == analyzed)
    stmt = stmt.order_by(ThreatLogRow.created_at.desc()).limit(limit)
    return to_records(ThreatLog, db.scalars(stmt).all())


def latest_threat_log(db: Session) -> Optional[ThreatLog]:
    logs = list_threat_logs(db, limit=1)
    return logs[0] if logs else None


def latest_threat_analysis(db: Session) -> Optional[AIAnalysis]:
    """The analysis linked from the newest threat log, if it has one."""
    latest = latest_threat_log(db)
    if latest is None or latest.ai_analysis_id is None:
        return None
    row = db.get(AnalysisRow, latest.ai_analysis_id)
    return to_record(AIAnalysis, row) if row is not None else None
