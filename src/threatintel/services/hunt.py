"""
Threat hunt — one search fanned out over IOCs, security logs and analyses.

Each kind is filtered independently, mapped into the common HuntResult shape,
then the union is sorted newest first and truncated. Filters per kind:

  filter          iocs   logs   analyses
  keyword         yes    yes    yes
  source          yes    yes    -
  time range      yes    yes    -
  min_severity    yes    -      yes
  min_confidence  yes    -      yes
  min_anomaly     -      yes    -

Logs are reported with the severity derived from their level (critical →
critical, error → high, otherwise medium) but are never filtered on it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from threatintel.db.tables import AnalysisRow, IocRow, SecurityLogRow
from threatintel.models.common import SEVERITY_ORDER, LogLevel, Severity, log_level_severity
from threatintel.models.insights import HuntResult, HuntStats
from threatintel.services.query import count, enum_filter, text_filter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
ANOMALY_THRESHOLD = 70
HIGH_CONFIDENCE_THRESHOLD = 80


def _severities_at_least(minimum: Severity) -> list[str]:
    floor = SEVERITY_ORDER[minimum]
    return [sev.value for sev, rank in SEVERITY_ORDER.items() if rank >= floor]


def _hunt_iocs(
    db: Session,
    keyword: Optional[str],
    source: Optional[str],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    min_severity: Optional[Severity],
    min_confidence: Optional[int],
    limit: int,
) -> list[HuntResult]:
    stmt = select(IocRow)
    if keyword:
        stmt = stmt.where(
            or_(
                IocRow.value.icontains(keyword, autoescape=True),
                IocRow.description.icontains(keyword, autoescape=True),
            )
        )
    if source:
        stmt = stmt.where(IocRow.source == source)
    if start_time is not None:
        stmt = stmt.where(IocRow.first_seen >= start_time)
    if end_time is not None:
        stmt = stmt.where(IocRow.last_seen <= end_time)
    if min_severity is not None:
        stmt = stmt.where(IocRow.severity.in_(_severities_at_least(min_severity)))
    if min_confidence:
        stmt = stmt.where(IocRow.confidence >= min_confidence)
    stmt = stmt.order_by(IocRow.last_seen.desc()).limit(limit)

    return [
        HuntResult(
            id=ioc.id,
            type="ioc",
            title=f"{ioc.type.upper()}: {ioc.value}",
            description=ioc.description or "",
            severity=ioc.severity,
            timestamp=ioc.last_seen,
            source=ioc.source,
            confidence=ioc.confidence,
            anomaly_score=None,
        )
        for ioc in db.scalars(stmt)
    ]


def _hunt_logs(
    db: Session,
    keyword: Optional[str],
    source: Optional[str],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    min_anomaly: Optional[int],
    limit: int,
) -> list[HuntResult]:
    stmt = select(SecurityLogRow)
    if keyword:
        stmt = stmt.where(SecurityLogRow.message.icontains(keyword, autoescape=True))
    if source:
        stmt = stmt.where(SecurityLogRow.source == source)
    if start_time is not None:
        stmt = stmt.where(SecurityLogRow.timestamp >= start_time)
    if end_time is not None:
        stmt = stmt.where(SecurityLogRow.timestamp <= end_time)
    if min_anomaly:
        stmt = stmt.where(SecurityLogRow.anomaly_score >= min_anomaly)
    stmt = stmt.order_by(SecurityLogRow.timestamp.desc()).limit(limit)

    return [
        HuntResult(
            id=log.id,
            type="log",
            title=log.message,
            description=f"{log.source} - {log.level}",
            severity=log_level_severity(LogLevel(log.level)),
            timestamp=log.timestamp,
            source=log.source,
            confidence=None,
            anomaly_score=log.anomaly_score,
        )
        for log in db.scalars(stmt)
    ]


def _hunt_analyses(
    db: Session,
    keyword: Optional[str],
    min_severity: Optional[Severity],
    min_confidence: Optional[int],
    limit: int,
) -> list[HuntResult]:
    stmt = select(AnalysisRow)
    if keyword:
        stmt = stmt.where(
            or_(
                AnalysisRow.summary.icontains(keyword, autoescape=True),
                AnalysisRow.details.icontains(keyword, autoescape=True),
            )
        )
    if min_severity is not None:
        stmt = stmt.where(AnalysisRow.severity.in_(_severities_at_least(min_severity)))
    if min_confidence:
        stmt = stmt.where(AnalysisRow.confidence >= min_confidence)
    stmt = stmt.order_by(AnalysisRow.created_at.desc()).limit(limit)

    return [
        HuntResult(
            id=analysis.id,
            type="analysis",
            title=analysis.summary,
            description=analysis.details,
            severity=analysis.severity,
            timestamp=analysis.created_at,
            source=analysis.target_type,
            confidence=analysis.confidence,
            anomaly_score=None,
        )
        for analysis in db.scalars(stmt)
    ]


def hunt_search(
    db: Session,
    keyword: Optional[str] = None,
    source: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    min_severity: Optional[str] = None,
    min_confidence: Optional[int] = None,
    min_anomaly: Optional[int] = None,
    limit: int = DEFAULT_LIMIT,
) -> list[HuntResult]:
    """Search IOCs, logs and analyses at once; newest matches first."""
    src = text_filter(source)
    floor = enum_filter(Severity, min_severity)

    # each kind is capped at `limit` already sorted, so the merged top-`limit` is exact
    results = [
        *_hunt_iocs(db, keyword, src, start_time, end_time, floor, min_confidence, limit),
        *_hunt_logs(db, keyword, src, start_time, end_time, min_anomaly, limit),
        *_hunt_analyses(db, keyword, floor, min_confidence, limit),
    ]
    results.sort(key=lambda r: r.timestamp, reverse=True)

    logger.info(
        "hunt.search",
        extra={"keyword": keyword, "matched": len(results), "returned": min(len(results), limit)},
    )
    return results[:limit]


def hunt_stats(db: Session) -> HuntStats:
    return HuntStats(
        total_iocs=count(db, IocRow),
        total_logs=count(db, SecurityLogRow),
        total_analyses=count(db, AnalysisRow),
        high_severity_iocs=count(
            db, IocRow, IocRow.severity.in_([Severity.HIGH.value, Severity.CRITICAL.value])
        ),
        anomalous_logs=count(db, SecurityLogRow, SecurityLogRow.anomaly_score > ANOMALY_THRESHOLD),
        high_confidence_analyses=count(
            db, AnalysisRow, AnalysisRow.confidence > HIGH_CONFIDENCE_THRESHOLD
        ),
    )
