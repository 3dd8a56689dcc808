"""
AI analysis store — persists pipeline output and seeds demo analyses.

Analyses are never mutated once written. The pipeline itself
(threatintel.agents.analyze) performs no writes; callers hand its
AnalysisResult to save_analysis().
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import AnalysisRow
from threatintel.errors import RecordNotFoundError
from threatintel.models.analysis import AIAnalysis, AnalysisMetadata, AnalysisResult, AnalysisStats
from threatintel.models.common import Severity
from threatintel.services.query import count, count_by, enum_keys, text_filter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
HIGH_CONFIDENCE_THRESHOLD = 80


def list_analyses(
    db: Session,
    analysis_type: Optional[str] = None,
    target_type: Optional[str] = None,
    min_confidence: Optional[int] = None,
    live_only: bool = False,
    limit: int = DEFAULT_LIMIT,
) -> list[AIAnalysis]:
    stmt = select(AnalysisRow)

    if live_only:
        stmt = stmt.where(AnalysisRow.is_demo.is_(False))

    a_type = text_filter(analysis_type)
    if a_type is not None:
        stmt = stmt.where(AnalysisRow.analysis_type == a_type)

    t_type = text_filter(target_type)
    if t_type is not None:
        stmt = stmt.where(AnalysisRow.target_type == t_type)

    if min_confidence is not None:
        stmt = stmt.where(AnalysisRow.confidence >= min_confidence)

    stmt = stmt.order_by(AnalysisRow.created_at.desc()).limit(limit)
    return to_records(AIAnalysis, db.scalars(stmt).all())


def get_analysis(db: Session, analysis_id: str) -> AIAnalysis:
    row = db.get(AnalysisRow, analysis_id)
    if row is None:
        raise RecordNotFoundError("AI analysis", analysis_id)
    return to_record(AIAnalysis, row)


def analysis_stats(db: Session, live_only: bool = False) -> AnalysisStats:
    base = [AnalysisRow.is_demo.is_(False)] if live_only else []
    return AnalysisStats(
        total=count(db, AnalysisRow, *base),
        high_confidence=count(db, AnalysisRow, *base, AnalysisRow.confidence > HIGH_CONFIDENCE_THRESHOLD),
        by_severity=count_by(db, AnalysisRow.severity, *base, keys=enum_keys(Severity)),
        by_type=count_by(db, AnalysisRow.analysis_type, *base),
    )


def save_analysis(
    db: Session,
    result: AnalysisResult,
    *,
    target_id: Optional[str] = None,
    metadata: Optional[AnalysisMetadata] = None,
    mitre_techniques: Optional[list[str]] = None,
    is_demo: bool = False,
) -> AIAnalysis:
    row = AnalysisRow(
        target_type=result.target_type,
        target_id=target_id,
        analysis_type=result.analysis_type,
        summary=result.summary,
        details=result.details,
        recommendations=list(result.recommendations),
        severity=result.severity.value,
        confidence=result.confidence,
        extra=metadata.model_dump(exclude_none=True) if metadata else None,
        is_demo=is_demo,
        mitre_techniques=list(mitre_techniques or []),
    )
    db.add(row)
    db.commit()
    logger.info(
        "analysis_store.saved",
        extra={
            "analysis_id": row.id,
            "target_type": row.target_type,
            "severity": row.severity,
            "confidence": row.confidence,
            "is_demo": is_demo,
        },
    )
    return to_record(AIAnalysis, row)


_SAMPLE_ANALYSES: list[AnalysisResult] = [
    AnalysisResult(
        target_type="network_traffic",
        analysis_type="anomaly_detection",
        summary="Unusual data exfiltration pattern detected",
        details=(
            "Cause: abnormal outbound transfer volume during off-hours. "
            "Network traffic analysis suggests a potential data exfiltration attempt."
        ),
        recommendations=[
            "Block suspicious IP addresses",
            "Implement DLP policies",
            "Monitor user activity during off-hours",
        ],
        severity=Severity.HIGH,
        confidence=87,
    ),
    AnalysisResult(
        target_type="log_analysis",
        analysis_type="threat_classification",
        summary="Potential brute force attack identified",
        details=(
            "Cause: many failed logins from a single IP in a short window. "
            "The pattern matches a credential brute force attempt."
        ),
        recommendations=[
            "Implement account lockout policies",
            "Enable multi-factor authentication",
            "Block attacking IP address",
        ],
        severity=Severity.MEDIUM,
        confidence=92,
    ),
    AnalysisResult(
        target_type="malware_analysis",
        analysis_type="behavioral_analysis",
        summary="Advanced persistent threat (APT) indicators found",
        details=(
            "Cause: persistence mechanisms and C2 beaconing observed. "
            "Behavioral analysis reveals sophisticated malware with command and control traffic."
        ),
        recommendations=[
            "Isolate affected systems",
            "Update antivirus signatures",
            "Conduct forensic analysis",
            "Review network segmentation",
        ],
        severity=Severity.CRITICAL,
        confidence=95,
    ),
]


def create_sample_analyses(db: Session) -> int:
    for sample in _SAMPLE_ANALYSES:
        save_analysis(db, sample, is_demo=True)
    return len(_SAMPLE_ANALYSES)
