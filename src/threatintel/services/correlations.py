"""
Correlation store.

Creation is idempotent on (source_type, source_id, target_type, target_id).
The uniqueness is enforced by the uq_correlation_pair constraint: we insert
first and, if another writer already holds the key, roll back and return the
existing row. There is no read-then-write window.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import CorrelationRow
from threatintel.models.common import EntityKind
from threatintel.models.correlation import Correlation, CorrelationCreate, CorrelationStats
from threatintel.services.query import count, count_by

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_THRESHOLD = 80


def get_correlations(db: Session, entity_type: EntityKind, entity_id: str) -> list[Correlation]:
    """Correlations where the entity is the source, followed by those where it is the target."""
    kind = EntityKind(entity_type).value
    as_source = db.scalars(
        select(CorrelationRow)
        .where(CorrelationRow.source_type == kind, CorrelationRow.source_id == entity_id)
        .order_by(CorrelationRow.detected_at)
    ).all()
    as_target = db.scalars(
        select(CorrelationRow)
        .where(CorrelationRow.target_type == kind, CorrelationRow.target_id == entity_id)
        .order_by(CorrelationRow.detected_at)
    ).all()
    return to_records(Correlation, [*as_source, *as_target])


def correlation_stats(db: Session) -> CorrelationStats:
    return CorrelationStats(
        total=count(db, CorrelationRow),
        by_type=count_by(db, CorrelationRow.correlation_type),
        high_confidence=count(db, CorrelationRow, CorrelationRow.confidence > HIGH_CONFIDENCE_THRESHOLD),
    )


def create_correlation(db: Session, data: CorrelationCreate) -> Correlation:
    """Insert a correlation, or return the existing one for the same entity pair."""
    row = CorrelationRow(
        source_type=data.source_type.value,
        source_id=data.source_id,
        target_type=data.target_type.value,
        target_id=data.target_id,
        correlation_type=data.correlation_type,
        confidence=data.confidence,
        matched_value=data.matched_value,
        reason=data.reason,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_existing(db, data)
        if existing is None:
            raise
        logger.info("correlation_store.duplicate", extra={"correlation_id": existing.id})
        return to_record(Correlation, existing)

    logger.info(
        "correlation_store.created",
        extra={"correlation_id": row.id, "correlation_type": row.correlation_type},
    )
    return to_record(Correlation, row)


def _find_existing(db: Session, data: CorrelationCreate) -> CorrelationRow | None:
    return db.scalars(
        select(CorrelationRow).where(
            CorrelationRow.source_type == data.source_type.value,
            CorrelationRow.source_id == data.source_id,
            CorrelationRow.target_type == data.target_type.value,
            CorrelationRow.target_id == data.target_id,
        )
    ).first()
