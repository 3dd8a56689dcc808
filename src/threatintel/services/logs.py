"""
Security log store — processed log events, newest first by event timestamp.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import SecurityLogRow, utcnow
from threatintel.models.common import LogLevel
from threatintel.models.logs import LogStats, SecurityLog, SecurityLogCreate, SecurityLogMetadata
from threatintel.services.query import count, count_by, enum_filter, enum_keys, text_filter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
ANOMALY_THRESHOLD = 70


def list_logs(
    db: Session,
    source: Optional[str] = None,
    level: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    min_anomaly_score: Optional[int] = None,
    live_only: bool = False,
    limit: int = DEFAULT_LIMIT,
) -> list[SecurityLog]:
    stmt = select(SecurityLogRow)

    src = text_filter(source)
    if src is not None:
        stmt = stmt.where(SecurityLogRow.source == src)

    lvl = enum_filter(LogLevel, level)
    if lvl is not None:
        stmt = stmt.where(SecurityLogRow.level == lvl.value)

    if start_time is not None:
        stmt = stmt.where(SecurityLogRow.timestamp >= start_time)
    if end_time is not None:
        stmt = stmt.where(SecurityLogRow.timestamp <= end_time)

    if min_anomaly_score is not None:
        stmt = stmt.where(SecurityLogRow.anomaly_score >= min_anomaly_score)

    if live_only:
        stmt = stmt.where(SecurityLogRow.is_demo.is_(False))

    stmt = stmt.order_by(SecurityLogRow.timestamp.desc()).limit(limit)
    return to_records(SecurityLog, db.scalars(stmt).all())


def log_stats(db: Session, live_only: bool = False, now: Optional[datetime] = None) -> LogStats:
    now = now or utcnow()
    base = [SecurityLogRow.is_demo.is_(False)] if live_only else []

    return LogStats(
        total=count(db, SecurityLogRow, *base),
        last_24h=count(db, SecurityLogRow, *base, SecurityLogRow.timestamp > now - timedelta(hours=24)),
        anomalies=count(db, SecurityLogRow, *base, SecurityLogRow.anomaly_score > ANOMALY_THRESHOLD),
        by_level=count_by(db, SecurityLogRow.level, *base, keys=enum_keys(LogLevel)),
        by_source=count_by(db, SecurityLogRow.source, *base),
    )


def create_log(db: Session, data: SecurityLogCreate) -> SecurityLog:
    row = SecurityLogRow(
        source=data.source,
        level=data.level.value,
        message=data.message,
        timestamp=data.timestamp or utcnow(),
        source_ip=data.source_ip,
        extra=data.metadata.model_dump(exclude_none=True) if data.metadata else None,
        anomaly_score=data.anomaly_score,
        is_demo=data.is_demo,
    )
    db.add(row)
    db.commit()
    logger.info(
        "log_store.created",
        extra={"log_id": row.id, "source": row.source, "level": row.level},
    )
    return to_record(SecurityLog, row)


def create_sample_logs(db: Session) -> int:
    """Insert demo log events spread over the last 24h. Returns the number created."""
    now = utcnow()
    samples = [
        SecurityLogCreate(
            source="firewall",
            level=LogLevel.WARN,
            message="Suspicious connection attempt from 192.168.1.100",
            source_ip="192.168.1.100",
            anomaly_score=75,
        ),
        SecurityLogCreate(
            source="web_server",
            level=LogLevel.ERROR,
            message="SQL injection attempt detected in login form",
            source_ip="203.0.113.45",
            anomaly_score=95,
            metadata=SecurityLogMetadata(endpoint="/login", method="POST", status_code=400),
        ),
        SecurityLogCreate(
            source="ids",
            level=LogLevel.CRITICAL,
            message="Malware signature detected in network traffic",
            source_ip="198.51.100.23",
            anomaly_score=98,
        ),
        SecurityLogCreate(
            source="auth_system",
            level=LogLevel.INFO,
            message="User login successful",
            source_ip="10.0.0.15",
            anomaly_score=10,
        ),
    ]
    for sample in samples:
        sample.timestamp = now - timedelta(seconds=random.uniform(0, 86400))
        sample.is_demo = True
        create_log(db, sample)
    return len(samples)
