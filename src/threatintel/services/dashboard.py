"""
Dashboard — headline metrics and the mixed "latest activity" feed.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.tables import AnalysisRow, IocRow, SecurityLogRow, ThreatLogRow, utcnow
from threatintel.models.common import LogLevel, Severity, log_level_severity
from threatintel.models.insights import DashboardMetrics, DashboardTrends, FeedItem
from threatintel.services.query import count

FEED_LIMIT = 20
FEED_PER_KIND = 10


def dashboard_metrics(db: Session, now: Optional[datetime] = None) -> DashboardMetrics:
    now = now or utcnow()
    last_24h = now - timedelta(hours=24)
    last_7d = now - timedelta(days=7)

    return DashboardMetrics(
        active_threats=count(
            db, IocRow, IocRow.is_active.is_(True), IocRow.severity == Severity.CRITICAL.value
        ),
        log_events=count(db, SecurityLogRow, SecurityLogRow.timestamp > last_24h),
        ai_analyses=count(db, AnalysisRow),
        recent_threats=count(db, ThreatLogRow, ThreatLogRow.timestamp > last_24h),
        trends=DashboardTrends(
            threats=count(db, IocRow, IocRow.first_seen > last_7d),
            logs=count(db, SecurityLogRow, SecurityLogRow.timestamp > last_7d),
            analyses=count(db, AnalysisRow, AnalysisRow.created_at > last_7d),
        ),
    )


def threat_feed(
    db: Session, limit: int = FEED_LIMIT, per_kind: int = FEED_PER_KIND
) -> list[FeedItem]:
    """Latest IOCs, analyses and logs merged into one timeline, newest first."""
    iocs = db.scalars(select(IocRow).order_by(IocRow.created_at.desc()).limit(per_kind))
    analyses = db.scalars(select(AnalysisRow).order_by(AnalysisRow.created_at.desc()).limit(per_kind))
    logs = db.scalars(select(SecurityLogRow).order_by(SecurityLogRow.timestamp.desc()).limit(per_kind))

    feed: list[FeedItem] = []
    for ioc in iocs:
        feed.append(
            FeedItem(
                id=ioc.id,
                type="ioc",
                title=f"{ioc.type.upper()}: {ioc.value}",
                severity=ioc.severity,
                timestamp=ioc.last_seen,
                description=ioc.description or f"{ioc.type} indicator detected",
            )
        )
    for analysis in analyses:
        feed.append(
            FeedItem(
                id=analysis.id,
                type="analysis",
                title=analysis.summary,
                severity=analysis.severity,
                timestamp=analysis.created_at,
                description=f"AI Analysis: {analysis.analysis_type}",
            )
        )
    for log in logs:
        feed.append(
            FeedItem(
                id=log.id,
                type="log",
                title=log.message,
                severity=log_level_severity(LogLevel(log.level)),
                timestamp=log.timestamp,
                description=f"{log.source}: {log.level}",
            )
        )

    feed.sort(key=lambda item: item.timestamp, reverse=True)
    return feed[:limit]
