"""
Cross-kind read models — hunt results, dashboard metrics and the threat feed.

These are flat projections over IOCs, security logs and analyses; they are
never stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from threatintel.models.common import Severity

RecordType = Literal["ioc", "log", "analysis"]


class HuntResult(BaseModel):
    id: str
    type: RecordType
    title: str
    description: str
    severity: Severity
    timestamp: datetime
    source: str
    confidence: Optional[int] = None       # None for logs
    anomaly_score: Optional[int] = None    # None for IOCs and analyses


class HuntStats(BaseModel):
    total_iocs: int
    total_logs: int
    total_analyses: int
    high_severity_iocs: int
    anomalous_logs: int
    high_confidence_analyses: int


class FeedItem(BaseModel):
    id: str
    type: RecordType
    title: str
    severity: Severity
    timestamp: datetime
    description: str


class DashboardTrends(BaseModel):
    threats: int
    logs: int
    analyses: int


class DashboardMetrics(BaseModel):
    active_threats: int          # active + critical IOCs
    log_events: int              # security logs in the last 24h
    ai_analyses: int
    recent_threats: int          # raw threat logs in the last 24h
    trends: DashboardTrends      # last 7 days
