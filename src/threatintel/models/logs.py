"""
Log models — processed security log events and raw threat logs.

SecurityLog is an already-classified event (level + anomaly score) shown on
the logs page. ThreatLog is a raw, opaque event payload waiting for AI
analysis; it is flipped to analyzed exactly once, when its analysis lands.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threatintel.models.common import LogLevel, Severity


class SecurityLogMetadata(BaseModel):
    user_agent: Optional[str] = None
    endpoint: Optional[str] = None
    method: Optional[str] = None
    status_code: Optional[int] = None


class SecurityLogCreate(BaseModel):
    source: str
    level: LogLevel
    message: str
    timestamp: Optional[datetime] = None    # defaults to now
    source_ip: Optional[str] = None
    metadata: Optional[SecurityLogMetadata] = None
    anomaly_score: int = Field(ge=0, le=100)
    is_demo: bool = False


class SecurityLog(BaseModel):
    id: str
    source: str
    level: LogLevel
    message: str
    timestamp: datetime
    source_ip: Optional[str] = None
    metadata: Optional[SecurityLogMetadata] = None
    anomaly_score: int
    is_demo: bool = False
    created_at: datetime


class LogStats(BaseModel):
    total: int
    last_24h: int
    anomalies: int                     # anomaly_score > 70
    by_level: dict[str, int]
    by_source: dict[str, int]


class ThreatLogMetadata(BaseModel):
    source_ip: Optional[str] = None
    user_agent: Optional[str] = None
    endpoint: Optional[str] = None


class ThreatLogCreate(BaseModel):
    raw_data: str = Field(min_length=1)
    source: str
    event_type: str
    metadata: Optional[ThreatLogMetadata] = None


class ThreatLog(BaseModel):
    id: str
    raw_data: str
    source: str
    event_type: str
    timestamp: datetime
    analyzed: bool = False
    ai_analysis_id: Optional[str] = None
    severity: Optional[Severity] = None
    metadata: Optional[ThreatLogMetadata] = None
    created_at: datetime
