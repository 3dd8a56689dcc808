"""
Correlation models — a detected link between two (kind, id) entities.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threatintel.models.common import EntityKind


class CorrelationCreate(BaseModel):
    source_type: EntityKind
    source_id: str
    target_type: EntityKind
    target_id: str
    correlation_type: str     # ip_match / domain_match / hash_match / temporal / behavioral
    confidence: int = Field(ge=0, le=100)
    matched_value: Optional[str] = None
    reason: Optional[str] = None


class Correlation(BaseModel):
    id: str
    source_type: EntityKind
    source_id: str
    target_type: EntityKind
    target_id: str
    correlation_type: str
    confidence: int
    detected_at: datetime
    matched_value: Optional[str] = None
    reason: Optional[str] = None


class CorrelationStats(BaseModel):
    total: int
    by_type: dict[str, int]
    high_confidence: int      # confidence > 80
