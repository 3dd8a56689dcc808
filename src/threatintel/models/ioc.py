"""
IOC models — indicators of compromise tracked by analysts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threatintel.models.common import IocType, Severity


class IocCreate(BaseModel):
    type: IocType
    value: str = Field(min_length=1)
    severity: Severity
    description: Optional[str] = None
    source: str
    tags: list[str] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)
    mitre_techniques: list[str] = Field(default_factory=list)   # e.g. "T1566"


class IocUpdate(BaseModel):
    """Partial update. Fields left as None are not touched."""

    severity: Optional[Severity] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    mitre_techniques: Optional[list[str]] = None


class Ioc(BaseModel):
    id: str
    type: IocType
    value: str
    severity: Severity
    description: Optional[str] = None
    source: str
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    first_seen: datetime
    last_seen: datetime
    confidence: int
    created_by: str
    mitre_techniques: list[str] = Field(default_factory=list)
    created_at: datetime


class IocStats(BaseModel):
    total: int
    active: int
    by_severity: dict[str, int]
    by_type: dict[str, int]
