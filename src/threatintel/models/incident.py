"""
Incident models. Status transitions are free-form.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threatintel.models.common import EvidenceKind, IncidentStatus, Severity


class Evidence(BaseModel):
    kind: EvidenceKind
    ref_id: str


class IncidentCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    severity: Severity
    tags: list[str] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    assignee: Optional[str] = None
    mitre_techniques: list[str] = Field(default_factory=list)


class Incident(BaseModel):
    id: str
    title: str
    description: str = ""
    severity: Severity
    status: IncidentStatus = IncidentStatus.OPEN
    assignee: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    created_by: str
    mitre_techniques: list[str] = Field(default_factory=list)
    created_at: datetime
