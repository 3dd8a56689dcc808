"""
MITRE ATT&CK reference table and coverage summary.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MitreTechnique(BaseModel):
    technique_id: str         # e.g. "T1566"
    name: str
    tactic: str               # e.g. "Initial Access"
    description: str
    subtechniques: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    url: str


class TacticCoverage(BaseModel):
    total: int = 0
    detected: int = 0


class CoverageStats(BaseModel):
    total_techniques: int
    detected_techniques: int
    coverage_percent: int
    by_tactic: dict[str, TacticCoverage] = Field(default_factory=dict)
