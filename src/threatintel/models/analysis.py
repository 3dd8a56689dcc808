"""
Analysis models — AI pipeline output and the persisted AIAnalysis record.

AnalysisResult is what the pipeline returns; it carries exactly the five
contract fields the model must produce plus the two tags the pipeline adds.
AIAnalysis is the stored record, which may also be a hand-written demo seed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threatintel.models.common import Severity

AI_THREAT_ANALYSIS = "ai_threat_analysis"
DEFAULT_TARGET_TYPE = "custom_analysis"


class AnalysisContract(BaseModel):
    """The strict JSON object the completion model must return."""

    summary: str                                  # 1–2 sentences
    details: str                                  # starts with "Cause:"
    recommendations: list[str]                    # highest priority first
    severity: Severity
    confidence: int = Field(ge=0, le=100)


class AnalysisResult(AnalysisContract):
    target_type: str = DEFAULT_TARGET_TYPE
    analysis_type: str = AI_THREAT_ANALYSIS


class AnalysisMetadata(BaseModel):
    model: Optional[str] = None
    processing_time_ms: Optional[int] = None
    data_points: Optional[int] = None


class AIAnalysis(BaseModel):
    id: str
    target_type: str
    target_id: Optional[str] = None
    analysis_type: str
    summary: str
    details: str
    recommendations: list[str] = Field(default_factory=list)
    severity: Severity
    confidence: int
    metadata: Optional[AnalysisMetadata] = None
    is_demo: bool = False
    mitre_techniques: list[str] = Field(default_factory=list)
    created_at: datetime


class AnalysisStats(BaseModel):
    total: int
    high_confidence: int               # confidence > 80
    by_severity: dict[str, int]
    by_type: dict[str, int]


class AnalysisSaveRequest(AnalysisResult):
    """Body for persisting an analysis produced elsewhere (UI, seed, pipeline)."""

    target_id: Optional[str] = None
    metadata: Optional[AnalysisMetadata] = None
    mitre_techniques: list[str] = Field(default_factory=list)
    is_demo: bool = False


class AnalyzeRequest(BaseModel):
    content: str = Field(min_length=1)
    target_type: Optional[str] = None


class AnalyzeResponse(BaseModel):
    """Body returned by POST /analyze."""

    id: str
    summary: str
    details: str
    recommendations: list[str]
    severity: Severity
    confidence: int
