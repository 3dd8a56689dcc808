from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from threatintel.agents.analyze import analyze
from threatintel.db.session import get_db
from threatintel.models.analysis import (
    AIAnalysis,
    AnalysisResult,
    AnalysisSaveRequest,
    AnalysisStats,
    AnalyzeRequest,
)
from threatintel.services import analyses

router = APIRouter(
    prefix="/analyses",
    tags=["analysis"],
)


@router.get("", response_model=List[AIAnalysis], summary="List AI analyses")
def list_analyses(
    analysis_type: Optional[str] = None,
    target_type: Optional[str] = None,
    min_confidence: Optional[int] = None,
    live_only: bool = False,
    limit: int = Query(analyses.DEFAULT_LIMIT, ge=1),
    db: Session = Depends(get_db),
) -> List[AIAnalysis]:
    return analyses.list_analyses(
        db,
        analysis_type=analysis_type,
        target_type=target_type,
        min_confidence=min_confidence,
        live_only=live_only,
        limit=limit,
    )


@router.get("/stats", response_model=AnalysisStats)
def analysis_stats(live_only: bool = False, db: Session = Depends(get_db)) -> AnalysisStats:
    return analyses.analysis_stats(db, live_only=live_only)


@router.post("/generate", response_model=AnalysisResult, summary="Run the AI pipeline (not persisted)")
async def generate_analysis(request: AnalyzeRequest) -> AnalysisResult:
    """
    Run the AI analysis pipeline on arbitrary text.

    The result is returned to the caller without being stored; POST it back
    to /analyses to persist it.
    """
    return await analyze(request.content, request.target_type)


@router.post("/samples", summary="Insert demo analyses")
def create_sample_analyses(db: Session = Depends(get_db)) -> dict:
    return {"created": analyses.create_sample_analyses(db)}


@router.get("/{analysis_id}", response_model=AIAnalysis)
def get_analysis(analysis_id: str, db: Session = Depends(get_db)) -> AIAnalysis:
    return analyses.get_analysis(db, analysis_id)


@router.post("", response_model=AIAnalysis, status_code=status.HTTP_201_CREATED)
def save_analysis(payload: AnalysisSaveRequest, db: Session = Depends(get_db)) -> AIAnalysis:
    result = AnalysisResult.model_validate(
        payload.model_dump(include=set(AnalysisResult.model_fields))
    )
    return analyses.save_analysis(
        db,
        result,
        target_id=payload.target_id,
        metadata=payload.metadata,
        mitre_techniques=payload.mitre_techniques,
        is_demo=payload.is_demo,
    )
