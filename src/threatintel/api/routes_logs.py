from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from threatintel.db.session import get_db
from threatintel.models.analysis import AIAnalysis
from threatintel.models.logs import LogStats, SecurityLog, SecurityLogCreate, ThreatLog, ThreatLogCreate
from threatintel.services import logs, threat_logs

router = APIRouter(tags=["logs"])


# ---------------------------------------------------------------------------
# Security logs
# ---------------------------------------------------------------------------

@router.get("/logs", response_model=List[SecurityLog], summary="List security log events")
def list_logs(
    source: Optional[str] = None,
    level: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    min_anomaly_score: Optional[int] = None,
    live_only: bool = False,
    limit: int = Query(logs.DEFAULT_LIMIT, ge=1),
    db: Session = Depends(get_db),
) -> List[SecurityLog]:
    return logs.list_logs(
        db,
        source=source,
        level=level,
        start_time=start_time,
        end_time=end_time,
        min_anomaly_score=min_anomaly_score,
        live_only=live_only,
        limit=limit,
    )


@router.get("/logs/stats", response_model=LogStats)
def log_stats(live_only: bool = False, db: Session = Depends(get_db)) -> LogStats:
    return logs.log_stats(db, live_only=live_only)


@router.post("/logs", response_model=SecurityLog, status_code=status.HTTP_201_CREATED)
def create_log(payload: SecurityLogCreate, db: Session = Depends(get_db)) -> SecurityLog:
    return logs.create_log(db, payload)


@router.post("/logs/samples", summary="Insert demo log events")
def create_sample_logs(db: Session = Depends(get_db)) -> dict:
    return {"created": logs.create_sample_logs(db)}


# ---------------------------------------------------------------------------
# Raw threat logs
# ---------------------------------------------------------------------------

@router.get("/threat-logs", response_model=List[ThreatLog])
def list_threat_logs(
    analyzed: Optional[bool] = None,
    limit: int = Query(threat_logs.DEFAULT_LIMIT, ge=1),
    db: Session = Depends(get_db),
) -> List[ThreatLog]:
    return threat_logs.list_threat_logs(db, analyzed=analyzed, limit=limit)


@router.get("/threat-logs/latest", response_model=Optional[ThreatLog])
def latest_threat_log(db: Session = Depends(get_db)) -> Optional[ThreatLog]:
    return threat_logs.latest_threat_log(db)


@router.get("/threat-logs/latest/analysis", response_model=Optional[AIAnalysis])
def latest_threat_analysis(db: Session = Depends(get_db)) -> Optional[AIAnalysis]:
    return threat_logs.latest_threat_analysis(db)


@router.post("/threat-logs", response_model=ThreatLog, status_code=status.HTTP_201_CREATED)
def insert_threat_log(payload: ThreatLogCreate, db: Session = Depends(get_db)) -> ThreatLog:
    return threat_logs.insert_threat_log(db, payload)
