"""
Read-mostly cross-kind endpoints: hunt, dashboard, MITRE coverage and
correlations, plus the demo data loader.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from threatintel.db.session import get_db
from threatintel.models.common import EntityKind
from threatintel.models.correlation import Correlation, CorrelationCreate, CorrelationStats
from threatintel.models.insights import DashboardMetrics, FeedItem, HuntResult, HuntStats
from threatintel.models.mitre import CoverageStats, MitreTechnique
from threatintel.services import correlations, dashboard, hunt, mitre, sample_data

router = APIRouter(tags=["insights"])


# ---------------------------------------------------------------------------
# Hunt
# ---------------------------------------------------------------------------

@router.get("/hunt", response_model=List[HuntResult], summary="Search IOCs, logs and analyses")
def hunt_search(
    keyword: Optional[str] = None,
    source: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    min_severity: Optional[str] = None,
    min_confidence: Optional[int] = None,
    min_anomaly: Optional[int] = None,
    limit: int = Query(hunt.DEFAULT_LIMIT, ge=1),
    db: Session = Depends(get_db),
) -> List[HuntResult]:
    return hunt.hunt_search(
        db,
        keyword=keyword,
        source=source,
        start_time=start_time,
        end_time=end_time,
        min_severity=min_severity,
        min_confidence=min_confidence,
        min_anomaly=min_anomaly,
        limit=limit,
    )


@router.get("/hunt/stats", response_model=HuntStats)
def hunt_stats(db: Session = Depends(get_db)) -> HuntStats:
    return hunt.hunt_stats(db)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@router.get("/dashboard/metrics", response_model=DashboardMetrics)
def dashboard_metrics(db: Session = Depends(get_db)) -> DashboardMetrics:
    return dashboard.dashboard_metrics(db)


@router.get("/dashboard/feed", response_model=List[FeedItem])
def threat_feed(limit: int = Query(dashboard.FEED_LIMIT, ge=1), db: Session = Depends(get_db)) -> List[FeedItem]:
    return dashboard.threat_feed(db, limit=limit)


# ---------------------------------------------------------------------------
# MITRE ATT&CK
# ---------------------------------------------------------------------------

@router.get("/mitre/techniques", response_model=List[MitreTechnique])
def list_techniques(tactic: Optional[str] = None, db: Session = Depends(get_db)) -> List[MitreTechnique]:
    return mitre.list_techniques(db, tactic=tactic)


@router.get("/mitre/tactics", response_model=List[str])
def list_tactics(db: Session = Depends(get_db)) -> List[str]:
    return mitre.list_tactics(db)


@router.get("/mitre/coverage", response_model=CoverageStats)
def coverage_stats(db: Session = Depends(get_db)) -> CoverageStats:
    return mitre.coverage_stats(db)


@router.post("/mitre/seed")
def seed_techniques(db: Session = Depends(get_db)) -> dict:
    created = mitre.seed_techniques(db)
    if not created:
        return {"message": "MITRE techniques already seeded", "created": 0}
    return {"created": created}


# ---------------------------------------------------------------------------
# Correlations
# ---------------------------------------------------------------------------

@router.get("/correlations/stats", response_model=CorrelationStats)
def correlation_stats(db: Session = Depends(get_db)) -> CorrelationStats:
    return correlations.correlation_stats(db)


@router.get("/correlations/{entity_type}/{entity_id}", response_model=List[Correlation])
def get_correlations(
    entity_type: EntityKind, entity_id: str, db: Session = Depends(get_db)
) -> List[Correlation]:
    return correlations.get_correlations(db, entity_type, entity_id)


@router.post("/correlations", response_model=Correlation, status_code=status.HTTP_200_OK)
def create_correlation(payload: CorrelationCreate, db: Session = Depends(get_db)) -> Correlation:
    return correlations.create_correlation(db, payload)


# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

@router.post("/sample-data", summary="Load the demo dataset")
def load_sample_data(db: Session = Depends(get_db)) -> dict:
    return sample_data.load_sample_data(db)
