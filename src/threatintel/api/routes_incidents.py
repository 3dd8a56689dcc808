from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from threatintel.api.deps import get_identity
from threatintel.db.session import get_db
from threatintel.models.common import Identity, IncidentStatus
from threatintel.models.incident import Evidence, Incident, IncidentCreate
from threatintel.services import incidents

router = APIRouter(
    prefix="/incidents",
    tags=["incidents"],
)


class IncidentStatusUpdate(BaseModel):
    status: IncidentStatus


@router.get("", response_model=List[Incident])
def list_incidents(
    status: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
) -> List[Incident]:
    return incidents.list_incidents(db, status=status, limit=limit)


@router.get("/{incident_id}", response_model=Incident)
def get_incident(incident_id: str, db: Session = Depends(get_db)) -> Incident:
    return incidents.get_incident(db, incident_id)


@router.post("", response_model=Incident, status_code=status.HTTP_201_CREATED)
def create_incident(
    payload: IncidentCreate,
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
) -> Incident:
    return incidents.create_incident(db, identity, payload)


@router.patch("/{incident_id}/status", response_model=Incident)
def update_incident_status(
    incident_id: str, payload: IncidentStatusUpdate, db: Session = Depends(get_db)
) -> Incident:
    return incidents.update_incident_status(db, incident_id, payload.status)


@router.post("/{incident_id}/evidence", response_model=Incident)
def add_incident_evidence(
    incident_id: str, payload: Evidence, db: Session = Depends(get_db)
) -> Incident:
    return incidents.add_incident_evidence(db, incident_id, payload)
