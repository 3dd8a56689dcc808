from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from threatintel.api.deps import get_identity
from threatintel.db.session import get_db
from threatintel.models.common import Identity
from threatintel.models.ioc import Ioc, IocCreate, IocStats, IocUpdate
from threatintel.services import iocs

router = APIRouter(
    prefix="/iocs",
    tags=["iocs"],
)


@router.get("", response_model=List[Ioc], summary="List IOCs")
def list_iocs(
    type: Optional[str] = None,
    severity: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = Query(iocs.DEFAULT_LIMIT, ge=1),
    db: Session = Depends(get_db),
) -> List[Ioc]:
    return iocs.list_iocs(
        db, type=type, severity=severity, is_active=is_active, search=search, limit=limit
    )


@router.get("/stats", response_model=IocStats, summary="IOC counts by severity and type")
def ioc_stats(db: Session = Depends(get_db)) -> IocStats:
    return iocs.ioc_stats(db)


@router.get("/{ioc_id}", response_model=Ioc)
def get_ioc(ioc_id: str, db: Session = Depends(get_db)) -> Ioc:
    return iocs.get_ioc(db, ioc_id)


@router.post("", response_model=Ioc, status_code=status.HTTP_201_CREATED)
def create_ioc(
    payload: IocCreate,
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
) -> Ioc:
    return iocs.create_ioc(db, identity, payload)


@router.patch("/{ioc_id}", response_model=Ioc)
def update_ioc(
    ioc_id: str,
    payload: IocUpdate,
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
) -> Ioc:
    return iocs.update_ioc(db, identity, ioc_id, payload)


@router.delete("/{ioc_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ioc(
    ioc_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
) -> None:
    iocs.delete_ioc(db, identity, ioc_id)
