"""
IOC store — list, stats and the three mutations.

create and delete require an authenticated identity. update falls back to
SYSTEM_IDENTITY so automated status flips (e.g. deactivation) work without a
logged-in analyst. last_seen is refreshed only when the activity flag is
supplied.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_record, to_records
from threatintel.db.tables import IocRow, utcnow
from threatintel.errors import AuthenticationRequiredError, PermissionDeniedError, RecordNotFoundError
from threatintel.models.common import SYSTEM_IDENTITY, Identity, IocType, Severity
from threatintel.models.ioc import Ioc, IocCreate, IocStats, IocUpdate
from threatintel.services.query import count, count_by, enum_filter, enum_keys

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def list_iocs(
    db: Session,
    type: Optional[str] = None,
    severity: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> list[Ioc]:
    """Most recently created IOCs matching every supplied filter.

    `search` is a case-insensitive substring match on value or description.
    """
    stmt = select(IocRow)

    ioc_type = enum_filter(IocType, type)
    if ioc_type is not None:
        stmt = stmt.where(IocRow.type == ioc_type.value)

    sev = enum_filter(Severity, severity)
    if sev is not None:
        stmt = stmt.where(IocRow.severity == sev.value)

    if is_active is not None:
        stmt = stmt.where(IocRow.is_active == is_active)

    if search:
        stmt = stmt.where(
            or_(
                IocRow.value.icontains(search, autoescape=True),
                IocRow.description.icontains(search, autoescape=True),
            )
        )

    stmt = stmt.order_by(IocRow.created_at.desc()).limit(limit)
    return to_records(Ioc, db.scalars(stmt).all())


def get_ioc(db: Session, ioc_id: str) -> Ioc:
    return to_record(Ioc, _get_row(db, ioc_id))


def ioc_stats(db: Session) -> IocStats:
    return IocStats(
        total=count(db, IocRow),
        active=count(db, IocRow, IocRow.is_active.is_(True)),
        by_severity=count_by(db, IocRow.severity, keys=enum_keys(Severity)),
        by_type=count_by(db, IocRow.type, keys=enum_keys(IocType)),
    )


def create_ioc(db: Session, identity: Optional[Identity], data: IocCreate) -> Ioc:
    if identity is None:
        raise AuthenticationRequiredError("create_ioc")

    now = utcnow()
    row = IocRow(
        type=data.type.value,
        value=data.value,
        severity=data.severity.value,
        description=data.description,
        source=data.source,
        tags=list(data.tags),
        is_active=True,
        first_seen=now,
        last_seen=now,
        confidence=data.confidence,
        created_by=identity.user_id,
        mitre_techniques=list(data.mitre_techniques),
        created_at=now,
    )
    db.add(row)
    db.commit()
    logger.info(
        "ioc_store.created",
        extra={"ioc_id": row.id, "type": row.type, "severity": row.severity, "user": identity.user_id},
    )
    return to_record(Ioc, row)


def update_ioc(
    db: Session, identity: Optional[Identity], ioc_id: str, updates: IocUpdate
) -> Ioc:
    actor = identity or SYSTEM_IDENTITY
    row = _get_row(db, ioc_id)

    if updates.severity is not None:
        row.severity = updates.severity.value
    if updates.description is not None:
        row.description = updates.description
    if updates.tags is not None:
        row.tags = list(updates.tags)
    if updates.confidence is not None:
        row.confidence = updates.confidence
    if updates.mitre_techniques is not None:
        row.mitre_techniques = list(updates.mitre_techniques)
    if updates.is_active is not None:
        row.is_active = updates.is_active
        row.last_seen = utcnow()

    db.commit()
    logger.info(
        "ioc_store.updated",
        extra={
            "ioc_id": ioc_id,
            "fields": sorted(updates.model_dump(exclude_none=True)),
            "user": actor.user_id,
        },
    )
    return to_record(Ioc, row)


def delete_ioc(db: Session, identity: Optional[Identity], ioc_id: str) -> None:
    """Delete an IOC. Only its creator or an admin may do this."""
    if identity is None:
        raise AuthenticationRequiredError("delete_ioc")

    row = _get_row(db, ioc_id)
    if row.created_by != identity.user_id and not identity.is_admin:
        raise PermissionDeniedError(
            f"User '{identity.user_id}' may not delete IOC '{ioc_id}' created by '{row.created_by}'"
        )

    db.delete(row)
    db.commit()
    logger.info("ioc_store.deleted", extra={"ioc_id": ioc_id, "user": identity.user_id})


def _get_row(db: Session, ioc_id: str) -> IocRow:
    row = db.get(IocRow, ioc_id)
    if row is None:
        raise RecordNotFoundError("IOC", ioc_id)
    return row
