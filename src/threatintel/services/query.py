"""
Filter and aggregation helpers shared by the per-kind store modules.

List operations AND together whichever filters are set. A filter is unset
when it is None; enum-typed and free-form string filters also treat "all" as
unset. Counting is pushed into SQL (GROUP BY) rather than loading collections.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.orm import Session

from threatintel.models.common import ALL

E = TypeVar("E", bound=Enum)


def enum_filter(enum_cls: type[E], value: Optional[Any]) -> Optional[E]:
    """Coerce an enum filter; None or "all" mean no filter.

    Raises:
        ValueError: If *value* is not a member of *enum_cls*.
    """
    if value is None or value == ALL:
        return None
    return enum_cls(value)


def text_filter(value: Optional[str]) -> Optional[str]:
    if not value or value == ALL:
        return None
    return value


def count(db: Session, entity: Any, *criteria: ColumnElement[bool]) -> int:
    stmt = select(func.count()).select_from(entity)
    if criteria:
        stmt = stmt.where(*criteria)
    return db.scalar(stmt) or 0


def count_by(
    db: Session,
    column: Any,
    *criteria: ColumnElement[bool],
    keys: Iterable[str] = (),
) -> dict[str, int]:
    """Group-by count on *column*. Every name in *keys* is present, zero if unseen."""
    stmt = select(column, func.count()).group_by(column)
    if criteria:
        stmt = stmt.where(*criteria)
    counts = {key: 0 for key in keys}
    for value, n in db.execute(stmt):
        counts[value] = n
    return counts


def enum_keys(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
