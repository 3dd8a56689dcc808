"""
Row → pydantic record conversion shared by every store module.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import inspect

from threatintel.db.tables import Base

M = TypeVar("M", bound=BaseModel)


def row_to_dict(row: Base) -> dict[str, Any]:
    """Map a row to a dict keyed by database column name ("extra" → "metadata")."""
    mapper = inspect(row).mapper
    return {
        attr.columns[0].name: getattr(row, attr.key)
        for attr in mapper.column_attrs
    }


def to_record(model: type[M], row: Base) -> M:
    return model.model_validate(row_to_dict(row))


def to_records(model: type[M], rows: list[Any]) -> list[M]:
    return [to_record(model, row) for row in rows]
