"""Column vocabulary of the remote favorites table.

Statements are built from lightweight :func:`sqlalchemy.table` /
:func:`sqlalchemy.column` constructs that only reference the columns actually
written, so a deployment missing an optional column still accepts every write
that does not touch it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import Boolean, DateTime, String, Text, column, table
from sqlalchemy.sql.expression import TableClause
from sqlalchemy.types import TypeEngine

MANDATORY_COLUMNS: tuple[str, ...] = ("id", "name", "created_at")

# Maps Python field names onto the column names used by the deployed table.
FIELD_TO_COLUMN: dict[str, str] = {
    "id": "id",
    "name": "name",
    "gender": "gender",
    "theme": "theme",
    "created_at": "created_at",
    "owner": "user_email",
    "meaning": "meaning",
    "origin": "origin",
    "description": "description",
    "informative_description": "informativeDescription",
    "poetic_description": "poeticDescription",
    "history": "history",
    "used_wiki": "usedWiki",
}

OPTIONAL_COLUMNS: frozenset[str] = frozenset(
    name for name in FIELD_TO_COLUMN.values() if name not in MANDATORY_COLUMNS
)

_COLUMN_TYPES: dict[str, TypeEngine[Any]] = {
    "id": String(),
    "name": String(),
    "gender": String(),
    "theme": String(),
    "created_at": DateTime(timezone=True),
    "user_email": String(),
    "meaning": Text(),
    "origin": Text(),
    "description": Text(),
    "informativeDescription": Text(),
    "poeticDescription": Text(),
    "history": Text(),
    "usedWiki": Boolean(),
}


def favorites_table(table_name: str, columns: Iterable[str] = ()) -> TableClause:
    """Return a table clause exposing ``id`` plus the requested columns."""

    names = ["id", *(name for name in columns if name != "id")]
    return table(
        table_name,
        *(column(name, _COLUMN_TYPES.get(name, String())) for name in names),
    )


def to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Rename Python field names to column names, dropping unknown keys."""

    return {
        FIELD_TO_COLUMN[field]: value
        for field, value in fields.items()
        if field in FIELD_TO_COLUMN
    }


__all__ = [
    "FIELD_TO_COLUMN",
    "MANDATORY_COLUMNS",
    "OPTIONAL_COLUMNS",
    "favorites_table",
    "to_columns",
]
