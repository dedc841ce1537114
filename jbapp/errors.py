"""
Error types raised by the persistence gateway.

Store-level IntegrityErrors are translated into ConstraintViolation so
callers can tell a null column from a duplicate key or a dangling
reference without parsing driver messages themselves.
"""

import re
from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError


class ViolationKind(str, Enum):
    NOT_NULL = "not_null"
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    ID_COLLISION = "id_collision"
    CHECK = "check"


class PersistenceError(Exception):
    """Base class for gateway errors."""


class ConstraintViolation(PersistenceError):
    """A write was rejected by a declared constraint."""

    def __init__(
        self,
        kind: ViolationKind,
        message: str,
        table: Optional[str] = None,
        column: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.table = table
        self.column = column


class RecordNotFoundError(PersistenceError):
    """An operation required an existing row and none matched."""

    def __init__(self, table: str, record_id):
        super().__init__(f"No row in {table} with id={record_id!r}")
        self.table = table
        self.record_id = record_id


class UnknownFieldError(PersistenceError):
    """A query named an attribute the record type does not have."""

    def __init__(self, table: str, field: str):
        super().__init__(f"{table} has no field {field!r}")
        self.table = table
        self.field = field


# SQLite reports e.g. "NOT NULL constraint failed: employers.name"
_SQLITE_CONSTRAINT_RE = re.compile(
    r"(NOT NULL|UNIQUE|CHECK|FOREIGN KEY) constraint failed(?::\s*(\w+)\.(\w+))?"
)

_KIND_BY_LABEL = {
    "NOT NULL": ViolationKind.NOT_NULL,
    "UNIQUE": ViolationKind.UNIQUE,
    "CHECK": ViolationKind.CHECK,
    "FOREIGN KEY": ViolationKind.FOREIGN_KEY,
}


def translate_integrity_error(exc: IntegrityError, primary_key: Optional[str] = None) -> ConstraintViolation:
    """
    Map a driver IntegrityError to a ConstraintViolation.

    Args:
        exc: The error raised by SQLAlchemy
        primary_key: Name of the table's primary key column; a UNIQUE
            failure on it is reported as ID_COLLISION

    Returns:
        ConstraintViolation (not raised)
    """
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    match = _SQLITE_CONSTRAINT_RE.search(detail)
    if match is None:
        return ConstraintViolation(ViolationKind.CHECK, detail)

    kind = _KIND_BY_LABEL[match.group(1)]
    table, column = match.group(2), match.group(3)
    if kind is ViolationKind.UNIQUE and primary_key is not None and column == primary_key:
        kind = ViolationKind.ID_COLLISION
    return ConstraintViolation(kind, detail, table=table, column=column)
