from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    USER = "user"


class ColumnKind(str, Enum):
    """Logical column types understood by the snapshot codec."""

    STR = "str"
    INT = "int"
    BOOL = "bool"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
