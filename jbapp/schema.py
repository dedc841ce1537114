from typing import Any, Dict, List

from sqlalchemy import Table


def required_columns(table: Table, inserting: bool = True) -> List[str]:
    """
    Columns that must carry a value on write.

    On insert, NOT NULL columns with a default or that are store-generated
    primary keys are filled in by the database; on update every NOT NULL
    column must be supplied.
    """
    required = []
    for column in table.columns:
        if column.nullable or column.primary_key:
            continue
        if inserting and (column.default is not None or column.server_default is not None):
            continue
        required.append(column.key)
    return required


def missing_columns(table: Table, values: Dict[str, Any], inserting: bool = True) -> List[str]:
    """Required columns whose value is None or absent. Empty strings are values."""
    return [name for name in required_columns(table, inserting=inserting) if values.get(name) is None]


def validate_values(table: Table, values: Dict[str, Any], inserting: bool = True) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    return [
        f"Field '{name}' of {table.name} must not be null"
        for name in missing_columns(table, values, inserting=inserting)
    ]
