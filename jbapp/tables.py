"""
Table management helpers: create, clear and drop one model's table.

Used by test setup to guarantee a table exists and starts empty.
"""

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError

from .errors import translate_integrity_error
from .logger import get_logger

logger = get_logger()


def create_table(engine: Engine, model) -> None:
    """Create model's table; fails if it already exists."""
    model.__table__.create(engine, checkfirst=False)
    logger.info("Table created", table=model.__tablename__)


def create_table_if_not_exists(engine: Engine, model) -> None:
    """Create model's table unless it is already there."""
    model.__table__.create(engine, checkfirst=True)
    logger.debug("Table ensured", table=model.__tablename__)


def clear_table(engine: Engine, model) -> int:
    """
    Delete every row of model's table.

    Rows referenced from other tables block the clear, so clear
    dependent tables first.

    Returns:
        Number of rows removed

    Raises:
        ConstraintViolation: a referencing row still exists
    """
    table = model.__table__
    try:
        with engine.begin() as conn:
            removed = conn.execute(table.delete()).rowcount
    except IntegrityError as e:
        violation = translate_integrity_error(e)
        logger.record_violation(violation.kind.value)
        logger.warning("Clear rejected", table=table.name, kind=violation.kind.value, detail=str(violation))
        raise violation from e
    logger.debug("Table cleared", table=table.name, removed=removed)
    return removed


def drop_table(engine: Engine, model, ignore_errors: bool = False) -> None:
    """Drop model's table. With ignore_errors a missing table is not an error."""
    try:
        model.__table__.drop(engine, checkfirst=ignore_errors)
    except OperationalError:
        if not ignore_errors:
            raise
        logger.warning("Drop failed", table=model.__tablename__)
        return
    logger.info("Table dropped", table=model.__tablename__)
