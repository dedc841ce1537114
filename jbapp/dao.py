"""
Generic CRUD gateway over one mapped table.

Each Dao is bound to an engine and a model class. Every call runs in its
own session and transaction; rows handed back are detached from the
session with their attributes (and many-to-one references) loaded.

Non-Responsibilities:
- No table management (see tables.py).
- No HTTP concerns.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import MANYTOONE, sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from .errors import (
    ConstraintViolation,
    RecordNotFoundError,
    UnknownFieldError,
    ViolationKind,
    translate_integrity_error,
)
from .logger import get_logger
from .schema import missing_columns, validate_values

logger = get_logger()


class CreateOrUpdateStatus(NamedTuple):
    created: bool
    updated: bool
    num_lines_changed: int


class Dao:
    """Create, read, update and delete rows of a single model."""

    def __init__(self, engine: Engine, model):
        self.engine = engine
        self.model = model
        self.table = model.__table__
        self.table_name = self.table.name

        self._mapper = inspect(model)
        self._pk = self._mapper.primary_key[0]
        self.id_field = self._mapper.get_property_by_column(self._pk).key
        self._Session = sessionmaker(bind=engine, expire_on_commit=False)

    # Internal helpers

    @contextmanager
    def _transaction(self):
        session = self._Session()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            violation = translate_integrity_error(e, primary_key=self._pk.name)
            self._report_violation(violation)
            raise violation from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _report_violation(self, violation: ConstraintViolation):
        logger.record_violation(violation.kind.value)
        logger.warning(
            "Write rejected",
            table=self.table_name,
            kind=violation.kind.value,
            column=violation.column,
            detail=str(violation),
        )

    def _get_id(self, record) -> Any:
        return getattr(record, self.id_field)

    def _set_id(self, record, value):
        setattr(record, self.id_field, value)

    def _column_attribute(self, field: str):
        if field not in self._mapper.column_attrs.keys():
            raise UnknownFieldError(self.table_name, field)
        return getattr(self.model, field)

    def _row_values(self, record) -> Dict[str, Any]:
        """Column values of record, keyed by column name, without the id."""
        values = {}
        for column in self.table.columns:
            if column is self._pk:
                continue
            prop = self._mapper.get_property_by_column(column)
            values[column.key] = getattr(record, prop.key)

        # A many-to-one reference supplies its foreign key unless the key
        # column alone was changed since the last read or write
        state = inspect(record)
        for rel in self._many_to_one():
            target = getattr(record, rel.key)
            if target is None:
                continue
            ref_changed = state.attrs[rel.key].history.has_changes()
            for local, remote in rel.local_remote_pairs:
                target_value = getattr(target, remote.key)
                current = values.get(local.key)
                if current is None or current == target_value:
                    values[local.key] = target_value
                    continue
                local_key = self._mapper.get_property_by_column(local).key
                if ref_changed and state.attrs[local_key].history.has_changes():
                    violation = ConstraintViolation(
                        ViolationKind.FOREIGN_KEY,
                        f"{rel.key} (id={target_value!r}) and {local_key}={current!r} disagree",
                        table=self.table_name,
                        column=local.name,
                    )
                    self._report_violation(violation)
                    raise violation
                if ref_changed:
                    values[local.key] = target_value
        return values

    def _many_to_one(self):
        return [rel for rel in self._mapper.relationships if rel.direction is MANYTOONE]

    def _load_row(self, session, record_id) -> Dict[str, Any]:
        stmt = select(self.table).where(self._pk == record_id)
        return dict(session.execute(stmt).mappings().one())

    def _write_back(self, record, row: Dict[str, Any]):
        """
        Copy the stored column values onto record without change history.

        A many-to-one reference that no longer matches its key column is
        dropped from the record.
        """
        for column in self.table.columns:
            prop = self._mapper.get_property_by_column(column)
            set_committed_value(record, prop.key, row[column.key])
        for rel in self._many_to_one():
            target = getattr(record, rel.key)
            if target is not None and any(
                getattr(target, remote.key) != row[local.key]
                for local, remote in rel.local_remote_pairs
            ):
                target = None
            set_committed_value(record, rel.key, target)

    def _insert_values(self, record) -> Dict[str, Any]:
        values = self._row_values(record)
        # Let column defaults fill unset values
        return {
            key: value for key, value in values.items()
            if value is not None or self.table.columns[key].default is None
        }

    def _check_required(self, values: Dict[str, Any], inserting: bool = True):
        missing = missing_columns(self.table, values, inserting=inserting)
        if missing:
            violation = ConstraintViolation(
                ViolationKind.NOT_NULL,
                "; ".join(validate_values(self.table, values, inserting=inserting)),
                table=self.table_name,
                column=missing[0],
            )
            self._report_violation(violation)
            raise violation

    # Create

    def create(self, record) -> int:
        """
        Insert one record.

        Any id already set on the record is ignored; the id generated by
        the store, and any column defaults, are written back onto it.

        Returns:
            Number of rows inserted (1)

        Raises:
            ConstraintViolation: null required field, duplicate unique value
                or missing referenced row
        """
        values = self._insert_values(record)
        self._check_required(values)
        with self._transaction() as session:
            result = session.execute(self.table.insert().values(**values))
            new_id = result.inserted_primary_key[0]
            row = self._load_row(session, new_id)
        self._write_back(record, row)
        logger.record_create(self.table_name)
        logger.debug("Row created", table=self.table_name, id=new_id)
        return 1

    def create_many(self, records: Iterable) -> int:
        """
        Insert a batch of records in a single transaction.

        All or nothing: if one record is rejected no row is stored and no
        record's id is changed.

        Returns:
            Number of rows inserted
        """
        records = list(records)
        rows = [self._insert_values(record) for record in records]
        for values in rows:
            self._check_required(values)

        stored = []
        with self._transaction() as session:
            for values in rows:
                result = session.execute(self.table.insert().values(**values))
                stored.append(self._load_row(session, result.inserted_primary_key[0]))

        for record, row in zip(records, stored):
            self._write_back(record, row)
        if stored:
            logger.record_create(self.table_name, len(stored))
        logger.debug("Batch created", table=self.table_name, count=len(stored))
        return len(stored)

    # Read

    def query_for_eq(self, field: str, value: Any) -> List:
        """Rows whose field equals value, ordered by id."""
        attribute = self._column_attribute(field)
        stmt = select(self.model).where(attribute == value).order_by(self._pk)
        with self._Session() as session:
            rows = session.scalars(stmt).unique().all()
        logger.record_query(self.table_name)
        return list(rows)

    def query_for_all(self) -> List:
        """All rows, ordered by id."""
        stmt = select(self.model).order_by(self._pk)
        with self._Session() as session:
            rows = session.scalars(stmt).unique().all()
        logger.record_query(self.table_name)
        return list(rows)

    def query_for_id(self, record_id) -> Optional[Any]:
        """The row with record_id, or None."""
        with self._Session() as session:
            row = session.get(self.model, record_id)
        logger.record_query(self.table_name)
        return row

    def id_exists(self, record_id) -> bool:
        if record_id is None:
            return False
        stmt = select(self._pk).where(self._pk == record_id)
        with self._Session() as session:
            found = session.execute(stmt).first() is not None
        logger.record_query(self.table_name)
        return found

    def count_of(self) -> int:
        with self._Session() as session:
            count = session.query(self.model).count()
        logger.record_query(self.table_name)
        return count

    def refresh(self, record) -> int:
        """
        Reload every field of record from its row.

        Raises:
            RecordNotFoundError: the row no longer exists
        """
        record_id = self._get_id(record)
        row = self.query_for_id(record_id) if record_id is not None else None
        if row is None:
            raise RecordNotFoundError(self.table_name, record_id)
        for prop in self._mapper.attrs:
            set_committed_value(record, prop.key, getattr(row, prop.key))
        return 1

    # Update

    def update(self, record) -> int:
        """
        Overwrite every column of the row matching record's id.

        When both the employer-style reference and its key column were
        changed and they disagree, the write is rejected.

        Raises:
            RecordNotFoundError: no row has that id
            ConstraintViolation: the new values break a constraint
        """
        record_id = self._get_id(record)
        if record_id is None:
            raise RecordNotFoundError(self.table_name, record_id)
        values = self._row_values(record)
        self._check_required(values, inserting=False)
        with self._transaction() as session:
            result = session.execute(
                self.table.update().where(self._pk == record_id).values(**values)
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(self.table_name, record_id)
            row = self._load_row(session, record_id)
        self._write_back(record, row)
        logger.record_update(self.table_name)
        logger.debug("Row updated", table=self.table_name, id=record_id)
        return result.rowcount

    def create_or_update(self, record) -> CreateOrUpdateStatus:
        """Update the row if record's id exists, otherwise insert it."""
        if self.id_exists(self._get_id(record)):
            return CreateOrUpdateStatus(False, True, self.update(record))
        return CreateOrUpdateStatus(True, False, self.create(record))

    def update_id(self, record, new_id) -> int:
        """
        Move the row at record's current id to new_id.

        On success record's id is set to new_id. References from other
        tables follow the row.

        Raises:
            ConstraintViolation: new_id already belongs to another row
                (kind ID_COLLISION); nothing is changed
            RecordNotFoundError: no row has record's current id
        """
        old_id = self._get_id(record)
        if old_id is None:
            raise RecordNotFoundError(self.table_name, old_id)
        with self._transaction() as session:
            result = session.execute(
                self.table.update().where(self._pk == old_id).values({self._pk.key: new_id})
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(self.table_name, old_id)
        self._set_id(record, new_id)
        logger.record_update(self.table_name)
        logger.info("Row id changed", table=self.table_name, old_id=old_id, new_id=new_id)
        return result.rowcount

    # Delete

    def delete_by_id(self, record_id) -> int:
        """Delete the row with record_id. Missing rows are not an error."""
        if record_id is None:
            return 0
        return self.delete_ids([record_id])

    def delete(self, record) -> int:
        """Delete the row matching record's id; returns rows removed (0 or 1)."""
        return self.delete_by_id(self._get_id(record))

    def delete_many(self, records: Iterable) -> int:
        """Delete every row whose id matches one of records; returns rows removed."""
        return self.delete_ids([self._get_id(record) for record in records])

    def delete_ids(self, record_ids: Iterable) -> int:
        ids = [record_id for record_id in record_ids if record_id is not None]
        if not ids:
            return 0
        with self._transaction() as session:
            result = session.execute(self.table.delete().where(self._pk.in_(ids)))
        removed = result.rowcount
        if removed:
            logger.record_delete(self.table_name, removed)
        logger.debug("Rows deleted", table=self.table_name, requested=len(ids), removed=removed)
        return removed


def create_dao(engine: Engine, model) -> Dao:
    """Build a Dao for model on engine."""
    return Dao(engine, model)
