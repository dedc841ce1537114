"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for employer and job storage.
"""

from pathlib import Path
from typing import Any, Dict, Union

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()


class _RecordMixin:
    """Column helpers shared by the record types."""

    def to_dict(self) -> Dict[str, Any]:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def business_fields(self) -> Dict[str, Any]:
        """Column values without the surrogate id."""
        fields = self.to_dict()
        fields.pop("id", None)
        return fields

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"


class Employer(_RecordMixin, Base):
    """Employer model. Names are unique; sector and summary are free text."""

    __tablename__ = "employers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    sector = Column(String, nullable=True)
    summary = Column(Text, nullable=True)


class Job(_RecordMixin, Base):
    """Job posting model, owned by exactly one employer."""

    __tablename__ = "jobs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, unique=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    domain = Column(String, nullable=True)
    location = Column(String, nullable=True)
    remote = Column(Boolean, nullable=False, default=False)
    full_time = Column(Boolean, nullable=False, default=False)
    requirements = Column(Text, nullable=True)
    pay_amount = Column(Integer, nullable=False, default=0)
    employer_id = Column(
        Integer,
        ForeignKey("employers.id", onupdate="CASCADE"),
        nullable=False,
    )

    # Joined so rows returned from a closed session still carry their employer
    employer = relationship(Employer, lazy="joined")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Union[Path, str], echo: bool = False) -> Engine:
    """
    Build an engine for a SQLite file with foreign keys enforced.

    Args:
        db_path: Path to SQLite database file, or ":memory:"

    Returns:
        SQLAlchemy engine
    """
    url = "sqlite://" if str(db_path) == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(db_path: Path) -> Engine:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Engine bound to the database
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    return engine


def get_session(engine: Engine):
    """
    Get database session.

    Sessions keep attribute values after commit so returned rows can be
    read once the session is closed.

    Args:
        engine: Engine from get_engine or init_database

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    return Session()
