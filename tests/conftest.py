"""
Pytest configuration and shared fixtures.

One database file per test module; tables are ensured once and cleared
before each test, jobs first because they reference employers.
"""

import pytest
from datetime import date
from typing import List

from jbapp.dao import create_dao
from jbapp.database import Employer, Job, init_database
from jbapp.tables import clear_table, create_table_if_not_exists


@pytest.fixture(scope="module")
def engine(tmp_path_factory):
    """Engine for a module-wide SQLite file."""
    db_path = tmp_path_factory.mktemp("db") / "JBApp.db"
    engine = init_database(db_path)
    yield engine
    engine.dispose()


@pytest.fixture
def clean_tables(engine):
    """Ensure both tables exist and are empty."""
    create_table_if_not_exists(engine, Employer)
    create_table_if_not_exists(engine, Job)
    clear_table(engine, Job)
    clear_table(engine, Employer)
    return engine


@pytest.fixture
def employer_dao(clean_tables):
    return create_dao(clean_tables, Employer)


@pytest.fixture
def job_dao(clean_tables):
    return create_dao(clean_tables, Job)


@pytest.fixture
def sample_employers() -> List[Employer]:
    """Four distinct, unsaved employers."""
    return [
        Employer(name="Salesforce", sector="Tech",
                 summary="An American cloud-based software company focused on customer relationship management services!"),
        Employer(name="Sonos", sector="Tech",
                 summary="A developer and manufacturer of audio products best known for its multi-room audio products!"),
        Employer(name="Fedex", sector="Transportation/E-Commerce",
                 summary="An American multinational conglomerate holding company focused on transportation and e-commerce!"),
        Employer(name="First Solar", sector="Energy",
                 summary="A leading global provider of comprehensive PV solar solutions!"),
    ]


@pytest.fixture
def saved_employer(employer_dao) -> Employer:
    """An employer already stored, for jobs to reference."""
    employer = Employer(name="First Solar", sector="Energy",
                        summary="A leading global provider of comprehensive PV solar solutions!")
    employer_dao.create(employer)
    return employer


@pytest.fixture
def make_job(saved_employer):
    """Factory for unsaved jobs owned by saved_employer."""
    def _make(title="SWE", **overrides):
        fields = dict(
            title=title,
            start_date=date(2021, 7, 2),
            end_date=date(2021, 9, 1),
            domain="tech",
            location="LA",
            remote=True,
            full_time=True,
            requirements="Must be familiar with Java",
            pay_amount=120000,
            employer=saved_employer,
        )
        fields.update(overrides)
        return Job(**fields)
    return _make
