"""
Tests for the jobs gateway - CRUD against the jobs table.
"""

import pytest
from datetime import date

from jbapp.dao import create_dao
from jbapp.database import Employer, Job
from jbapp.errors import ConstraintViolation, RecordNotFoundError, ViolationKind

TITLES = ["SWE", "SDE", "Programmer", "Software Engineer", "SWE PM"]


class TestJobCreate:
    """Test inserting jobs."""

    def test_create_null_fields_fails(self, job_dao, saved_employer):
        """A job without a title is rejected."""
        j = Job(title=None, start_date=None, end_date=None, domain=None, location=None,
                remote=True, full_time=True, requirements=None, pay_amount=0, employer=saved_employer)

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.create(j)

        assert excinfo.value.kind is ViolationKind.NOT_NULL
        assert excinfo.value.column == "title"
        assert job_dao.count_of() == 0

    def test_create_without_employer_fails(self, job_dao):
        """Every job belongs to an employer."""
        j = Job(title="SWE", pay_amount=1)

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.create(j)

        assert excinfo.value.column == "employer_id"

    def test_create_with_unknown_employer_fails(self, job_dao):
        """The employer reference must point at a stored employer."""
        ghost = Employer(name="Ghost", sector="None")
        ghost.id = 987654

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.create(Job(title="SWE", employer=ghost))

        assert excinfo.value.kind is ViolationKind.FOREIGN_KEY

    def test_create_applies_defaults(self, job_dao, saved_employer):
        """Flags default to False and pay to 0."""
        j = Job(title="Intern", employer=saved_employer)
        job_dao.create(j)

        stored = job_dao.query_for_id(j.id)
        assert stored.remote is False
        assert stored.full_time is False
        assert stored.pay_amount == 0
        assert stored.start_date is None

    def test_create_writes_defaults_back(self, job_dao, saved_employer):
        """The created job carries its stored defaults and can be updated as is."""
        j = Job(title="Intern", employer=saved_employer)
        job_dao.create(j)

        assert j.remote is False
        assert j.full_time is False
        assert j.pay_amount == 0
        assert j.employer_id == saved_employer.id

        j.pay_amount = 5
        assert job_dao.update(j) == 1
        assert job_dao.query_for_id(j.id).pay_amount == 5

    def test_create_many_writes_defaults_back(self, job_dao, saved_employer):
        jobs = [Job(title=t, employer=saved_employer) for t in ("Intern", "Fellow")]
        job_dao.create_many(jobs)

        assert [j.pay_amount for j in jobs] == [0, 0]
        assert [j.employer_id for j in jobs] == [saved_employer.id] * 2

    def test_create_by_employer_id(self, job_dao, saved_employer):
        """Setting the foreign key column directly works too."""
        j = Job(title="Analyst", employer_id=saved_employer.id)
        job_dao.create(j)

        assert job_dao.query_for_id(j.id).employer.name == "First Solar"

    def test_create_multiple_jobs(self, job_dao, make_job):
        jobs = [make_job(t, location=loc) for t, loc in zip(TITLES, ["NYC", "Chicago", "LA", "SF", "Seattle"])]

        assert job_dao.create_many(jobs) == len(jobs)

        read = job_dao.query_for_all()
        assert len(read) == len(jobs)
        assert [r.business_fields() for r in read] == [j.business_fields() for j in jobs]

    def test_round_trip_fields(self, job_dao, make_job, saved_employer):
        j = make_job("SWE", start_date=date(2021, 6, 2), end_date=date(2021, 12, 1), location="NYC",
                     pay_amount=100000, remote=False)
        job_dao.create(j)

        stored = job_dao.query_for_eq("title", "SWE")[0]
        assert stored.start_date == date(2021, 6, 2)
        assert stored.end_date == date(2021, 12, 1)
        assert stored.location == "NYC"
        assert stored.remote is False
        assert stored.full_time is True
        assert stored.pay_amount == 100000
        assert stored.employer_id == saved_employer.id
        assert stored.employer.name == "First Solar"

    def test_non_unique_title_fails(self, job_dao, make_job):
        """A batch with a repeated title stores nothing."""
        j1 = make_job("SWE", start_date=date(2021, 7, 2), location="LA")
        j2 = make_job("SWE", start_date=date(2021, 6, 2), location="NYC", pay_amount=100000)

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.create_many([j1, j2])

        assert excinfo.value.kind is ViolationKind.UNIQUE
        assert excinfo.value.column == "title"
        assert job_dao.count_of() == 0

    def test_same_info_different_title_succeeds(self, job_dao, make_job):
        job_dao.create(make_job("SWE"))
        job_dao.create(make_job("SDE"))

        assert job_dao.count_of() == 2


class TestJobUpdate:
    """Test updating jobs."""

    def test_updating_job_pay(self, job_dao, make_job):
        j = make_job("SWE", pay_amount=100000)
        job_dao.create(j)
        j.pay_amount = 130000

        job_dao.update(j)

        assert job_dao.query_for_id(j.id).pay_amount == 130000

    def test_update_multiple_times(self, job_dao, make_job):
        j = make_job("SWE")
        job_dao.create(j)
        for domain in ("Finance", "Academia", "Business"):
            j.domain = domain
            job_dao.update(j)

        assert job_dao.query_for_all()[0].domain == "Business"

    def test_update_loaded_row(self, job_dao, make_job):
        """Rows returned by a query can be changed and written back."""
        job_dao.create(make_job("SWE"))
        stored = job_dao.query_for_eq("title", "SWE")[0]
        stored.location = "Remote"

        job_dao.update(stored)

        assert job_dao.query_for_eq("title", "SWE")[0].location == "Remote"

    def test_move_job_to_other_employer(self, job_dao, employer_dao, make_job):
        other = Employer(name="Sonos", sector="Tech")
        employer_dao.create(other)
        j = make_job("SWE")
        job_dao.create(j)

        j.employer = other
        job_dao.update(j)

        assert job_dao.query_for_id(j.id).employer.name == "Sonos"
        assert j.employer_id == other.id

    def test_move_job_by_employer_id(self, job_dao, employer_dao, make_job):
        """Changing only the foreign key column moves the job."""
        other = Employer(name="Sonos", sector="Tech")
        employer_dao.create(other)
        j = make_job("SWE")
        job_dao.create(j)

        j.employer_id = other.id
        job_dao.update(j)

        assert job_dao.query_for_id(j.id).employer.name == "Sonos"
        assert j.employer is None or j.employer.id == other.id

    def test_move_loaded_job_by_employer_id(self, job_dao, employer_dao, make_job):
        other = Employer(name="Sonos", sector="Tech")
        employer_dao.create(other)
        job_dao.create(make_job("SWE"))
        stored = job_dao.query_for_eq("title", "SWE")[0]

        stored.employer_id = other.id
        job_dao.update(stored)

        assert job_dao.query_for_id(stored.id).employer_id == other.id

    def test_conflicting_employer_and_id_fails(self, job_dao, employer_dao, make_job, saved_employer):
        """Setting employer and employer_id to different rows is rejected."""
        other = Employer(name="Sonos", sector="Tech")
        employer_dao.create(other)
        j = make_job("SWE")
        job_dao.create(j)

        j.employer = other
        j.employer_id = saved_employer.id + 1000

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.update(j)

        assert excinfo.value.kind is ViolationKind.FOREIGN_KEY
        assert excinfo.value.column == "employer_id"
        assert job_dao.query_for_id(j.id).employer_id == saved_employer.id

    def test_update_title_to_existing_fails(self, job_dao, make_job):
        j1, j2 = make_job("SWE"), make_job("SDE")
        job_dao.create_many([j1, j2])
        j2.title = "SWE"

        with pytest.raises(ConstraintViolation):
            job_dao.update(j2)

        assert job_dao.query_for_id(j2.id).title == "SDE"

    def test_update_missing_job_fails(self, job_dao, make_job):
        j = make_job("SWE")
        job_dao.create(j)
        job_dao.delete(j)
        j.pay_amount = 1

        with pytest.raises(RecordNotFoundError):
            job_dao.update(j)

    def test_update_id(self, job_dao, make_job):
        j = make_job("SWE")
        job_dao.create(j)

        job_dao.update_id(j, 3145)

        assert job_dao.query_for_all()[0].id == 3145
        assert j.id == 3145

    def test_update_id_existing_fails(self, job_dao, make_job):
        j1, j2, j3 = make_job("SWE"), make_job("SDE"), make_job("SDE I")
        for j in (j1, j2, j3):
            job_dao.create(j)
        jobs = job_dao.query_for_all()

        with pytest.raises(ConstraintViolation) as excinfo:
            job_dao.update_id(j1, jobs[1].id)

        assert excinfo.value.kind is ViolationKind.ID_COLLISION
        assert job_dao.query_for_eq("title", "SWE")[0].id == jobs[0].id

    def test_employer_id_change_follows_to_jobs(self, employer_dao, job_dao, make_job, saved_employer):
        """Moving an employer's id keeps its jobs attached."""
        j = make_job("SWE")
        job_dao.create(j)
        new_id = saved_employer.id + 500

        employer_dao.update_id(saved_employer, new_id)

        stored = job_dao.query_for_id(j.id)
        assert stored.employer_id == new_id
        assert stored.employer.name == "First Solar"


class TestJobDelete:
    """Test deleting jobs."""

    def test_delete_job(self, job_dao, make_job):
        j = make_job("SWE")
        job_dao.create(j)
        assert job_dao.query_for_eq("title", j.title)[0].title == "SWE"

        job_dao.delete(j)

        assert job_dao.query_for_eq("title", j.title) == []

    def test_remove_some_jobs(self, job_dao, make_job):
        jobs = [make_job("SWE"), make_job("SDE"), make_job("SDE I")]
        job_dao.create_many(jobs)

        job_dao.delete(jobs[1])

        assert job_dao.query_for_eq("title", "SDE") == []
        assert [r.title for r in job_dao.query_for_all()] == ["SWE", "SDE I"]

    def test_delete_all_items(self, job_dao, make_job):
        jobs = [make_job(t) for t in TITLES]
        job_dao.create_many(jobs)

        assert job_dao.delete_many(jobs) == len(TITLES)
        assert job_dao.query_for_all() == []

    def test_delete_job_does_not_exist(self, job_dao, make_job):
        job_dao.create(make_job("SWE"))
        job_dao.create(make_job("SDE"))

        assert job_dao.delete(make_job("SDE I")) == 0
        assert job_dao.count_of() == 2

    def test_delete_employer_with_jobs_fails(self, employer_dao, job_dao, make_job, saved_employer):
        """An employer cannot be removed while jobs reference it."""
        job_dao.create(make_job("SWE"))

        with pytest.raises(ConstraintViolation) as excinfo:
            employer_dao.delete(saved_employer)

        assert excinfo.value.kind is ViolationKind.FOREIGN_KEY
        assert employer_dao.id_exists(saved_employer.id)

    def test_delete_jobs_then_employer(self, engine, job_dao, make_job, saved_employer):
        job_dao.create(make_job("SWE"))
        job_dao.delete_many(job_dao.query_for_all())

        assert create_dao(engine, Employer).delete(saved_employer) == 1
