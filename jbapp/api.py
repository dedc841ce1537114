"""
Read-only HTTP facade over the employers and jobs tables.

Run with `jbapp serve` or `uvicorn --factory jbapp.api:create_app`.
"""

from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.engine import Engine

from . import __version__
from .config import load_settings
from .dao import Dao, create_dao
from .database import Base, Employer, Job, init_database
from .logger import get_logger

logger = get_logger()


class EmployerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sector: Optional[str] = None
    summary: Optional[str] = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    domain: Optional[str] = None
    location: Optional[str] = None
    remote: bool
    full_time: bool
    requirements: Optional[str] = None
    pay_amount: int
    employer_id: int
    employer: Optional[EmployerOut] = None


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the facade application.

    Args:
        engine: Engine to serve from; defaults to the configured database
            file, created if missing

    Returns:
        FastAPI app with the engine on app.state
    """
    if engine is None:
        settings = load_settings()
        engine = init_database(settings.db_path)
        logger.info("Serving database", db_path=str(settings.db_path))
    else:
        Base.metadata.create_all(engine)

    app = FastAPI(title="JBApp API", version=__version__)
    app.state.engine = engine

    def employer_dao(request: Request) -> Dao:
        return create_dao(request.app.state.engine, Employer)

    def job_dao(request: Request) -> Dao:
        return create_dao(request.app.state.engine, Job)

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/employers", response_model=List[EmployerOut])
    def list_employers(dao: Dao = Depends(employer_dao)):
        return dao.query_for_all()

    @app.get("/employers/{employer_id}", response_model=EmployerOut)
    def get_employer(employer_id: int, dao: Dao = Depends(employer_dao)):
        employer = dao.query_for_id(employer_id)
        if employer is None:
            raise HTTPException(status_code=404, detail=f"Employer {employer_id} not found")
        return employer

    @app.get("/jobs", response_model=List[JobOut])
    def list_jobs(dao: Dao = Depends(job_dao)):
        return dao.query_for_all()

    @app.get("/jobs/{job_id}", response_model=JobOut)
    def get_job(job_id: int, dao: Dao = Depends(job_dao)):
        job = dao.query_for_id(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
        return job

    return app

