"""HTTP client for the JBApp facade."""

from typing import Any, Dict, List, Optional

import requests

from .config import load_settings
from .logger import get_logger

logger = get_logger()


class JBAppClient:
    """
    Thin requests wrapper around the facade's read endpoints.

    Connection errors and timeouts are not caught: a facade that is not
    running surfaces as requests.ConnectionError.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        self.base_url = (base_url or load_settings().base_url).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get(self, path: str) -> requests.Response:
        """Send a GET to path and return the raw response."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = self.session.get(url, timeout=self.timeout)
        logger.debug("GET", url=url, status=resp.status_code)
        return resp

    def _get_json(self, path: str) -> Any:
        resp = self.get(path)
        try:
            resp.raise_for_status()
        except requests.exceptions.HTTPError:
            logger.error("Facade request failed", path=path, status=resp.status_code)
            raise
        return resp.json()

    def health(self) -> Dict[str, Any]:
        return self._get_json("/health")

    def get_employers(self) -> List[Dict[str, Any]]:
        return self._get_json("/employers")

    def get_jobs(self) -> List[Dict[str, Any]]:
        return self._get_json("/jobs")

    def get_employer(self, employer_id: int) -> Dict[str, Any]:
        return self._get_json(f"/employers/{employer_id}")

    def get_job(self, job_id: int) -> Dict[str, Any]:
        return self._get_json(f"/jobs/{job_id}")
