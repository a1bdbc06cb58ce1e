"""
HTTP client for the statistics service.

The stats service records endpoint hits and reports view counts per URI.
Every call is bounded by ``STATS_TIMEOUT`` so a slow stats dependency
cannot stall the request that triggered it.
"""
import logging
from datetime import datetime
from functools import lru_cache
from typing import Iterable, Optional

import requests

from app.core.config import APP_NAME, STATS_SERVER_URL, STATS_TIMEOUT
from app.schemas.common import DATETIME_FORMAT

logger = logging.getLogger(__name__)


class StatsClientError(Exception):
    pass


class StatsClient:
    def __init__(self, base_url: str, timeout: float = 2.0, app_name: str = APP_NAME,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.app_name = app_name
        self.session = session or requests.Session()

    def record_hit(self, uri: str, ip: str, timestamp: datetime) -> None:
        payload = {
            "app": self.app_name,
            "uri": uri,
            "ip": ip,
            "timestamp": timestamp.strftime(DATETIME_FORMAT),
        }
        logger.debug("Sending hit to stats server: %s", payload)
        try:
            response = self.session.post(f"{self.base_url}/hit", json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise StatsClientError(f"Failed to record hit for {uri}: {e}") from e

    def get_views(self, start: datetime, end: datetime, uris: Iterable[str], unique: bool = False) -> dict[str, int]:
        params = {
            "start": start.strftime(DATETIME_FORMAT),
            "end": end.strftime(DATETIME_FORMAT),
            "unique": str(unique).lower(),
        }
        uris = list(uris)
        if uris:
            params["uris"] = ",".join(uris)

        try:
            response = self.session.get(f"{self.base_url}/stats", params=params, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise StatsClientError(f"Failed to fetch views: {e}") from e

        return {item["uri"]: int(item["hits"]) for item in body or []}


@lru_cache
def get_stats_client() -> StatsClient:
    return StatsClient(STATS_SERVER_URL, timeout=STATS_TIMEOUT)
