"""
Best-effort access to the stats service.

None of the helpers ever raises: a failed hit is logged and dropped, a
failed view lookup degrades to an empty mapping so callers fall back to zero.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable

from app.clients.stats import StatsClient, StatsClientError
from app.schemas.common import DATETIME_FORMAT
from app.tasks import record_hit_task

logger = logging.getLogger(__name__)

VIEWS_WINDOW_START = datetime(2020, 1, 1)


def event_uri(event_id: int) -> str:
    return f"/events/{event_id}"


def send_hit(ip: str, uri: str) -> None:
    """Queue a hit for the stats service without waiting for delivery."""
    timestamp = datetime.now().strftime(DATETIME_FORMAT)
    try:
        record_hit_task.delay(uri, ip, timestamp)
    except Exception:
        logger.warning("Failed to dispatch stats hit for uri=%s ip=%s", uri, ip, exc_info=True)
        return
    logger.info("Sent statistics for uri: %s, ip: %s", uri, ip)


def record_hit_now(client: StatsClient, ip: str, uri: str) -> None:
    """Deliver a hit synchronously, so a view lookup right after it already counts it."""
    try:
        client.record_hit(uri, ip, datetime.now())
    except StatsClientError as e:
        logger.warning("Failed to record hit for uri=%s ip=%s: %s", uri, ip, e)


def fetch_views(client: StatsClient, event_ids: Iterable[int]) -> dict[int, int]:
    """Return unique-ip view counts keyed by event id; missing ids mean zero."""
    uris = {event_uri(event_id): event_id for event_id in event_ids}
    if not uris:
        return {}

    try:
        hits = client.get_views(VIEWS_WINDOW_START, datetime.now() + timedelta(days=1), uris.keys(), unique=True)
    except StatsClientError as e:
        logger.warning("Failed to get views for events %s: %s", list(uris.values()), e)
        return {}

    return {uris[uri]: count for uri, count in hits.items() if uri in uris}
