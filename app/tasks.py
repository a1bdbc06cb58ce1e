import logging
from datetime import datetime

from app.clients.stats import StatsClientError, get_stats_client
from app.core.celery_config import celery_app
from app.schemas.common import DATETIME_FORMAT

logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def record_hit_task(self, uri: str, ip: str, timestamp: str):
    """Deliver one endpoint hit to the stats service."""
    try:
        get_stats_client().record_hit(uri, ip, datetime.strptime(timestamp, DATETIME_FORMAT))
    except StatsClientError as e:
        logger.warning("Hit for %s from %s was not recorded: %s", uri, ip, e)
        return False
    return True
