import logging
from contextlib import contextmanager

import redis

from app.core.config import LOCK_BLOCKING_TIMEOUT, LOCK_TIMEOUT, get_redis_url
from app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


@contextmanager
def event_lock(event_id: int):
    """
    Hold the per-event Redis lock.

    Every read-modify-write of an event's confirmed_requests counter runs
    under this lock so that two confirmations cannot both read the same
    counter value and overrun the participant limit.
    """
    redis_client = get_redis_client()
    lock = redis_client.lock(f"event_lock:{event_id}", timeout=LOCK_TIMEOUT, blocking_timeout=LOCK_BLOCKING_TIMEOUT)

    try:
        if not lock.acquire(blocking=True, blocking_timeout=LOCK_BLOCKING_TIMEOUT):
            raise ConflictError("Could not acquire lock, please try again.")
    except redis.exceptions.LockError:
        raise ConflictError("Could not acquire lock, please try again.")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            logger.warning("Lock for event %s expired before release", event_id)
