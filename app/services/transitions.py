"""
Event state machine.

PENDING is the initial state. Owners move events between PENDING and
CANCELED; only an admin can publish, and PUBLISHED has no way out. Each
state action maps to one transition function which either mutates the
event or raises ``ConflictError``.
"""
from datetime import datetime, timedelta

from app.core.exceptions import ConflictError
from app.models.events import Event, EventState
from app.schemas.events import AdminStateAction, UserStateAction

PUBLISH_LEAD_TIME = timedelta(hours=1)


def _ensure_not_published(event: Event, message: str) -> None:
    if event.state == EventState.PUBLISHED.value:
        raise ConflictError(message)


def send_to_review(event: Event, now: datetime) -> None:
    _ensure_not_published(event, "Cannot update published event")
    event.state = EventState.PENDING.value


def cancel_review(event: Event, now: datetime) -> None:
    _ensure_not_published(event, "Cannot update published event")
    event.state = EventState.CANCELED.value


def publish(event: Event, now: datetime) -> None:
    if event.state != EventState.PENDING.value:
        raise ConflictError(f"Cannot publish the event because it's not in the right state: {event.state}")
    if event.event_date < now + PUBLISH_LEAD_TIME:
        raise ConflictError("Event date must be at least 1 hour from publication time")
    event.state = EventState.PUBLISHED.value
    event.published_on = now


def reject(event: Event, now: datetime) -> None:
    _ensure_not_published(event, "Cannot reject the event because it's already published")
    event.state = EventState.CANCELED.value


USER_TRANSITIONS = {
    UserStateAction.SEND_TO_REVIEW: send_to_review,
    UserStateAction.CANCEL_REVIEW: cancel_review,
}

ADMIN_TRANSITIONS = {
    AdminStateAction.PUBLISH_EVENT: publish,
    AdminStateAction.REJECT_EVENT: reject,
}
