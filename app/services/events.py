"""
Event lifecycle: creation, owner and admin updates, public and admin search.

Owner edits require the event date to be at least two hours ahead and are
refused once the event is published. Admin edits drive the publish/reject
transitions. Public reads report hits to the stats service and enrich
events with view counts, both on a best-effort basis. The single-event
read records its hit inline so the count it returns includes that visit.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.clients.stats import StatsClient
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.events import Event, EventState, Location
from app.schemas.events import (
    EventFullOut,
    EventPatch,
    EventShortOut,
    EventSort,
    NewEventIn,
    UpdateEventAdminRequest,
    UpdateEventUserRequest,
)
from app.services.categories import get_category
from app.services.locking import event_lock
from app.services.stats import event_uri, fetch_views, record_hit_now, send_hit
from app.services.transitions import ADMIN_TRANSITIONS, USER_TRANSITIONS
from app.services.users import get_user

logger = logging.getLogger(__name__)

USER_EVENT_LEAD_TIME = timedelta(hours=2)


def _page(stmt, from_: int, size: int):
    return stmt.offset((from_ // size) * size).limit(size)


def _check_user_lead_time(event_date: datetime, now: datetime) -> None:
    if event_date < now + USER_EVENT_LEAD_TIME:
        raise ValidationError("Event date must be at least 2 hours from now")


def _not_found(event_id: int) -> NotFoundError:
    return NotFoundError(f"Event with id={event_id} was not found")


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise _not_found(event_id)
    return event


def get_owned_event(db: Session, user_id: int, event_id: int) -> Event:
    """Look up an event on behalf of its initiator.

    Someone else's event is reported exactly like a missing one.
    """
    event = db.get(Event, event_id)
    if not event or event.initiator_id != user_id:
        raise _not_found(event_id)
    return event


def _apply_patch(db: Session, event: Event, patch: EventPatch) -> None:
    for field, value in patch.changes().items():
        if field == "category":
            event.category = get_category(db, value)
        elif field == "location":
            event.location = Location(lat=value["lat"], lon=value["lon"])
        elif field == "participant_limit":
            if 0 < value < event.confirmed_requests:
                raise ConflictError(
                    f"Participant limit {value} is below the {event.confirmed_requests} confirmed requests"
                )
            event.participant_limit = value
        else:
            setattr(event, field, value)


def add_event(db: Session, user_id: int, payload: NewEventIn) -> EventFullOut:
    logger.info("Adding new event by user: %s", user_id)

    now = datetime.now()
    _check_user_lead_time(payload.event_date, now)

    initiator = get_user(db, user_id)
    category = get_category(db, payload.category)

    event = Event(
        title=payload.title,
        annotation=payload.annotation,
        description=payload.description,
        category=category,
        initiator=initiator,
        location=Location(lat=payload.location.lat, lon=payload.location.lon),
        event_date=payload.event_date,
        paid=payload.paid,
        participant_limit=payload.participant_limit,
        request_moderation=payload.request_moderation,
        state=EventState.PENDING.value,
        created_on=now,
        confirmed_requests=0,
        views=0,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info("Event added with id: %s", event.id)
    return EventFullOut.model_validate(event)


def get_user_events(db: Session, user_id: int, from_: int, size: int) -> list[EventShortOut]:
    logger.info("Getting events for user: %s, from: %s, size: %s", user_id, from_, size)

    get_user(db, user_id)
    stmt = _page(select(Event).where(Event.initiator_id == user_id).order_by(Event.id), from_, size)
    return [EventShortOut.model_validate(event) for event in db.scalars(stmt)]


def get_user_event(db: Session, user_id: int, event_id: int) -> EventFullOut:
    logger.info("Getting event: %s for user: %s", event_id, user_id)
    return EventFullOut.model_validate(get_owned_event(db, user_id, event_id))


def update_user_event(db: Session, user_id: int, event_id: int, payload: UpdateEventUserRequest) -> EventFullOut:
    logger.info("Updating event %s by user %s", event_id, user_id)

    with event_lock(event_id):
        event = get_owned_event(db, user_id, event_id)
        try:
            if event.state == EventState.PUBLISHED.value:
                raise ConflictError("Cannot update published event")

            now = datetime.now()
            if payload.event_date is not None:
                _check_user_lead_time(payload.event_date, now)

            _apply_patch(db, event, payload)
            if payload.state_action is not None:
                USER_TRANSITIONS[payload.state_action](event, now)

            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(event)
    logger.info("Event updated: %s", event.id)
    return EventFullOut.model_validate(event)


def update_event_by_admin(db: Session, event_id: int, payload: UpdateEventAdminRequest) -> EventFullOut:
    logger.info("Admin updating event %s: %s", event_id, payload.model_dump(exclude_unset=True))

    with event_lock(event_id):
        event = get_event(db, event_id)
        try:
            _apply_patch(db, event, payload)
            if payload.state_action is not None:
                ADMIN_TRANSITIONS[payload.state_action](event, datetime.now())

            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(event)
    logger.info("Event updated by admin: %s", event.id)
    return EventFullOut.model_validate(event)


def get_public_events(
    db: Session,
    stats: StatsClient,
    *,
    ip: str,
    uri: str,
    text: Optional[str] = None,
    categories: Optional[list[int]] = None,
    paid: Optional[bool] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    only_available: bool = False,
    sort: Optional[EventSort] = None,
    from_: int = 0,
    size: int = 10,
) -> list[EventShortOut]:
    logger.info(
        "Getting public events: text=%s, categories=%s, paid=%s, rangeStart=%s, rangeEnd=%s, "
        "onlyAvailable=%s, sort=%s, from=%s, size=%s",
        text, categories, paid, range_start, range_end, only_available, sort, from_, size,
    )

    send_hit(ip, uri)

    if range_start is None and range_end is None:
        range_start = datetime.now()
    if range_start is not None and range_end is not None and range_start > range_end:
        raise ValidationError("Start date must be before end date")

    stmt = select(Event).where(Event.state == EventState.PUBLISHED.value)
    if text:
        pattern = f"%{text.lower()}%"
        stmt = stmt.where(or_(func.lower(Event.annotation).like(pattern), func.lower(Event.title).like(pattern)))
    if categories:
        stmt = stmt.where(Event.category_id.in_(categories))
    if paid is not None:
        stmt = stmt.where(Event.paid == paid)
    if range_start is not None:
        stmt = stmt.where(Event.event_date >= range_start)
    if range_end is not None:
        stmt = stmt.where(Event.event_date <= range_end)
    if only_available:
        stmt = stmt.where(or_(Event.participant_limit == 0, Event.confirmed_requests < Event.participant_limit))

    stmt = stmt.order_by(Event.event_date if sort == EventSort.EVENT_DATE else Event.id)
    events = list(db.scalars(_page(stmt, from_, size)))

    views = fetch_views(stats, [event.id for event in events])
    results = []
    for event in events:
        dto = EventShortOut.model_validate(event)
        dto.views = views.get(event.id, 0)
        results.append(dto)

    if sort == EventSort.VIEWS:
        results.sort(key=lambda dto: dto.views, reverse=True)
    return results


def get_published_event(db: Session, stats: StatsClient, event_id: int, *, ip: str, uri: str) -> EventFullOut:
    logger.info("Getting published event: %s", event_id)

    event = db.scalar(select(Event).where(Event.id == event_id, Event.state == EventState.PUBLISHED.value))
    if not event:
        raise _not_found(event_id)

    # Recorded inline: the lookup below must already see this visit.
    record_hit_now(stats, ip, uri)

    views = fetch_views(stats, [event_id])
    if event_id in views:
        event.views = views[event_id]
        db.commit()
        db.refresh(event)
        return EventFullOut.model_validate(event)

    # No count available: report zero, the stored count stays for the next successful lookup.
    logger.info("No fresh view count for %s, reporting 0 views", event_uri(event_id))
    dto = EventFullOut.model_validate(event)
    dto.views = 0
    return dto


def _parse_states(states: Optional[list[str]]) -> Optional[list[str]]:
    if not states:
        return None
    parsed = []
    for token in states:
        try:
            parsed.append(EventState(token.strip().upper()).value)
        except ValueError:
            raise ValidationError(f"Unknown event state: {token}")
    return parsed


def get_admin_events(
    db: Session,
    *,
    users: Optional[list[int]] = None,
    states: Optional[list[str]] = None,
    categories: Optional[list[int]] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    from_: int = 0,
    size: int = 10,
) -> list[EventFullOut]:
    logger.info(
        "Getting admin events: users=%s, states=%s, categories=%s, rangeStart=%s, rangeEnd=%s",
        users, states, categories, range_start, range_end,
    )

    parsed_states = _parse_states(states)
    if range_start is not None and range_end is not None and range_start > range_end:
        raise ValidationError("Start date must be before end date")

    stmt = select(Event)
    if users:
        stmt = stmt.where(Event.initiator_id.in_(users))
    if parsed_states:
        stmt = stmt.where(Event.state.in_(parsed_states))
    if categories:
        stmt = stmt.where(Event.category_id.in_(categories))
    if range_start is not None:
        stmt = stmt.where(Event.event_date >= range_start)
    if range_end is not None:
        stmt = stmt.where(Event.event_date <= range_end)

    stmt = _page(stmt.order_by(Event.id), from_, size)
    return [EventFullOut.model_validate(event) for event in db.scalars(stmt)]
