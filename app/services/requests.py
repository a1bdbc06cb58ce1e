"""
Participation requests: joining, self-cancellation and owner moderation.

``Event.confirmed_requests`` is a denormalized counter shared with the
event service. Every change to it happens while the per-event Redis lock
is held, through a conditional UPDATE that cannot push the counter past
``participant_limit``.
"""
import logging
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.events import Event, EventState
from app.models.requests import ParticipationRequest, RequestStatus
from app.schemas.requests import (
    EventRequestStatusUpdateRequest,
    EventRequestStatusUpdateResult,
    ParticipationRequestOut,
)
from app.services.events import get_owned_event
from app.services.locking import event_lock
from app.services.users import get_user

logger = logging.getLogger(__name__)


def _lock_event_row(db: Session, event_id: int) -> Event:
    """Load the event with SELECT ... FOR UPDATE, bypassing stale identity-map state."""
    event = db.scalar(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return event


def _try_increment_confirmed(db: Session, event_id: int) -> bool:
    """Atomically take one seat; False when the participant limit is reached."""
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .where(or_(Event.participant_limit == 0, Event.confirmed_requests < Event.participant_limit))
        .values(confirmed_requests=Event.confirmed_requests + 1)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1  # type: ignore


def _decrement_confirmed(db: Session, event_id: int) -> None:
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .where(Event.confirmed_requests > 0)
        .values(confirmed_requests=Event.confirmed_requests - 1)
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)


def add_request(db: Session, user_id: int, event_id: int) -> ParticipationRequestOut:
    logger.info("Adding participation request: user=%s, event=%s", user_id, event_id)

    requester = get_user(db, user_id)

    with event_lock(event_id):
        try:
            event = _lock_event_row(db, event_id)

            exists = db.scalar(
                select(ParticipationRequest.id).where(
                    ParticipationRequest.event_id == event_id,
                    ParticipationRequest.requester_id == user_id,
                )
            )
            if exists is not None:
                raise ConflictError("Request already exists")
            if event.initiator_id == user_id:
                raise ConflictError("Event initiator cannot request participation in their own event")
            if event.state != EventState.PUBLISHED.value:
                raise ConflictError("Cannot participate in unpublished event")
            if event.is_full:
                raise ConflictError("Participant limit reached")

            request = ParticipationRequest(
                event_id=event.id,
                requester_id=requester.id,
                created=datetime.now(),
                status=RequestStatus.PENDING.value,
            )

            # Auto-approval: moderation disabled or unlimited capacity.
            if not event.request_moderation or event.participant_limit == 0:
                if not _try_increment_confirmed(db, event_id):
                    raise ConflictError("Participant limit reached")
                request.status = RequestStatus.CONFIRMED.value

            db.add(request)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Request already exists")
        except Exception:
            db.rollback()
            raise

    db.refresh(request)
    logger.info("Request added with id: %s, status: %s", request.id, request.status)
    return ParticipationRequestOut.from_model(request)


def get_user_requests(db: Session, user_id: int) -> list[ParticipationRequestOut]:
    logger.info("Getting requests for user: %s", user_id)

    get_user(db, user_id)
    stmt = select(ParticipationRequest).where(ParticipationRequest.requester_id == user_id).order_by(
        ParticipationRequest.id
    )
    return [ParticipationRequestOut.from_model(r) for r in db.scalars(stmt)]


def cancel_request(db: Session, user_id: int, request_id: int) -> ParticipationRequestOut:
    logger.info("Canceling request: user=%s, request=%s", user_id, request_id)

    request = db.get(ParticipationRequest, request_id)
    if not request or request.requester_id != user_id:
        raise NotFoundError(f"Request with id={request_id} was not found")

    with event_lock(request.event_id):
        try:
            db.refresh(request)
            previous_status = request.status
            request.status = RequestStatus.CANCELED.value

            if previous_status == RequestStatus.CONFIRMED.value:
                _decrement_confirmed(db, request.event_id)

            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(request)
    logger.info("Request canceled: %s (was %s)", request_id, previous_status)
    return ParticipationRequestOut.from_model(request)


def get_event_requests(db: Session, user_id: int, event_id: int) -> list[ParticipationRequestOut]:
    logger.info("Getting requests for event: %s by user: %s", event_id, user_id)

    get_owned_event(db, user_id, event_id)
    stmt = select(ParticipationRequest).where(ParticipationRequest.event_id == event_id).order_by(
        ParticipationRequest.id
    )
    return [ParticipationRequestOut.from_model(r) for r in db.scalars(stmt)]


def update_request_status(
    db: Session, user_id: int, event_id: int, payload: EventRequestStatusUpdateRequest
) -> EventRequestStatusUpdateResult:
    """Confirm or reject a batch of pending requests for one event.

    Confirmation re-checks the limit for every request: once the event is
    full the remaining requests of the batch are rejected instead. When the
    event ends up full, every other pending request is rejected as well.
    A request that is not pending aborts the whole batch.
    """
    logger.info("Updating request status: user=%s, event=%s, status=%s", user_id, event_id, payload.status)

    with event_lock(event_id):
        try:
            event = _lock_event_row(db, event_id)
            if event.initiator_id != user_id:
                raise NotFoundError(f"Event with id={event_id} was not found")

            confirming = payload.status == RequestStatus.CONFIRMED
            if confirming and event.is_full:
                raise ConflictError("Participant limit reached")

            requests = list(
                db.scalars(
                    select(ParticipationRequest)
                    .where(
                        ParticipationRequest.id.in_(payload.request_ids),
                        ParticipationRequest.event_id == event_id,
                    )
                    .order_by(ParticipationRequest.id)
                )
            )
            missing = set(payload.request_ids) - {r.id for r in requests}
            if missing:
                raise NotFoundError(f"Requests with ids={sorted(missing)} were not found")

            confirmed, rejected = [], []
            for request in requests:
                if request.status != RequestStatus.PENDING.value:
                    raise ConflictError("Request must have status PENDING")

                if confirming and _try_increment_confirmed(db, event_id):
                    request.status = RequestStatus.CONFIRMED.value
                    confirmed.append(request)
                else:
                    request.status = RequestStatus.REJECTED.value
                    rejected.append(request)

            db.flush()
            db.refresh(event)

            if event.is_full:
                overflow = list(
                    db.scalars(
                        select(ParticipationRequest).where(
                            ParticipationRequest.event_id == event_id,
                            ParticipationRequest.status == RequestStatus.PENDING.value,
                        ).order_by(ParticipationRequest.id)
                    )
                )
                for pending in overflow:
                    pending.status = RequestStatus.REJECTED.value
                    rejected.append(pending)

            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info("Request status updated: confirmed=%s, rejected=%s", len(confirmed), len(rejected))
    return EventRequestStatusUpdateResult(
        confirmed_requests=[ParticipationRequestOut.from_model(r) for r in confirmed],
        rejected_requests=[ParticipationRequestOut.from_model(r) for r in rejected],
    )
