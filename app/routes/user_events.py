from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.events import EventFullOut, EventShortOut, NewEventIn, UpdateEventUserRequest
from app.schemas.requests import (
    EventRequestStatusUpdateRequest,
    EventRequestStatusUpdateResult,
    ParticipationRequestOut,
)
from app.services import events as event_service
from app.services import requests as request_service

router = APIRouter(prefix="/users/{user_id}/events", tags=["user events"])


@router.post("", response_model=EventFullOut, status_code=201)
def add_event(user_id: int, payload: NewEventIn, db: Session = Depends(get_db)):
    return event_service.add_event(db, user_id, payload)


@router.get("", response_model=list[EventShortOut])
def get_user_events(
    user_id: int,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return event_service.get_user_events(db, user_id, from_, size)


@router.get("/{event_id}", response_model=EventFullOut)
def get_user_event(user_id: int, event_id: int, db: Session = Depends(get_db)):
    return event_service.get_user_event(db, user_id, event_id)


@router.patch("/{event_id}", response_model=EventFullOut)
def update_user_event(user_id: int, event_id: int, payload: UpdateEventUserRequest, db: Session = Depends(get_db)):
    return event_service.update_user_event(db, user_id, event_id, payload)


@router.get("/{event_id}/requests", response_model=list[ParticipationRequestOut])
def get_event_requests(user_id: int, event_id: int, db: Session = Depends(get_db)):
    return request_service.get_event_requests(db, user_id, event_id)


@router.patch("/{event_id}/requests", response_model=EventRequestStatusUpdateResult)
def update_request_status(
    user_id: int,
    event_id: int,
    payload: EventRequestStatusUpdateRequest,
    db: Session = Depends(get_db),
):
    return request_service.update_request_status(db, user_id, event_id, payload)
