from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.requests import ParticipationRequestOut
from app.services import requests as request_service

router = APIRouter(prefix="/users/{user_id}/requests", tags=["requests"])


@router.get("", response_model=list[ParticipationRequestOut])
def get_user_requests(user_id: int, db: Session = Depends(get_db)):
    return request_service.get_user_requests(db, user_id)


@router.post("", response_model=ParticipationRequestOut, status_code=201)
def add_request(user_id: int, event_id: int = Query(alias="eventId"), db: Session = Depends(get_db)):
    return request_service.add_request(db, user_id, event_id)


@router.patch("/{request_id}/cancel", response_model=ParticipationRequestOut)
def cancel_request(user_id: int, request_id: int, db: Session = Depends(get_db)):
    return request_service.cancel_request(db, user_id, request_id)
