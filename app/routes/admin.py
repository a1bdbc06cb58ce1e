from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import NaiveDatetime
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.categories import CategoryIn, CategoryOut
from app.schemas.events import EventFullOut, UpdateEventAdminRequest
from app.schemas.users import NewUserRequest, UserOut
from app.services import categories as category_service
from app.services import events as event_service
from app.services import users as user_service

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------- Events ----------
@router.get("/events", response_model=list[EventFullOut])
def get_admin_events(
    users: Optional[list[int]] = Query(None),
    states: Optional[list[str]] = Query(None),
    categories: Optional[list[int]] = Query(None),
    range_start: Optional[NaiveDatetime] = Query(None, alias="rangeStart"),
    range_end: Optional[NaiveDatetime] = Query(None, alias="rangeEnd"),
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return event_service.get_admin_events(
        db,
        users=users,
        states=states,
        categories=categories,
        range_start=range_start,
        range_end=range_end,
        from_=from_,
        size=size,
    )


@router.patch("/events/{event_id}", response_model=EventFullOut)
def update_event(event_id: int, payload: UpdateEventAdminRequest, db: Session = Depends(get_db)):
    return event_service.update_event_by_admin(db, event_id, payload)


# ---------- Users ----------
@router.post("/users", response_model=UserOut, status_code=201)
def register_user(payload: NewUserRequest, db: Session = Depends(get_db)):
    return user_service.register_user(db, payload)


@router.get("/users", response_model=list[UserOut])
def get_users(
    ids: Optional[list[int]] = Query(None),
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return user_service.get_users(db, ids, from_, size)


# ---------- Categories ----------
@router.post("/categories", response_model=CategoryOut, status_code=201)
def add_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return category_service.add_category(db, payload)


@router.patch("/categories/{category_id}", response_model=CategoryOut)
def update_category(category_id: int, payload: CategoryIn, db: Session = Depends(get_db)):
    return category_service.update_category(db, category_id, payload)


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    category_service.delete_category(db, category_id)
    return Response(status_code=204)
