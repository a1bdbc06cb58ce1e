from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import NaiveDatetime
from sqlalchemy.orm import Session

from app.clients.stats import StatsClient, get_stats_client
from app.database.db import get_db
from app.schemas.events import EventFullOut, EventShortOut, EventSort
from app.services import events as event_service

router = APIRouter(prefix="/events", tags=["events"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.get("", response_model=list[EventShortOut])
def get_events(
    request: Request,
    text: Optional[str] = None,
    categories: Optional[list[int]] = Query(None),
    paid: Optional[bool] = None,
    range_start: Optional[NaiveDatetime] = Query(None, alias="rangeStart"),
    range_end: Optional[NaiveDatetime] = Query(None, alias="rangeEnd"),
    only_available: bool = Query(False, alias="onlyAvailable"),
    sort: Optional[EventSort] = None,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    return event_service.get_public_events(
        db,
        stats,
        ip=_client_ip(request),
        uri=request.url.path,
        text=text,
        categories=categories,
        paid=paid,
        range_start=range_start,
        range_end=range_end,
        only_available=only_available,
        sort=sort,
        from_=from_,
        size=size,
    )


@router.get("/{event_id}", response_model=EventFullOut)
def get_event(
    event_id: int,
    request: Request,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    return event_service.get_published_event(db, stats, event_id, ip=_client_ip(request), uri=request.url.path)
