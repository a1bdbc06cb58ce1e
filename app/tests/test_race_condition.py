"""
Concurrent confirmations against one event must never overrun its participant limit.

Each worker uses its own session on a file-backed SQLite database, the way
separate API requests would.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ConflictError
from app.database.db import Base
from app.models.categories import Category
from app.models.events import Event, EventState, Location
from app.models.requests import ParticipationRequest, RequestStatus
from app.models.users import User
from app.schemas.requests import EventRequestStatusUpdateRequest
from app.services.requests import add_request, update_request_status


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def seed(Session, participant_limit: int, request_moderation: bool, guests: int):
    with Session() as db:
        owner = User(name="owner", email="owner@example.com")
        users = [User(name=f"guest{i}", email=f"guest{i}@example.com") for i in range(guests)]
        now = datetime.now()
        event = Event(
            title="Sold out show",
            annotation="Only a handful of seats for a very popular show",
            description="Doors open at seven, the show starts at eight sharp.",
            category=Category(name="Theatre"),
            initiator=owner,
            location=Location(lat=1.0, lon=2.0),
            event_date=now + timedelta(days=2),
            participant_limit=participant_limit,
            request_moderation=request_moderation,
            state=EventState.PUBLISHED.value,
            created_on=now,
            published_on=now,
        )
        db.add_all([event, *users])
        db.commit()
        return owner.id, event.id, [u.id for u in users]


def test_concurrent_auto_confirmations(file_sessions, redis_client):
    owner_id, event_id, guest_ids = seed(file_sessions, participant_limit=3, request_moderation=False, guests=10)

    def join(user_id: int):
        with file_sessions() as db:
            try:
                return add_request(db, user_id, event_id).status
            except ConflictError:
                return None

    with ThreadPoolExecutor(max_workers=10) as executor:
        results = list(executor.map(join, guest_ids))

    assert results.count(RequestStatus.CONFIRMED) == 3
    assert results.count(None) == 7

    with file_sessions() as db:
        assert db.get(Event, event_id).confirmed_requests == 3


def test_concurrent_moderation_batches(file_sessions, redis_client):
    owner_id, event_id, guest_ids = seed(file_sessions, participant_limit=4, request_moderation=True, guests=8)
    request_ids = []
    with file_sessions() as db:
        for guest_id in guest_ids:
            request_ids.append(add_request(db, guest_id, event_id).id)

    def confirm(batch):
        with file_sessions() as db:
            try:
                payload = EventRequestStatusUpdateRequest(request_ids=batch, status=RequestStatus.CONFIRMED)
                return len(update_request_status(db, owner_id, event_id, payload).confirmed_requests)
            except ConflictError:
                return 0

    batches = [request_ids[i:i + 2] for i in range(0, len(request_ids), 2)]
    with ThreadPoolExecutor(max_workers=len(batches)) as executor:
        confirmed = sum(executor.map(confirm, batches))

    assert confirmed == 4
    with file_sessions() as db:
        assert db.get(Event, event_id).confirmed_requests == 4
        statuses = db.scalars(
            select(ParticipationRequest.status).where(ParticipationRequest.event_id == event_id)
        ).all()
        assert statuses.count(RequestStatus.CONFIRMED.value) == 4
        assert statuses.count(RequestStatus.PENDING.value) == 0
