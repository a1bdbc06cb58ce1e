import os
from datetime import datetime, timedelta

# Keep the application's own engine off disk; tests use the engine below.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from app.clients.stats import StatsClientError, get_stats_client
from app.core.celery_config import celery_app
from app.database.db import Base, get_db
from app.main import app
from app.models.categories import Category
from app.models.events import Event, EventState, Location
from app.models.users import User

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeStatsClient:
    """In-process stand-in for the stats service.

    ``views`` seeds hits from earlier visitors; recorded hits are counted on top.
    """

    def __init__(self):
        self.hits = []
        self.views = {}
        self.fail = False

    def record_hit(self, uri, ip, timestamp):
        if self.fail:
            raise StatsClientError("stats service is down")
        self.hits.append((uri, ip, timestamp))

    def get_views(self, start, end, uris, unique=False):
        if self.fail:
            raise StatsClientError("stats service is down")
        counts = {}
        for uri in uris:
            recorded = [ip for hit_uri, ip, _ in self.hits if hit_uri == uri]
            count = self.views.get(uri, 0) + len(set(recorded) if unique else recorded)
            if count:
                counts[uri] = count
        return counts


@pytest.fixture(scope="session", autouse=True)
def celery_eager():
    """Run Celery tasks inline instead of sending them to a broker."""
    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture(autouse=True)
def setup_database():
    """Give every test a fresh schema."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def redis_client(fake_redis, monkeypatch: pytest.MonkeyPatch):
    """Route the per-event locks to fakeredis."""
    monkeypatch.setattr("app.services.locking.get_redis_client", lambda: fake_redis)
    return fake_redis


@pytest.fixture(autouse=True)
def stats_client(monkeypatch: pytest.MonkeyPatch):
    fake = FakeStatsClient()
    monkeypatch.setattr("app.tasks.get_stats_client", lambda: fake)
    return fake


# Override the database dependency
def override_get_db():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(stats_client):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stats_client] = lambda: stats_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------- Factories ----------
@pytest.fixture
def make_user(db_session: Session):
    counter = {"n": 0}

    def _make_user(name: str = "user") -> User:
        counter["n"] += 1
        user = User(name=f"{name}{counter['n']}", email=f"{name}{counter['n']}@example.com")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def category(db_session: Session) -> Category:
    category = Category(name="Concerts")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_event(db_session: Session, category: Category):
    def _make_event(
        initiator: User,
        state: EventState = EventState.PUBLISHED,
        participant_limit: int = 0,
        request_moderation: bool = True,
        confirmed_requests: int = 0,
        event_date: datetime | None = None,
        title: str = "Jazz in the park",
        annotation: str = "An evening of live jazz under the open sky",
        paid: bool = False,
    ) -> Event:
        now = datetime.now()
        event = Event(
            title=title,
            annotation=annotation,
            description="Local bands play standards and originals until late evening.",
            category=category,
            initiator=initiator,
            location=Location(lat=55.75, lon=37.61),
            event_date=event_date or now + timedelta(days=3),
            paid=paid,
            participant_limit=participant_limit,
            request_moderation=request_moderation,
            state=state.value,
            created_on=now,
            published_on=now if state == EventState.PUBLISHED else None,
            confirmed_requests=confirmed_requests,
            views=0,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make_event
