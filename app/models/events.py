import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.db import Base
from app.models.categories import Category
from app.models.users import User


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    annotation: Mapped[str] = mapped_column(String(2000), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    initiator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    participant_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    request_moderation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default=EventState.PENDING.value)
    created_on: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    published_on: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    confirmed_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Cached from the stats service, refreshed on single-event reads.
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped[Category] = relationship()
    initiator: Mapped[User] = relationship()
    location: Mapped[Location] = relationship()
    requests: Mapped[list["ParticipationRequest"]] = relationship(back_populates="event")

    @property
    def is_full(self) -> bool:
        return 0 < self.participant_limit <= self.confirmed_requests
