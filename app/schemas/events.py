import enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.models.events import EventState
from app.schemas.categories import CategoryOut
from app.schemas.common import CamelModel, DateTime
from app.schemas.users import UserShortOut


class UserStateAction(str, enum.Enum):
    SEND_TO_REVIEW = "SEND_TO_REVIEW"
    CANCEL_REVIEW = "CANCEL_REVIEW"


class AdminStateAction(str, enum.Enum):
    PUBLISH_EVENT = "PUBLISH_EVENT"
    REJECT_EVENT = "REJECT_EVENT"


class EventSort(str, enum.Enum):
    EVENT_DATE = "EVENT_DATE"
    VIEWS = "VIEWS"


class LocationSchema(BaseModel):
    lat: float
    lon: float

    class Config:
        from_attributes = True


# ---------- Event ----------
class NewEventIn(CamelModel):
    annotation: str = Field(min_length=20, max_length=2000)
    category: int = Field(ge=1)
    description: str = Field(min_length=20, max_length=7000)
    event_date: DateTime
    location: LocationSchema
    paid: bool = False
    participant_limit: int = Field(default=0, ge=0)
    request_moderation: bool = True
    title: str = Field(min_length=3, max_length=120)


class EventPatch(CamelModel):
    """Sparse update: only fields present in the payload are applied."""

    annotation: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    category: Optional[int] = Field(default=None, ge=1)
    description: Optional[str] = Field(default=None, min_length=20, max_length=7000)
    event_date: Optional[DateTime] = None
    location: Optional[LocationSchema] = None
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(default=None, ge=0)
    request_moderation: Optional[bool] = None
    title: Optional[str] = Field(default=None, min_length=3, max_length=120)

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulls = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulls:
            raise ValueError(f"Fields may be omitted but not null: {', '.join(nulls)}")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"state_action"})


class UpdateEventUserRequest(EventPatch):
    state_action: Optional[UserStateAction] = None


class UpdateEventAdminRequest(EventPatch):
    state_action: Optional[AdminStateAction] = None


class EventShortOut(CamelModel):
    id: int
    annotation: str
    category: CategoryOut
    confirmed_requests: int
    event_date: DateTime
    initiator: UserShortOut
    paid: bool
    title: str
    views: int


class EventFullOut(EventShortOut):
    created_on: DateTime
    description: str
    location: LocationSchema
    participant_limit: int
    published_on: Optional[DateTime] = None
    request_moderation: bool
    state: EventState
