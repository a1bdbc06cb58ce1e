from pydantic import Field, field_validator

from app.models.requests import ParticipationRequest, RequestStatus
from app.schemas.common import CamelModel, DateTime


class ParticipationRequestOut(CamelModel):
    id: int
    created: DateTime
    event: int
    requester: int
    status: RequestStatus

    @classmethod
    def from_model(cls, request: ParticipationRequest) -> "ParticipationRequestOut":
        return cls(
            id=request.id,
            created=request.created,
            event=request.event_id,
            requester=request.requester_id,
            status=RequestStatus(request.status),
        )


class EventRequestStatusUpdateRequest(CamelModel):
    request_ids: list[int] = Field(min_length=1)
    status: RequestStatus

    @field_validator("status")
    @classmethod
    def moderation_target(cls, value: RequestStatus) -> RequestStatus:
        if value not in (RequestStatus.CONFIRMED, RequestStatus.REJECTED):
            raise ValueError("Status must be CONFIRMED or REJECTED")
        return value


class EventRequestStatusUpdateResult(CamelModel):
    confirmed_requests: list[ParticipationRequestOut] = Field(default_factory=list)
    rejected_requests: list[ParticipationRequestOut] = Field(default_factory=list)


