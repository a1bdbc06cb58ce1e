from pydantic import BaseModel, Field

from app.schemas.common import DateTime


class ApiError(BaseModel):
    status: str
    reason: str
    message: str
    timestamp: DateTime
    errors: list[str] = Field(default_factory=list)
