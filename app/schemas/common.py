from typing import Annotated

from pydantic import BaseModel, ConfigDict, NaiveDatetime, PlainSerializer
from pydantic.alias_generators import to_camel

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Datetimes travel as "yyyy-MM-dd HH:mm:ss" on the wire; values with a UTC offset are rejected.
DateTime = Annotated[
    NaiveDatetime,
    PlainSerializer(lambda d: d.strftime(DATETIME_FORMAT), return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
