import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INTEGER_PATTERN = re.compile(r"-?\d+")


class BaseEntity(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class BaseDocument(BaseEntity):
    id: Annotated[
        int,
        Field(ge=INT64_MIN, le=INT64_MAX, description="Unique document identifier"),
    ]

    @field_validator("id", mode="before")
    @classmethod
    def id_validator(cls, val):
        # the engine returns document ids as strings
        if isinstance(val, str) and INTEGER_PATTERN.fullmatch(val):
            return int(val)
        return val
