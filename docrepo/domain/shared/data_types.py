from typing import Annotated, Literal, Union

import annotated_types
from typing_extensions import TypeVar

from docrepo.domain.entities.base_entity import BaseDocument

ZeroOrPositiveInt = Annotated[int, annotated_types.Ge(0)]
PositiveInt = Annotated[int, annotated_types.Ge(1)]
FieldValue = Union[bool, int, float, str]
RefreshPolicy = Literal["true", "false", "wait_for"]

ENTITY_TYPE = TypeVar("ENTITY_TYPE", bound=BaseDocument)
ID_TYPE = TypeVar("ID_TYPE")
