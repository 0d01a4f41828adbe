from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from docrepo.domain.exceptions.search import InvalidRequestError
from docrepo.domain.shared.data_types import PositiveInt
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor

DEFAULT_TERMS_SIZE = 10


class AvgAggregation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["avg"] = "avg"
    name: Annotated[str, Field(min_length=1)]
    field: str


class TermsAggregation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["terms"] = "terms"
    name: Annotated[str, Field(min_length=1)]
    field: str
    size: PositiveInt = DEFAULT_TERMS_SIZE
    sub_aggregation: Optional["SubAggregation"] = None


SubAggregation = Annotated[
    Union[AvgAggregation, TermsAggregation], Field(discriminator="kind")
]

TermsAggregation.model_rebuild()


class AggregationBuilder:
    """Creates aggregations for one entity kind.

    Terms buckets are ordered by descending document count, ties by
    ascending key, and documents without a value are not bucketed.
    A terms aggregation on a text field buckets the field's exact
    sub-field, since analyzed tokens cannot be aggregated.
    Only one level of nesting is supported.
    """

    def __init__(self, descriptor: EntityDescriptor):
        self._descriptor = descriptor

    def terms(
        self,
        name: str,
        field_name: str,
        size: int = DEFAULT_TERMS_SIZE,
        sub_aggregation: Optional[Union[AvgAggregation, TermsAggregation]] = None,
    ) -> TermsAggregation:
        field = self._descriptor.exact_subfield_name(field_name)
        if size < 1:
            raise InvalidRequestError(
                f"Terms aggregation '{name}' size must be positive: {size}"
            )
        if (
            isinstance(sub_aggregation, TermsAggregation)
            and sub_aggregation.sub_aggregation is not None
        ):
            raise InvalidRequestError(
                f"Terms aggregation '{name}' nests deeper than one level"
            )
        return TermsAggregation(
            name=name, field=field, size=size, sub_aggregation=sub_aggregation
        )

    def avg(self, name: str, field_name: str) -> AvgAggregation:
        spec = self._descriptor.describe(field_name)
        if not spec.is_numeric:
            raise InvalidRequestError(
                f"Avg aggregation '{name}' needs a numeric field, "
                f"'{field_name}' is {spec.kind.value}"
            )
        return AvgAggregation(name=name, field=spec.name)
