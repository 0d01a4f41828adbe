from typing import Annotated, Any, Generic, Literal, Optional, Union

from pydantic import BaseModel, Field
from typing_extensions import TypeVar

from docrepo.domain.exceptions.search import DecodeError
from docrepo.domain.shared.data_types import PositiveInt, ZeroOrPositiveInt

T = TypeVar("T")


class MetricAggregationResult(BaseModel):
    kind: Literal["metric"] = "metric"
    name: str
    value: Optional[float] = None


class TermsAggregationResult(BaseModel):
    kind: Literal["terms"] = "terms"
    name: str
    buckets: list["Bucket"] = []


NestedAggregationResult = Annotated[
    Union[TermsAggregationResult, MetricAggregationResult],
    Field(discriminator="kind"),
]


class Bucket(BaseModel):
    key: Any
    doc_count: ZeroOrPositiveInt = 0
    sub_aggregation: Optional[NestedAggregationResult] = None

    def metric(self) -> MetricAggregationResult:
        if not isinstance(self.sub_aggregation, MetricAggregationResult):
            raise DecodeError(f"Bucket '{self.key}' has no nested metric aggregation")
        return self.sub_aggregation

    def terms(self) -> TermsAggregationResult:
        if not isinstance(self.sub_aggregation, TermsAggregationResult):
            raise DecodeError(f"Bucket '{self.key}' has no nested terms aggregation")
        return self.sub_aggregation


TermsAggregationResult.model_rebuild()


class SearchResult(BaseModel, Generic[T]):
    items: list[T] = []
    total: ZeroOrPositiveInt = 0
    page: ZeroOrPositiveInt = 0
    page_size: PositiveInt = 10
    aggregations: dict[str, list[Bucket]] = {}

    @property
    def ids(self) -> list[Any]:
        return [getattr(x, "id", None) for x in self.items]

    def buckets(self, name: str) -> list[Bucket]:
        if name not in self.aggregations:
            raise DecodeError(f"Aggregation '{name}' is not in the search result")
        return self.aggregations[name]
