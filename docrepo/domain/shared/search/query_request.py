from typing import Optional

from pydantic import BaseModel, ConfigDict

from docrepo.domain.enums.sort_order import SortOrder
from docrepo.domain.exceptions.search import InvalidRequestError
from docrepo.domain.shared.data_types import PositiveInt, ZeroOrPositiveInt
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor
from docrepo.domain.shared.repository.sort_option import SortOption
from docrepo.domain.shared.search.aggregations import TermsAggregation
from docrepo.domain.shared.search.predicates import Predicate

DEFAULT_PAGE_SIZE = 10
SCORE_SORT_FIELD = "_score"


class QueryRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    predicate: Optional[Predicate] = None
    page: ZeroOrPositiveInt = 0
    page_size: PositiveInt = DEFAULT_PAGE_SIZE
    sort: tuple[SortOption, ...] = ()
    source_fields: tuple[str, ...] = ()
    aggregations: tuple[TermsAggregation, ...] = ()

    @property
    def offset(self) -> int:
        return self.page * self.page_size

    def to_builder(
        self, descriptor: Optional[EntityDescriptor] = None
    ) -> "QueryRequestBuilder":
        builder = QueryRequestBuilder(descriptor)
        builder._predicate = self.predicate
        builder._page = self.page
        builder._page_size = self.page_size
        builder._sort = list(self.sort)
        builder._source_fields = list(self.source_fields)
        builder._aggregations = list(self.aggregations)
        return builder


class QueryRequestBuilder:
    """Accumulates the parts of a search request.

    Nothing is checked until ``build()``. With a descriptor, sort and
    source fields are checked against it and sorting on a text field
    uses its exact sub-field.
    """

    def __init__(self, descriptor: Optional[EntityDescriptor] = None):
        self._descriptor = descriptor
        self._predicate: Optional[Predicate] = None
        self._page = 0
        self._page_size = DEFAULT_PAGE_SIZE
        self._sort: list[SortOption] = []
        self._source_fields: list[str] = []
        self._aggregations: list[TermsAggregation] = []

    def with_predicate(self, predicate: Optional[Predicate]) -> "QueryRequestBuilder":
        self._predicate = predicate
        return self

    def with_page(
        self, page: int, page_size: Optional[int] = None
    ) -> "QueryRequestBuilder":
        self._page = page
        if page_size is not None:
            self._page_size = page_size
        return self

    def with_page_size(self, page_size: int) -> "QueryRequestBuilder":
        self._page_size = page_size
        return self

    def with_sort(
        self, field_name: str, order: SortOrder = SortOrder.ASC
    ) -> "QueryRequestBuilder":
        self._sort.append(SortOption(field=field_name, order=order))
        return self

    def with_source_fields(self, *field_names: str) -> "QueryRequestBuilder":
        self._source_fields.extend(field_names)
        return self

    def add_aggregation(self, aggregation: TermsAggregation) -> "QueryRequestBuilder":
        self._aggregations.append(aggregation)
        return self

    def copy(self) -> "QueryRequestBuilder":
        builder = QueryRequestBuilder(self._descriptor)
        builder._predicate = self._predicate
        builder._page = self._page
        builder._page_size = self._page_size
        builder._sort = list(self._sort)
        builder._source_fields = list(self._source_fields)
        builder._aggregations = list(self._aggregations)
        return builder

    def _sort_options(self) -> tuple[SortOption, ...]:
        if not self._descriptor:
            return tuple(self._sort)
        options = []
        for item in self._sort:
            if item.field == SCORE_SORT_FIELD:
                options.append(item)
                continue
            field = self._descriptor.exact_subfield_name(item.field)
            options.append(SortOption(field=field, order=item.order))
        return tuple(options)

    def build(self) -> QueryRequest:
        if self._page < 0:
            raise InvalidRequestError(f"Page index must not be negative: {self._page}")
        if self._page_size <= 0:
            raise InvalidRequestError(
                f"Page size must be positive: {self._page_size}"
            )
        names = [x.name for x in self._aggregations]
        duplicates = sorted({x for x in names if names.count(x) > 1})
        if duplicates:
            raise InvalidRequestError(
                f"Aggregation names must be unique: {', '.join(duplicates)}"
            )
        if self._descriptor:
            for field_name in self._source_fields:
                self._descriptor.describe(field_name)

        return QueryRequest(
            predicate=self._predicate,
            page=self._page,
            page_size=self._page_size,
            sort=self._sort_options(),
            source_fields=tuple(self._source_fields),
            aggregations=tuple(self._aggregations),
        )
