import pytest

from docrepo.domain.exceptions.search import InvalidRequestError, UnknownFieldError
from docrepo.domain.shared.search.aggregations import (
    AggregationBuilder,
    AvgAggregation,
    TermsAggregation,
)


def test_terms_on_numeric_field(aggregations: AggregationBuilder):
    aggregation = aggregations.terms("counts", "count", size=30)
    assert aggregation == TermsAggregation(name="counts", field="count", size=30)


def test_terms_on_text_field_uses_exact_subfield(aggregations: AggregationBuilder):
    aggregation = aggregations.terms("names", "name")
    assert aggregation.field == "name.keyword"
    assert aggregation.size == 10


def test_terms_with_nested_avg(aggregations: AggregationBuilder):
    aggregation = aggregations.terms(
        "count_price", "count", sub_aggregation=aggregations.avg("price_avg", "price")
    )
    assert aggregation.sub_aggregation == AvgAggregation(
        name="price_avg", field="price"
    )


def test_terms_size_must_be_positive(aggregations: AggregationBuilder):
    with pytest.raises(InvalidRequestError):
        aggregations.terms("counts", "count", size=0)


def test_nesting_limited_to_one_level(aggregations: AggregationBuilder):
    inner = aggregations.terms(
        "prices", "price", sub_aggregation=aggregations.avg("avg", "count")
    )
    with pytest.raises(InvalidRequestError):
        aggregations.terms("counts", "count", sub_aggregation=inner)


def test_terms_child_without_own_child_allowed(aggregations: AggregationBuilder):
    inner = aggregations.terms("prices", "price")
    outer = aggregations.terms("counts", "count", sub_aggregation=inner)
    assert outer.sub_aggregation.name == "prices"


def test_avg_needs_numeric_field(aggregations: AggregationBuilder):
    with pytest.raises(InvalidRequestError):
        aggregations.avg("name_avg", "name")


def test_unknown_fields_rejected(aggregations: AggregationBuilder):
    with pytest.raises(UnknownFieldError):
        aggregations.terms("colors", "color")
    with pytest.raises(UnknownFieldError):
        aggregations.avg("weight_avg", "weight")
