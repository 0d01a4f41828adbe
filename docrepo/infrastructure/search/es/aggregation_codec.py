from typing import Any, Dict, Iterable, List, Union

from docrepo.domain.exceptions.search import DecodeError
from docrepo.domain.shared.search.aggregations import (
    AvgAggregation,
    TermsAggregation,
)
from docrepo.domain.shared.search.search_result import (
    Bucket,
    MetricAggregationResult,
    TermsAggregationResult,
)

# deterministic bucket order: count first, then key
TERMS_ORDER = [{"_count": "desc"}, {"_key": "asc"}]


def serialize_aggregation(
    aggregation: Union[AvgAggregation, TermsAggregation],
) -> Dict[str, Any]:
    if isinstance(aggregation, AvgAggregation):
        return {"avg": {"field": aggregation.field}}
    body: Dict[str, Any] = {
        "terms": {
            "field": aggregation.field,
            "size": aggregation.size,
            "order": TERMS_ORDER,
        }
    }
    child = aggregation.sub_aggregation
    if child is not None:
        body["aggs"] = {child.name: serialize_aggregation(child)}
    return body


def serialize_aggregations(
    aggregations: Iterable[TermsAggregation],
) -> Dict[str, Any]:
    return {x.name: serialize_aggregation(x) for x in aggregations}


def decode_aggregations(
    aggregations: Iterable[TermsAggregation], raw: Any
) -> Dict[str, List[Bucket]]:
    """Decode the engine's aggregation section for the requested aggregations.

    Decoding follows what was requested, not what came back, so a
    response missing a requested aggregation or with a different shape
    raises ``DecodeError``.
    """
    aggregations = list(aggregations)
    if not aggregations:
        return {}
    if not isinstance(raw, dict):
        raise DecodeError("Response has no aggregations section")
    return {x.name: _decode_buckets(x, raw.get(x.name)) for x in aggregations}


def _decode_buckets(aggregation: TermsAggregation, raw: Any) -> List[Bucket]:
    if not isinstance(raw, dict) or not isinstance(raw.get("buckets"), list):
        raise DecodeError(f"Aggregation '{aggregation.name}' has no bucket list")
    buckets = []
    for item in raw["buckets"]:
        if not isinstance(item, dict) or "key" not in item:
            raise DecodeError(f"Aggregation '{aggregation.name}' has a malformed bucket")
        child = aggregation.sub_aggregation
        nested = None
        if child is not None:
            nested = _decode_nested(child, item.get(child.name))
        try:
            doc_count = int(item.get("doc_count", 0))
        except (TypeError, ValueError) as ex:
            raise DecodeError(
                f"Aggregation '{aggregation.name}' has a bad doc count: {ex}"
            ) from ex
        if doc_count < 0:
            raise DecodeError(
                f"Aggregation '{aggregation.name}' has a negative doc count"
            )
        buckets.append(
            Bucket(key=item["key"], doc_count=doc_count, sub_aggregation=nested)
        )
    return buckets


def _decode_nested(
    aggregation: Union[AvgAggregation, TermsAggregation], raw: Any
) -> Union[MetricAggregationResult, TermsAggregationResult]:
    if isinstance(aggregation, AvgAggregation):
        if not isinstance(raw, dict) or "value" not in raw:
            raise DecodeError(f"Metric aggregation '{aggregation.name}' has no value")
        value = raw["value"]
        try:
            value = float(value) if value is not None else None
        except (TypeError, ValueError) as ex:
            raise DecodeError(
                f"Metric aggregation '{aggregation.name}' has a bad value: {ex}"
            ) from ex
        return MetricAggregationResult(name=aggregation.name, value=value)
    return TermsAggregationResult(
        name=aggregation.name, buckets=_decode_buckets(aggregation, raw)
    )
