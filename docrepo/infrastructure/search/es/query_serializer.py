from typing import Any, Dict, List

from docrepo.domain.shared.search.predicates import (
    BoolPredicate,
    FuzzyPredicate,
    MultiMatchPredicate,
    Predicate,
    PrefixPredicate,
    RangePredicate,
    TermPredicate,
    TermsPredicate,
    WildcardPredicate,
)
from docrepo.domain.shared.search.query_request import QueryRequest
from docrepo.infrastructure.search.es.aggregation_codec import serialize_aggregations

MULTI_MATCH_TYPE = "best_fields"


def serialize_predicate(predicate: Predicate) -> Dict[str, Any]:
    if isinstance(predicate, TermPredicate):
        return {"term": {predicate.field: {"value": predicate.value}}}
    if isinstance(predicate, TermsPredicate):
        return {"terms": {predicate.field: list(predicate.values)}}
    if isinstance(predicate, MultiMatchPredicate):
        # lenient: a text query against a numeric field is a miss, not an error
        return {
            "multi_match": {
                "query": predicate.query,
                "fields": list(predicate.fields),
                "type": MULTI_MATCH_TYPE,
                "lenient": True,
            }
        }
    if isinstance(predicate, PrefixPredicate):
        return {"prefix": {predicate.field: {"value": predicate.prefix}}}
    if isinstance(predicate, WildcardPredicate):
        return {"wildcard": {predicate.field: {"value": predicate.pattern}}}
    if isinstance(predicate, FuzzyPredicate):
        return {
            "fuzzy": {
                predicate.field: {
                    "value": predicate.value,
                    "fuzziness": predicate.max_edits,
                }
            }
        }
    if isinstance(predicate, RangePredicate):
        return {"range": {predicate.field: _range_bounds(predicate)}}
    if isinstance(predicate, BoolPredicate):
        return {"bool": _bool_clauses(predicate)}
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


def _range_bounds(predicate: RangePredicate) -> Dict[str, Any]:
    bounds: Dict[str, Any] = {}
    if predicate.lower is not None:
        bounds["gte" if predicate.include_lower else "gt"] = predicate.lower
    if predicate.upper is not None:
        bounds["lte" if predicate.include_upper else "lt"] = predicate.upper
    return bounds


def _bool_clauses(predicate: BoolPredicate) -> Dict[str, Any]:
    clauses: Dict[str, Any] = {}
    for name in ("must", "must_not", "should", "filter"):
        children = getattr(predicate, name)
        if children:
            clauses[name] = [serialize_predicate(x) for x in children]
    # should is only a boost once must or filter is present
    if predicate.should and not (predicate.must or predicate.filter):
        clauses["minimum_should_match"] = 1
    return clauses


def serialize_query(predicate: Predicate | None) -> Dict[str, Any]:
    if predicate is None:
        return {"match_all": {}}
    return serialize_predicate(predicate)


def build_search_body(request: QueryRequest) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "track_total_hits": True,
        "from": request.offset,
        "size": request.page_size,
        "query": serialize_query(request.predicate),
    }
    if request.sort:
        sort_clause: List[Any] = [
            {x.field: {"order": x.order.value}} for x in request.sort
        ]
        body["sort"] = sort_clause
    if request.source_fields:
        body["_source"] = {"includes": list(request.source_fields)}
    if request.aggregations:
        body["aggs"] = serialize_aggregations(request.aggregations)
    return body
