import copy
import functools
import logging
from typing import Any, Iterable, Optional

from docrepo.application.services.interfaces.search_transport import (
    BulkItemResult,
    SearchTransport,
)
from docrepo.domain.exceptions.search import StoreUnavailableError
from docrepo.domain.shared.data_types import RefreshPolicy
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor
from docrepo.infrastructure.search.in_memory.analyzers import (
    DEFAULT_ANALYZERS,
    Analyzer,
)
from docrepo.infrastructure.search.in_memory.query_evaluator import (
    DEFAULT_ANALYZER,
    QueryEvaluator,
)

logger = logging.getLogger(__name__)

SCORE_FIELD = "_score"


class _IndexState:
    def __init__(self, descriptor: EntityDescriptor, evaluator: QueryEvaluator):
        self.descriptor = descriptor
        self.evaluator = evaluator
        self.documents: dict[str, dict[str, Any]] = {}
        self.searchable: dict[str, dict[str, Any]] = {}

    def refresh(self) -> None:
        self.searchable = dict(self.documents)


class InMemorySearchTransport(SearchTransport):
    """Single-process stand-in for the search engine.

    Writes land in the live document set and are copied to the
    searchable set on refresh, so searches see near-real-time state
    while ``get_document`` is real time like the engine's GET API.
    Set ``available`` to False to make every call fail.
    """

    def __init__(
        self,
        descriptors: Iterable[EntityDescriptor],
        analyzers: Optional[dict[str, Analyzer]] = None,
        auto_refresh: bool = False,
    ):
        self._analyzers = dict(DEFAULT_ANALYZERS)
        self._analyzers.update(analyzers or {})
        self._indices: dict[str, _IndexState] = {}
        self.auto_refresh = auto_refresh
        self.available = True
        for descriptor in descriptors:
            for spec in descriptor.fields:
                analyzer = spec.analyzer or DEFAULT_ANALYZER
                if spec.is_analyzed and analyzer not in self._analyzers:
                    raise ValueError(
                        f"Analyzer '{analyzer}' of {descriptor.index_name}.{spec.name}"
                        " is not registered"
                    )
            self._indices[descriptor.index_name] = _IndexState(
                descriptor, QueryEvaluator(descriptor, self._analyzers)
            )

    def _index(self, index: str) -> _IndexState:
        if not self.available:
            raise StoreUnavailableError("In-memory search engine is unavailable")
        if index not in self._indices:
            raise StoreUnavailableError(f"Index {index} does not exist")
        return self._indices[index]

    def _after_write(self, state: _IndexState, refresh: RefreshPolicy) -> None:
        if self.auto_refresh or refresh in ("true", "wait_for"):
            state.refresh()

    async def index_document(
        self,
        index: str,
        id_: str,
        document: dict[str, Any],
        refresh: RefreshPolicy = "false",
    ) -> None:
        state = self._index(index)
        state.documents[id_] = copy.deepcopy(document)
        self._after_write(state, refresh)

    async def bulk_index(
        self,
        index: str,
        documents: list[tuple[str, dict[str, Any]]],
        refresh: RefreshPolicy = "false",
    ) -> list[BulkItemResult]:
        state = self._index(index)
        results = []
        for id_, document in documents:
            state.documents[id_] = copy.deepcopy(document)
            results.append(BulkItemResult(id_=id_))
        self._after_write(state, refresh)
        return results

    async def get_document(self, index: str, id_: str) -> Optional[dict[str, Any]]:
        state = self._index(index)
        document = state.documents.get(id_)
        return copy.deepcopy(document) if document is not None else None

    async def delete_document(
        self, index: str, id_: str, refresh: RefreshPolicy = "false"
    ) -> bool:
        state = self._index(index)
        deleted = state.documents.pop(id_, None) is not None
        self._after_write(state, refresh)
        return deleted

    async def refresh(self, index: str) -> None:
        self._index(index).refresh()

    async def count(self, index: str, body: Optional[dict[str, Any]]) -> int:
        state = self._index(index)
        query = (body or {}).get("query") or {"match_all": {}}
        return len(self._match(state, query))

    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        state = self._index(index)
        logger.debug("Search on %s: %s", index, body)
        query = body.get("query") or {"match_all": {}}
        matched = self._match(state, query)
        ordered = self._sort(state, matched, body.get("sort"))

        start = int(body.get("from", 0))
        size = int(body.get("size", 10))
        hits = [
            {
                "_index": index,
                "_id": id_,
                "_score": score,
                "_source": self._filter_source(document, body.get("_source")),
            }
            for id_, document, score in ordered[start : start + size]
        ]
        response: dict[str, Any] = {
            "took": 0,
            "timed_out": False,
            "hits": {
                "total": {"value": len(matched), "relation": "eq"},
                "max_score": max((x[2] for x in matched), default=None),
                "hits": hits,
            },
        }
        if body.get("aggs"):
            documents = [x[1] for x in matched]
            response["aggregations"] = self._aggregate(state, body["aggs"], documents)
        return response

    def _match(
        self, state: _IndexState, query: dict[str, Any]
    ) -> list[tuple[str, dict[str, Any], float]]:
        matched = []
        for id_, document in state.searchable.items():
            score = state.evaluator.score(query, document)
            if score is not None:
                matched.append((id_, document, score))
        return matched

    def _sort(
        self,
        state: _IndexState,
        matched: list[tuple[str, dict[str, Any], float]],
        sort: Optional[list[Any]],
    ) -> list[tuple[str, dict[str, Any], float]]:
        keys = []
        for item in sort or [{SCORE_FIELD: {"order": "desc"}}]:
            if isinstance(item, str):
                order = "desc" if item == SCORE_FIELD else "asc"
                keys.append((item, order))
                continue
            field_name, spec = next(iter(item.items()))
            order = spec.get("order", "asc") if isinstance(spec, dict) else spec
            keys.append((field_name, order))

        def sort_value(entry, field_name: str, order: str) -> Any:
            if field_name == SCORE_FIELD:
                return entry[2]
            values = state.evaluator.values(entry[1], field_name)
            if not values:
                return None
            return min(values) if order == "asc" else max(values)

        def compare(left, right) -> int:
            for field_name, order in keys:
                lv = sort_value(left, field_name, order)
                rv = sort_value(right, field_name, order)
                if lv is None and rv is None:
                    continue
                # missing values sort last in both directions
                if lv is None:
                    return 1
                if rv is None:
                    return -1
                if lv == rv:
                    continue
                result = -1 if lv < rv else 1
                return result if order == "asc" else -result
            return 0

        return sorted(matched, key=functools.cmp_to_key(compare))

    @staticmethod
    def _filter_source(document: dict[str, Any], source: Any) -> dict[str, Any]:
        if source is False:
            return {}
        if isinstance(source, dict):
            includes = source.get("includes") or []
        elif isinstance(source, list):
            includes = source
        else:
            includes = []
        if not includes:
            return copy.deepcopy(document)
        return {k: copy.deepcopy(v) for k, v in document.items() if k in includes}

    def _aggregate(
        self,
        state: _IndexState,
        aggs: dict[str, Any],
        documents: list[dict[str, Any]],
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name, spec in aggs.items():
            if "terms" in spec:
                result[name] = self._terms(state, spec, documents)
            elif "avg" in spec:
                result[name] = self._avg(state, spec["avg"], documents)
            else:
                raise ValueError(f"Unsupported aggregation {name}: {spec}")
        return result

    def _terms(
        self,
        state: _IndexState,
        spec: dict[str, Any],
        documents: list[dict[str, Any]],
    ) -> dict[str, Any]:
        terms = spec["terms"]
        grouped: dict[Any, list[dict[str, Any]]] = {}
        for document in documents:
            for key in dict.fromkeys(state.evaluator.values(document, terms["field"])):
                grouped.setdefault(key, []).append(document)
        ordered = sorted(grouped.items(), key=lambda x: (-len(x[1]), x[0]))
        size = int(terms.get("size", 10))
        buckets = []
        for key, members in ordered[:size]:
            bucket: dict[str, Any] = {"key": key, "doc_count": len(members)}
            if spec.get("aggs"):
                bucket.update(self._aggregate(state, spec["aggs"], members))
            buckets.append(bucket)
        return {
            "doc_count_error_upper_bound": 0,
            "sum_other_doc_count": sum(len(x[1]) for x in ordered[size:]),
            "buckets": buckets,
        }

    def _avg(
        self,
        state: _IndexState,
        spec: dict[str, Any],
        documents: list[dict[str, Any]],
    ) -> dict[str, Any]:
        values = [
            float(x)
            for document in documents
            for x in state.evaluator.values(document, spec["field"])
        ]
        return {"value": sum(values) / len(values) if values else None}
