import re
from typing import Any, Optional

from docrepo.domain.exceptions.search import InvalidRequestError
from docrepo.domain.shared.descriptor.entity_descriptor import (
    EntityDescriptor,
    FieldSpec,
)
from docrepo.infrastructure.search.in_memory.analyzers import Analyzer

DEFAULT_ANALYZER = "standard"


def edit_distance(source: str, target: str) -> int:
    """Optimal string alignment distance (adjacent transpositions count once)."""
    rows = len(source) + 1
    cols = len(target) + 1
    dist = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        dist[i][0] = i
    for j in range(cols):
        dist[0][j] = j
    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if source[i - 1] == target[j - 1] else 1
            dist[i][j] = min(
                dist[i - 1][j] + 1,
                dist[i][j - 1] + 1,
                dist[i - 1][j - 1] + cost,
            )
            if (
                i > 1
                and j > 1
                and source[i - 1] == target[j - 2]
                and source[i - 2] == target[j - 1]
            ):
                dist[i][j] = min(dist[i][j], dist[i - 2][j - 2] + 1)
    return dist[-1][-1]


def auto_fuzziness(term: str) -> int:
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def wildcard_to_regex(pattern: str) -> re.Pattern:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


class QueryEvaluator:
    """Evaluates engine-native query JSON against stored documents.

    Returns a relevance score for a matching document and None for a
    miss. Text fields are compared on the tokens produced by their
    analyzer; every other field on its stored value.
    """

    def __init__(self, descriptor: EntityDescriptor, analyzers: dict[str, Analyzer]):
        self._descriptor = descriptor
        self._analyzers = analyzers

    def analyzer(self, spec: FieldSpec) -> Analyzer:
        return self._analyzers[spec.analyzer or DEFAULT_ANALYZER]

    def values(self, document: dict[str, Any], field_name: str) -> list[Any]:
        if not self._descriptor.has_field(field_name):
            return []
        spec = self._descriptor.describe(field_name)
        source_name = field_name
        if field_name not in self._descriptor.field_names:
            source_name = field_name.rsplit(".", 1)[0]
        raw = document.get(source_name)
        if raw is None:
            return []
        items = raw if isinstance(raw, list) else [raw]
        items = [x for x in items if x is not None]
        if spec.is_analyzed:
            analyze = self.analyzer(spec)
            return [token for x in items for token in analyze(str(x))]
        return items

    def _equals(self, field_name: str, stored: Any, value: Any) -> bool:
        spec = self._descriptor.describe(field_name)
        if spec.is_numeric:
            try:
                return float(stored) == float(value)
            except (TypeError, ValueError):
                return False
        return str(stored) == str(value)

    def _require_non_numeric(self, field_name: str, kind: str) -> None:
        if self._descriptor.has_field(field_name) and (
            self._descriptor.describe(field_name).is_numeric
        ):
            raise InvalidRequestError(
                f"{kind} query is not supported on numeric field '{field_name}'"
            )

    def _compare_key(self, field_name: str, value: Any) -> Any:
        if self._descriptor.describe(field_name).is_numeric:
            return float(value)
        return str(value)

    def score(self, query: dict[str, Any], document: dict[str, Any]) -> Optional[float]:
        if len(query) != 1:
            raise ValueError(f"Query must have exactly one clause: {query}")
        kind, body = next(iter(query.items()))
        handler = getattr(self, f"_score_{kind}", None)
        if handler is None:
            raise ValueError(f"Unsupported query clause: {kind}")
        return handler(body, document)

    def matches(self, query: dict[str, Any], document: dict[str, Any]) -> bool:
        return self.score(query, document) is not None

    @staticmethod
    def _field_and_value(body: dict[str, Any]) -> tuple[str, Any]:
        field_name, spec = next(iter(body.items()))
        if isinstance(spec, dict):
            return field_name, spec.get("value")
        return field_name, spec

    def _score_match_all(self, body, document) -> Optional[float]:
        return 1.0

    def _score_term(self, body, document) -> Optional[float]:
        field_name, value = self._field_and_value(body)
        for stored in self.values(document, field_name):
            if self._equals(field_name, stored, value):
                return 1.0
        return None

    def _score_terms(self, body, document) -> Optional[float]:
        field_name, values = next(iter(body.items()))
        for stored in self.values(document, field_name):
            if any(self._equals(field_name, stored, x) for x in values):
                return 1.0
        return None

    def _score_multi_match(self, body, document) -> Optional[float]:
        query = str(body.get("query", ""))
        best = None
        for field_name in body.get("fields", []):
            if not self._descriptor.has_field(field_name):
                continue
            spec = self._descriptor.describe(field_name)
            stored = self.values(document, field_name)
            if spec.is_analyzed:
                query_tokens = set(self.analyzer(spec)(query))
                matched = query_tokens.intersection(stored)
                score = len(matched) / len(query_tokens) if matched else None
            else:
                hit = any(self._equals(field_name, x, query) for x in stored)
                score = 1.0 if hit else None
            if score is not None and (best is None or score > best):
                best = score
        return best

    def _score_prefix(self, body, document) -> Optional[float]:
        field_name, prefix = self._field_and_value(body)
        self._require_non_numeric(field_name, "prefix")
        for stored in self.values(document, field_name):
            if str(stored).startswith(prefix):
                return 1.0
        return None

    def _score_wildcard(self, body, document) -> Optional[float]:
        field_name, pattern = self._field_and_value(body)
        self._require_non_numeric(field_name, "wildcard")
        regex = wildcard_to_regex(pattern)
        for stored in self.values(document, field_name):
            if regex.fullmatch(str(stored)):
                return 1.0
        return None

    def _score_fuzzy(self, body, document) -> Optional[float]:
        field_name, spec = next(iter(body.items()))
        self._require_non_numeric(field_name, "fuzzy")
        if isinstance(spec, dict):
            value = str(spec.get("value"))
            fuzziness = spec.get("fuzziness", "AUTO")
        else:
            value, fuzziness = str(spec), "AUTO"
        max_edits = auto_fuzziness(value) if fuzziness == "AUTO" else int(fuzziness)
        best = None
        for stored in self.values(document, field_name):
            distance = edit_distance(str(stored), value)
            if distance <= max_edits:
                score = 1.0 / (1 + distance)
                best = score if best is None else max(best, score)
        return best

    def _score_range(self, body, document) -> Optional[float]:
        field_name, bounds = next(iter(body.items()))
        for stored in self.values(document, field_name):
            if self._in_range(field_name, stored, bounds):
                return 1.0
        return None

    def _in_range(self, field_name: str, stored: Any, bounds: dict[str, Any]) -> bool:
        try:
            value = self._compare_key(field_name, stored)
            for op, bound in bounds.items():
                limit = self._compare_key(field_name, bound)
                if op == "gt" and not value > limit:
                    return False
                if op == "gte" and not value >= limit:
                    return False
                if op == "lt" and not value < limit:
                    return False
                if op == "lte" and not value <= limit:
                    return False
        except (TypeError, ValueError):
            return False
        return True

    def _score_bool(self, body, document) -> Optional[float]:
        total = 0.0
        for clause in body.get("must", []):
            score = self.score(clause, document)
            if score is None:
                return None
            total += score
        for clause in body.get("filter", []):
            if not self.matches(clause, document):
                return None
        for clause in body.get("must_not", []):
            if self.matches(clause, document):
                return None
        should = body.get("should", [])
        default_minimum = 0 if body.get("must") or body.get("filter") else 1
        minimum = int(body.get("minimum_should_match", default_minimum if should else 0))
        matched = 0
        for clause in should:
            score = self.score(clause, document)
            if score is not None:
                matched += 1
                total += score
        if matched < minimum:
            return None
        return total
