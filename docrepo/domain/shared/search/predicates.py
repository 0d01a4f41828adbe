import logging
from typing import Annotated, Iterable, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from docrepo.domain.exceptions.search import InvalidPredicateError
from docrepo.domain.shared.data_types import FieldValue
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor

logger = logging.getLogger(__name__)

MAX_FUZZY_EDITS = 2


class BasePredicate(BaseModel):
    model_config = ConfigDict(frozen=True)


class TermPredicate(BasePredicate):
    kind: Literal["term"] = "term"
    field: str
    value: FieldValue


class TermsPredicate(BasePredicate):
    kind: Literal["terms"] = "terms"
    field: str
    values: tuple[FieldValue, ...]


class MultiMatchPredicate(BasePredicate):
    kind: Literal["multi_match"] = "multi_match"
    query: str
    fields: tuple[str, ...]


class PrefixPredicate(BasePredicate):
    kind: Literal["prefix"] = "prefix"
    field: str
    prefix: str


class WildcardPredicate(BasePredicate):
    kind: Literal["wildcard"] = "wildcard"
    field: str
    pattern: str


class FuzzyPredicate(BasePredicate):
    kind: Literal["fuzzy"] = "fuzzy"
    field: str
    value: str
    max_edits: Annotated[int, Field(ge=0, le=MAX_FUZZY_EDITS)] = MAX_FUZZY_EDITS


class RangePredicate(BasePredicate):
    kind: Literal["range"] = "range"
    field: str
    lower: Optional[FieldValue] = None
    upper: Optional[FieldValue] = None
    include_lower: bool = True
    include_upper: bool = True


class BoolPredicate(BasePredicate):
    kind: Literal["bool"] = "bool"
    must: tuple["Predicate", ...] = ()
    must_not: tuple["Predicate", ...] = ()
    should: tuple["Predicate", ...] = ()
    filter: tuple["Predicate", ...] = ()


Predicate = Annotated[
    Union[
        TermPredicate,
        TermsPredicate,
        MultiMatchPredicate,
        PrefixPredicate,
        WildcardPredicate,
        FuzzyPredicate,
        RangePredicate,
        BoolPredicate,
    ],
    Field(discriminator="kind"),
]

BoolPredicate.model_rebuild()


class PredicateBuilder:
    """Creates predicates for one entity kind.

    Every field is checked against the descriptor, so an unknown field
    fails here with ``UnknownFieldError`` and never reaches the engine.
    Structurally empty predicates, and prefix, wildcard or fuzzy
    predicates on numeric fields, fail with ``InvalidPredicateError``.

    Text fields are matched on their analyzed tokens. Use
    ``exact(field)`` to target the unanalyzed sub-field when whole-value
    semantics are needed, e.g. ``wildcard(exact("name"), "香?")``.
    """

    def __init__(self, descriptor: EntityDescriptor):
        self._descriptor = descriptor

    @property
    def descriptor(self) -> EntityDescriptor:
        return self._descriptor

    def _field(self, field_name: str) -> str:
        return self._descriptor.describe(field_name).name

    def _text_field(self, field_name: str, kind: str) -> str:
        spec = self._descriptor.describe(field_name)
        if spec.is_numeric:
            raise InvalidPredicateError(
                f"{kind} predicate needs a text or keyword field, "
                f"'{spec.name}' is {spec.kind.value}"
            )
        return spec.name

    def exact(self, field_name: str) -> str:
        return self._descriptor.exact_subfield_name(field_name)

    def term(self, field_name: str, value: FieldValue) -> TermPredicate:
        return TermPredicate(field=self._field(field_name), value=value)

    def terms(self, field_name: str, values: Iterable[FieldValue]) -> TermsPredicate:
        field = self._field(field_name)
        values = tuple(values)
        if not values:
            raise InvalidPredicateError(f"Terms predicate on '{field}' has no values")
        return TermsPredicate(field=field, values=values)

    def multi_match(self, query: str, fields: Sequence[str]) -> MultiMatchPredicate:
        if not fields:
            raise InvalidPredicateError("Multi match predicate has no fields")
        return MultiMatchPredicate(
            query=query, fields=tuple(self._field(x) for x in fields)
        )

    def prefix(self, field_name: str, prefix: str) -> PrefixPredicate:
        field = self._text_field(field_name, "Prefix")
        if not prefix:
            raise InvalidPredicateError(f"Prefix predicate on '{field}' is empty")
        return PrefixPredicate(field=field, prefix=prefix)

    def wildcard(self, field_name: str, pattern: str) -> WildcardPredicate:
        field = self._text_field(field_name, "Wildcard")
        if not pattern:
            raise InvalidPredicateError(f"Wildcard predicate on '{field}' is empty")
        return WildcardPredicate(field=field, pattern=pattern)

    def fuzzy(
        self, field_name: str, value: str, max_edits: int = MAX_FUZZY_EDITS
    ) -> FuzzyPredicate:
        field = self._text_field(field_name, "Fuzzy")
        if max_edits < 0:
            raise InvalidPredicateError(
                f"Fuzzy predicate on '{field}' has negative max edits: {max_edits}"
            )
        if max_edits > MAX_FUZZY_EDITS:
            logger.debug(
                "Fuzzy max edits %s on '%s' clamped to %s",
                max_edits,
                field,
                MAX_FUZZY_EDITS,
            )
            max_edits = MAX_FUZZY_EDITS
        return FuzzyPredicate(field=field, value=value, max_edits=max_edits)

    def range(
        self,
        field_name: str,
        lower: Optional[FieldValue] = None,
        upper: Optional[FieldValue] = None,
        include_lower: bool = True,
        include_upper: bool = True,
    ) -> RangePredicate:
        field = self._field(field_name)
        if lower is None and upper is None:
            raise InvalidPredicateError(f"Range predicate on '{field}' has no bounds")
        return RangePredicate(
            field=field,
            lower=lower,
            upper=upper,
            include_lower=include_lower,
            include_upper=include_upper,
        )

    def bool_(
        self,
        must: Sequence[Predicate] = (),
        must_not: Sequence[Predicate] = (),
        should: Sequence[Predicate] = (),
        filter: Sequence[Predicate] = (),
    ) -> BoolPredicate:
        if not (must or must_not or should or filter):
            raise InvalidPredicateError("Bool predicate has no clauses")
        return BoolPredicate(
            must=tuple(must),
            must_not=tuple(must_not),
            should=tuple(should),
            filter=tuple(filter),
        )

    def all_of(self, *predicates: Predicate) -> BoolPredicate:
        return self.bool_(must=predicates)

    def any_of(self, *predicates: Predicate) -> BoolPredicate:
        return self.bool_(should=predicates)
