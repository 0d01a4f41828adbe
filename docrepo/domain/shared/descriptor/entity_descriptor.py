from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docrepo.domain.enums.field_kind import NUMERIC_FIELD_KINDS, FieldKind
from docrepo.domain.exceptions.search import UnknownFieldError
from docrepo.domain.shared.data_types import PositiveInt, ZeroOrPositiveInt

DEFAULT_EXACT_SUBFIELD = "keyword"
EXACT_SUBFIELD_IGNORE_ABOVE = 256


class FieldSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(min_length=1, description="Document field name")]
    kind: FieldKind = FieldKind.KEYWORD
    analyzer: Annotated[
        Optional[str],
        Field(description="Analyzer name, text fields only"),
    ] = None
    exact_subfield: Annotated[
        str,
        Field(
            min_length=1,
            description="Suffix of the unanalyzed copy of a text field",
        ),
    ] = DEFAULT_EXACT_SUBFIELD

    @property
    def is_analyzed(self) -> bool:
        return self.kind == FieldKind.ANALYZED_TEXT

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_FIELD_KINDS

    def to_mapping(self) -> dict[str, Any]:
        if not self.is_analyzed:
            return {"type": self.kind.value}
        mapping: dict[str, Any] = {"type": FieldKind.ANALYZED_TEXT.value}
        if self.analyzer:
            mapping["analyzer"] = self.analyzer
        mapping["fields"] = {
            self.exact_subfield: {
                "type": FieldKind.KEYWORD.value,
                "ignore_above": EXACT_SUBFIELD_IGNORE_ABOVE,
            }
        }
        return mapping


class EntityDescriptor(BaseModel):
    """Index identity and per-field indexing behaviour of one entity kind.

    Shard and replica counts are provisioning hints handed to whoever
    creates the index; they are never checked at query time.

    Text fields implicitly expose an unanalyzed sub-field
    ``<name>.<exact_subfield>`` which ``describe`` resolves to a keyword
    spec, so predicates may target it directly for whole-value matching.
    """

    model_config = ConfigDict(frozen=True)

    index_name: Annotated[str, Field(min_length=1)]
    shards: PositiveInt = 1
    replicas: ZeroOrPositiveInt = 1
    fields: tuple[FieldSpec, ...] = ()

    @model_validator(mode="after")
    def check_unique_field_names(self):
        names = [x.name for x in self.fields]
        duplicates = sorted({x for x in names if names.count(x) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names: {', '.join(duplicates)}")
        return self

    @property
    def field_names(self) -> list[str]:
        return [x.name for x in self.fields]

    def _find(self, field_name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == field_name:
                return spec
        if "." in field_name:
            parent_name, suffix = field_name.rsplit(".", 1)
            parent = self._find(parent_name)
            if parent and parent.is_analyzed and parent.exact_subfield == suffix:
                return FieldSpec(name=field_name, kind=FieldKind.KEYWORD)
        return None

    def has_field(self, field_name: str) -> bool:
        return self._find(field_name) is not None

    def describe(self, field_name: str) -> FieldSpec:
        spec = self._find(field_name)
        if spec is None:
            raise UnknownFieldError(field_name, self.index_name)
        return spec

    def exact_subfield_name(self, field_name: str) -> str:
        spec = self.describe(field_name)
        if spec.is_analyzed:
            return f"{spec.name}.{spec.exact_subfield}"
        return spec.name

    def index_settings(self) -> dict[str, Any]:
        return {
            "number_of_shards": self.shards,
            "number_of_replicas": self.replicas,
        }

    def index_mappings(self) -> dict[str, Any]:
        return {"properties": {x.name: x.to_mapping() for x in self.fields}}
