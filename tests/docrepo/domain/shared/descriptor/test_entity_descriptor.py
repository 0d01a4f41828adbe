import pytest
from pydantic import ValidationError

from docrepo.domain.enums.field_kind import FieldKind
from docrepo.domain.exceptions.search import UnknownFieldError
from docrepo.domain.shared.descriptor.entity_descriptor import (
    EntityDescriptor,
    FieldSpec,
)


def test_describe_declared_field(product_descriptor: EntityDescriptor):
    spec = product_descriptor.describe("name")
    assert spec.kind == FieldKind.ANALYZED_TEXT
    assert spec.analyzer == "ik_max_word"


def test_describe_exact_subfield(product_descriptor: EntityDescriptor):
    spec = product_descriptor.describe("name.keyword")
    assert spec.name == "name.keyword"
    assert spec.kind == FieldKind.KEYWORD


def test_describe_unknown_field(product_descriptor: EntityDescriptor):
    with pytest.raises(UnknownFieldError) as exc_info:
        product_descriptor.describe("color")
    assert exc_info.value.field_name == "color"
    assert exc_info.value.index_name == "ec"


def test_subfield_of_non_text_field_is_unknown(product_descriptor: EntityDescriptor):
    assert not product_descriptor.has_field("count.keyword")
    with pytest.raises(UnknownFieldError):
        product_descriptor.describe("count.keyword")


def test_exact_subfield_name(product_descriptor: EntityDescriptor):
    assert product_descriptor.exact_subfield_name("name") == "name.keyword"
    assert product_descriptor.exact_subfield_name("count") == "count"
    assert product_descriptor.exact_subfield_name("name.keyword") == "name.keyword"


def test_custom_exact_subfield_suffix():
    descriptor = EntityDescriptor(
        index_name="books",
        fields=(
            FieldSpec(name="title", kind=FieldKind.ANALYZED_TEXT, exact_subfield="exact"),
        ),
    )
    assert descriptor.exact_subfield_name("title") == "title.exact"
    assert descriptor.has_field("title.exact")
    assert not descriptor.has_field("title.keyword")


def test_duplicate_field_names_rejected():
    with pytest.raises(ValidationError):
        EntityDescriptor(
            index_name="books",
            fields=(FieldSpec(name="title"), FieldSpec(name="title")),
        )


def test_descriptor_is_read_only(product_descriptor: EntityDescriptor):
    with pytest.raises(ValidationError):
        product_descriptor.index_name = "other"


def test_index_settings_and_mappings(product_descriptor: EntityDescriptor):
    assert product_descriptor.index_settings() == {
        "number_of_shards": 5,
        "number_of_replicas": 0,
    }
    properties = product_descriptor.index_mappings()["properties"]
    assert properties["name"] == {
        "type": "text",
        "analyzer": "ik_max_word",
        "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
    }
    assert properties["count"] == {"type": "long"}
    assert properties["price"] == {"type": "double"}
