import pytest
from pydantic import ValidationError

from docrepo.domain.entities.base_entity import INT64_MAX
from docrepo.domain.entities.product import Product


@pytest.mark.parametrize("raw, expected", [("42", 42), ("-7", -7), (100039, 100039)])
def test_id_accepts_engine_string_ids(raw, expected):
    assert Product(id=raw).id == expected


@pytest.mark.parametrize("raw", ["--5", "5-", "abc", "", str(INT64_MAX + 1)])
def test_id_rejects_malformed_or_out_of_range(raw):
    with pytest.raises(ValidationError):
        Product(id=raw)


def test_fields_are_optional():
    product = Product(id=1)
    assert product.name is None
    assert product.count is None
    assert product.price is None
