from typing import Annotated, Optional

from pydantic import Field

from docrepo.domain.entities.base_entity import BaseDocument
from docrepo.domain.enums.field_kind import FieldKind
from docrepo.domain.shared.descriptor.entity_descriptor import (
    EntityDescriptor,
    FieldSpec,
)


class Product(BaseDocument):
    name: Annotated[Optional[str], Field(description="Product name")] = None
    count: Annotated[Optional[int], Field(description="Items in stock")] = None
    price: Annotated[Optional[float], Field(description="Unit price")] = None


# Chinese names need a word-segmenting analyzer, otherwise only
# single-character terms ever match.
PRODUCT_DESCRIPTOR = EntityDescriptor(
    index_name="ec",
    shards=5,
    replicas=0,
    fields=(
        FieldSpec(name="id", kind=FieldKind.LONG),
        FieldSpec(name="name", kind=FieldKind.ANALYZED_TEXT, analyzer="ik_max_word"),
        FieldSpec(name="count", kind=FieldKind.LONG),
        FieldSpec(name="price", kind=FieldKind.DOUBLE),
    ),
)
