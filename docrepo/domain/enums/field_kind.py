import enum


class FieldKind(enum.StrEnum):
    KEYWORD = "keyword"
    ANALYZED_TEXT = "text"
    LONG = "long"
    DOUBLE = "double"


NUMERIC_FIELD_KINDS = (FieldKind.LONG, FieldKind.DOUBLE)
