import enum


class SortOrder(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"
