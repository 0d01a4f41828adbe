from typing import Any

from docrepo.domain.exceptions.base import NotFoundError


class DocumentRepositoryError(Exception): ...


class UnknownFieldError(DocumentRepositoryError):
    def __init__(self, field_name: str, index_name: str) -> None:
        super().__init__(f"Field '{field_name}' is not declared for index '{index_name}'")
        self.field_name = field_name
        self.index_name = index_name


class InvalidPredicateError(DocumentRepositoryError): ...


class InvalidRequestError(DocumentRepositoryError): ...


class DocumentNotFoundError(DocumentRepositoryError, NotFoundError):
    def __init__(self, index_name: str, id_: Any) -> None:
        super().__init__(f"Document '{id_}' does not exist in index '{index_name}'")
        self.index_name = index_name
        self.id_ = id_


class StoreUnavailableError(DocumentRepositoryError): ...


class BatchSaveError(StoreUnavailableError):
    def __init__(self, position: int, id_: Any, reason: str) -> None:
        super().__init__(
            f"Batch save stopped at position {position} (id={id_}): {reason}"
        )
        self.position = position
        self.id_ = id_
        self.reason = reason


class DecodeError(DocumentRepositoryError): ...
