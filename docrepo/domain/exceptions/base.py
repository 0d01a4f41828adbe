class NotFoundError(Exception): ...
