class CobrosError(Exception):
    """Base class for errors raised by the cobros package."""


class ValidationError(CobrosError, ValueError):
    """A required field is missing or invalid. Raised before anything is written."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFound(CobrosError, KeyError):
    """An operation referenced an id that is not in memory."""

    def __init__(self, kind: str, id: str):
        super().__init__(f"{kind} {id!r} not found")
        self.kind = kind
        self.id = id

    def __str__(self) -> str:
        return self.args[0]


class PersistenceError(CobrosError):
    """Reading or storing records failed. Surfaced as a warning, never raised by mutations."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
