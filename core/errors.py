# core/errors.py


class AppError(Exception):
    """Base class for errors the routers turn into responses."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Input failed a shape, length or enum check. Raised before any backend call."""


class NotFoundError(AppError):
    pass


class TransportError(AppError):
    """The database or object storage call itself failed."""

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message)
        self.operation = operation
