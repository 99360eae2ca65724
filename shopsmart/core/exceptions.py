from contextlib import contextmanager

from fastapi import status


class APIError(Exception):
    """Base for every error rendered to clients as ``{"error": message}``."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request failed"

    def __init__(self, message: str = None, status_code: int = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(APIError):
    message = "Invalid input"


class NotFound(APIError):
    message = "Not found"


class InsufficientStock(APIError):
    message = "Insufficient stock available"


class InvalidCredentials(APIError):
    message = "Invalid email or password"


class AccountDeactivated(APIError):
    message = "Account is deactivated. Please contact support."


class MethodNotAllowed(APIError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method not allowed"


class InternalFailure(APIError):
    message = "Something went wrong. Please try again."


@contextmanager
def failure_message(message: str):
    """Re-raise a persistence failure with an operation-specific retry message."""
    try:
        yield
    except InternalFailure as exc:
        raise InternalFailure(message) from exc
