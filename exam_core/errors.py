"""Errors raised by the storage boundary client.

Each public operation converts these into a result value; only the
transport and loaders raise them.
"""


class ExamError(Exception):
    """Base error for exam operations."""

    retryable = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ExamError):
    """Bad input detected before or by the server (bad scope, missing id, bad score)."""


class AuthenticationError(ExamError):
    """The caller's identity is missing or not allowed to do this."""


class InvalidStateError(ExamError):
    """Target does not exist or is in a state that forbids the operation."""


class TransientError(ExamError):
    """Network or server failure; the same call may succeed later."""

    retryable = True
