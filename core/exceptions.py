"""
HealthMate - Error Types
Raised by the core and translated into HTTP status codes by the routes.
"""


class HealthMateError(Exception):
    """Base class for HealthMate errors."""

    status_code = 500
    retryable = False


class InvalidInputError(HealthMateError):
    """The client sent a missing, malformed or empty message."""

    status_code = 400


class StorageError(HealthMateError):
    """The history backend could not be read or written."""

    status_code = 503
    retryable = True


class InferenceError(HealthMateError):
    """The language model call failed (timeout, quota, bad response)."""

    status_code = 502
    retryable = True
