"""Service error taxonomy.

Every error that can reach the HTTP layer carries the status code and the
client-safe message it maps to. The handlers installed in ``main.py`` do the
mapping; nothing below knows about FastAPI. Errors with a 5xx status reach
clients only as a generic "Internal error".
"""


class PushServiceError(Exception):
    """Base class for errors raised by the push service."""

    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
        self.message = message


class ValidationError(PushServiceError):
    """Client input is malformed (bad token, bad JSON)."""

    status_code = 400


class PayloadTooLargeError(ValidationError):
    """Request body exceeded the size limit."""

    status_code = 413

    def __init__(self, message: str = "Body too large"):
        super().__init__(message)


class NotFoundError(PushServiceError):
    """Operation on a token that is not registered."""

    status_code = 404


class AuthError(PushServiceError):
    """Webhook bearer token missing or wrong."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class FetchError(PushServiceError):
    """A content source was unreachable or answered with a non-2xx status."""


class PersistenceError(PushServiceError):
    """The state file could not be written."""
