"""Relay error hierarchy.

Every failure a handler can report is raised as a RelayError subclass and
rendered by a single exception handler in main.py as ``{"error": message}``.
"""


class RelayError(Exception):
    """Base class.

    Attributes:
        message: text returned to the caller under the ``error`` key.
        status_code: HTTP status of the error response.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class RequestValidationFailed(RelayError):
    """Request body is missing a required value or is malformed."""

    status_code = 400


class ConfigurationError(RelayError):
    """A required setting (API key, SMTP credentials) is not configured."""


class UpstreamServiceError(RelayError):
    """The LLM provider failed, timed out, or returned something unusable."""


class MailDeliveryError(RelayError):
    """The SMTP relay refused the connection, the login, or the message."""
