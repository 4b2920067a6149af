"""Exceptions raised by the interactions gateway."""
from typing import Any, Optional


class InteractionsError(Exception):
    """Base class for all gateway errors."""


class ValidationError(InteractionsError):
    """A client-caused problem with the inbound request.

    Carries the HTTP status and error label it is surfaced with.
    """

    def __init__(self, message: str, status: int = 400, error: str = 'Bad Request'):
        super().__init__(message)
        self.message = message
        self.status = status
        self.error = error

    def to_response(self) -> tuple:
        return {'error': self.error, 'message': self.message}, self.status


class AuthenticationError(InteractionsError):
    """The request signature could not be verified."""

    message = 'Invalid request signature'

    def __init__(self, diagnostic: Optional[str] = None):
        super().__init__(self.message)
        self.diagnostic = diagnostic

    def to_response(self, include_diagnostic: bool = False) -> tuple:
        body = {'error': 'Prohibited', 'message': self.message}
        if include_diagnostic and self.diagnostic:
            body['stack'] = self.diagnostic
        return body, 401


class TokenExpiredError(InteractionsError):
    """The interaction token is older than its validity window."""

    def __init__(self, message: str = 'The interaction token has expired'):
        super().__init__(message)


class AlreadyRespondedError(InteractionsError):
    """The initial response for the interaction was already sent."""

    def __init__(self, message: str = 'The command has already been responded to'):
        super().__init__(message)


class RemoteApiError(InteractionsError):
    """Unexpected outcome of a platform REST call."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None,
                 method: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body
        self.method = method
        self.path = path

    def __str__(self):
        base = super().__str__()
        if self.status is not None:
            return f"{base} (HTTP {self.status} on {self.method} {self.path}): {self.body!r}"
        return base
