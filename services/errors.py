"""
Business errors raised by the booking and payment services.

Routes let these propagate; the app-level error handler turns them into
``{"error": message}`` responses with ``status_code``.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    """A referenced customer, hotel, room or booking does not exist."""
    status_code = 404


class InvalidRequestError(DomainError):
    """Malformed dates, guest counts or amounts."""
    status_code = 400


class ConflictError(DomainError):
    """Double booking, already cancelled, post check-in cancellation."""
    status_code = 409


class ForbiddenError(DomainError):
    status_code = 403
