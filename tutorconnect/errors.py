"""
Domain errors raised by controllers and dependencies.
Each error carries the HTTP status it is mapped to by the handlers registered in main.py.
"""


class TutorConnectError(Exception):
    """Base class for errors that are reported to the client as {status: 'fail', message}."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TutorConnectError):
    """Malformed or missing input, duplicate email."""
    status_code = 400


class AuthError(TutorConnectError):
    """Bad credentials, invalid token, blocked or inactive account."""
    status_code = 401


class ForbiddenError(TutorConnectError):
    """Role or ownership mismatch."""
    status_code = 403


class NotFoundError(TutorConnectError):
    status_code = 404


class ConflictError(TutorConnectError):
    """Invalid state transition."""
    status_code = 409
