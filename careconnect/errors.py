"""
Application error hierarchy.

Every error carries an HTTP status and a stable machine-readable ``code`` so
callers can branch on the code instead of matching message text. Handlers in
``main`` render them as ``{"error": message, "code": code}``.
"""

from typing import Optional


class CareConnectError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(CareConnectError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(CareConnectError):
    status_code = 401
    code = "UNAUTHENTICATED"


class ForbiddenError(CareConnectError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(CareConnectError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(CareConnectError):
    status_code = 409
    code = "CONFLICT"


class UpstreamServiceError(CareConnectError):
    """A collaborator (auth service, database) failed or was unreachable"""

    status_code = 502
    code = "UPSTREAM_ERROR"
