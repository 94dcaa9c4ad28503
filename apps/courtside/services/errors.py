"""
Typed service errors shared by the access and invitation services.

Each error carries the HTTP status the route layer should answer with and a
message that is safe to show to end users.
"""


class ServiceError(ValueError):
    """Base class for business-rule failures raised by the service layer."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """Raised when a referenced team, user, role or invitation does not exist."""

    status_code = 404


class ForbiddenError(ServiceError):
    """Raised when the caller lacks the capability or identity for an action."""

    status_code = 403


class BadRequestError(ServiceError):
    """Raised for invalid state transitions and expired invitations."""

    status_code = 400


class ConflictError(ServiceError):
    """Raised when a uniqueness invariant would be violated."""

    status_code = 409
