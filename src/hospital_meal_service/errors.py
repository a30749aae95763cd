"""Service error hierarchy.

Every failure a request can end in is one of these exceptions. The API layer
registers handlers that turn them into ``{"message": ...}`` JSON bodies with the
matching HTTP status, so services and repositories never build responses.
"""


class ServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthenticatedError(ServiceError):
    """Missing, malformed or expired bearer credential."""

    status_code = 401


class ForbiddenError(ServiceError):
    """Caller is authenticated but not allowed to perform the operation."""

    status_code = 403


class NotFoundError(ServiceError):
    """Referenced record does not exist (or is not visible to the caller)."""

    status_code = 404


class InvalidRequestError(ServiceError):
    """Client supplied input that fails validation."""

    status_code = 400


class InvalidStatusError(InvalidRequestError):
    """Requested order status is not a member of the status enum."""

    def __init__(self, message: str = "Invalid status") -> None:
        super().__init__(message)


class IllegalTransitionError(InvalidRequestError):
    """Requested status is not reachable from the order's current status."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested


class EmptyOrderError(InvalidRequestError):
    """Order was submitted without any line items."""

    def __init__(self) -> None:
        super().__init__("Order must contain at least one item")


class DuplicateUserError(InvalidRequestError):
    """Email or patient ID is already registered."""

    def __init__(self, message: str = "User already exists with this email or patient ID") -> None:
        super().__init__(message)


class ConflictError(ServiceError):
    """Conditional write lost a race with a concurrent writer."""

    status_code = 409


class RepositoryError(ServiceError):
    """Unexpected failure talking to the record store."""

    status_code = 500
