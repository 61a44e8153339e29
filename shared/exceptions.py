"""
Domain error taxonomy shared by every service.

Services raise these; the HTTP layer maps each one to a status code in
shared/exception_handler.py. Payment distribution no-ops are NOT errors and
live in services/payment_service/schemas.py as DistributionStatus.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    """Referenced order, user, application or membership does not exist."""
    status_code = 404


class Forbidden(DomainError):
    """The acting user may not perform this action on this resource."""
    status_code = 403


class InvalidTransition(DomainError):
    """Requested order status is not reachable from the current one."""
    status_code = 409

    def __init__(self, current, requested, message: str | None = None):
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot move order from '{_value(current)}' to '{_value(requested)}'"
        )


class PersistenceConflict(DomainError):
    """
    A storage uniqueness guard rejected a concurrent writer.

    Someone else already completed the operation: re-read state instead of
    retrying blindly.
    """
    status_code = 409


class InvalidRequest(DomainError):
    status_code = 400


def _value(status) -> str:
    return getattr(status, "value", status)
