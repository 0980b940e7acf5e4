"""Domain-level exceptions.

Services raise these errors to express business rule violations.
The API layer maps each one to an HTTP status code.
"""


class DomainError(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConflictError(DomainError):
    """Entity with the same unique key (email, external id) already exists."""

    status_code = 409


class UnauthorizedError(DomainError):
    """Credentials could not be verified."""

    status_code = 401


class ForbiddenError(DomainError):
    """Caller's role or ownership does not permit the action."""

    status_code = 403


class NotFoundError(DomainError):
    """Requested entity does not exist."""

    status_code = 404


class ExternalIdentityError(DomainError):
    """Identity provider payload could not be reconciled with a local account."""

    status_code = 400
