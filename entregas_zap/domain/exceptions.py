class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when form input is missing or inconsistent. Nothing is written."""


class NotFoundError(DomainError):
    """Raised when a local id or code matches nothing in the session."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class MissingIdentifierError(DomainError):
    """Raised when a local record has no backend identifier to act on."""


class PersistenceError(DomainError):
    """Raised when a required backend write fails."""


class BusyError(DomainError):
    """Raised when a batch send is already running for the session."""
