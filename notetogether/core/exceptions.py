"""
Custom Exceptions.

Application-specific exception classes for consistent error handling
across the store, sync and auth layers.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class StoreError(ApplicationError):
    """Raised when the remote store cannot be reached or refuses a call."""

    def __init__(self, message: str = "Note store unavailable") -> None:
        super().__init__(message, code="STORE_UNAVAILABLE")


class NotFoundError(ApplicationError):
    """Raised when a note id does not exist in the store."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class SubscriptionError(ApplicationError):
    """Delivered to subscribers when the change stream fails."""

    def __init__(self, message: str = "Subscription error") -> None:
        super().__init__(message, code="SYNC_SUBSCRIPTION_ERROR")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class NotSignedInError(ApplicationError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Not signed in") -> None:
        super().__init__(message, code="AUTH_NOT_SIGNED_IN")
