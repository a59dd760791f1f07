"""Custom exception classes for the plugin marketplace."""


class MarketplaceException(Exception):
    """Base exception for all marketplace errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for API responses.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code for API responses.
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(MarketplaceException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Error message describing the validation failure.
            field: The field that failed validation.
        """
        super().__init__(message=message, status_code=400)
        self.field = field


class AuthenticationError(MarketplaceException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message, status_code=401)


class AuthorizationError(MarketplaceException):
    """Raised when an authenticated user lacks permission for an action."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message=message, status_code=403)


class NotFoundError(MarketplaceException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message=message, status_code=404)


class PluginNotFoundError(NotFoundError):
    """Raised when a requested plugin does not exist."""

    def __init__(self, plugin_id: str) -> None:
        """Initialize the exception.

        Args:
            plugin_id: ID of the plugin that was not found.
        """
        super().__init__("Plugin not found")
        self.plugin_id = plugin_id


class UserNotFoundError(NotFoundError):
    """Raised when a requested user does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__("User not found")
        self.user_id = user_id


class ConflictError(MarketplaceException):
    """Raised when an action violates a uniqueness or business rule."""

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Error message describing the conflict.
        """
        super().__init__(message=message, status_code=409)


class StorageError(MarketplaceException):
    """Raised when an artifact store operation fails."""

    def __init__(self, message: str, operation: str = "unknown") -> None:
        """Initialize the exception.

        Args:
            message: Error message describing the failure.
            operation: The storage operation that failed.
        """
        super().__init__(
            message=f"Storage error during '{operation}': {message}",
            status_code=500,
        )
        self.operation = operation


class ConfigurationError(MarketplaceException):
    """Raised when a required server setting is missing.

    The message is safe to show to clients.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=500)
