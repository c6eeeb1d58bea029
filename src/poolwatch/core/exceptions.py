"""PoolWatch exception hierarchy.

This module defines the base exception class and specialized exceptions
for the error categories a listener run can hit.
"""


class PoolWatchError(Exception):
    """Base exception for all PoolWatch errors.

    All custom exceptions in PoolWatch inherit from this class
    so callers can catch the whole family at once.
    """

    pass


class ConfigurationError(PoolWatchError):
    """Raised when configuration is invalid or missing.

    Fatal at startup.

    Example:
        raise ConfigurationError("Missing required env var: RPC_ENDPOINT")
    """

    pass


class AllowListLoadError(PoolWatchError):
    """Raised when the snipe list file cannot be read.

    Attributes:
        path: Path of the file that failed to load.

    Example:
        raise AllowListLoadError(path, "No such file or directory")
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class AccountDecodeError(PoolWatchError):
    """Raised when account bytes do not match a fixed layout.

    Attributes:
        layout: Name of the layout that failed to decode.
    """

    def __init__(self, layout: str, message: str) -> None:
        self.layout = layout
        super().__init__(f"{layout}: {message}")


class ExternalServiceError(PoolWatchError):
    """Raised when an RPC call fails.

    Covers HTTP errors, transport errors and JSON-RPC error objects.

    Attributes:
        service: Name or URL of the service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise ExternalServiceError(service="rpc", message="Rate limited", status_code=429)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class CircuitBreakerOpenError(PoolWatchError):
    """Raised when the RPC circuit breaker is open.

    Example:
        raise CircuitBreakerOpenError("Circuit is open for RPC endpoint")
    """

    pass


class SubscriptionError(PoolWatchError):
    """Raised when a program subscription is rejected or its connection drops.

    Attributes:
        program_id: Program the subscription was registered for.
    """

    def __init__(self, program_id: str, message: str) -> None:
        self.program_id = program_id
        super().__init__(f"{program_id}: {message}")
