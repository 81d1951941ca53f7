"""Exception hierarchy for relay-pulse.

None of these errors are fatal to the running widget: the core logs them and
degrades to keeping the previous visible state. Only the CLI surface turns
them into a non-zero exit.
"""

from __future__ import annotations


class RelayPulseError(Exception):
    """Base exception for all relay-pulse errors."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        """Initialize RelayPulseError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.context: dict[str, object] = context or {}


class FetchError(RelayPulseError):
    """Raised when the status source cannot be reached or its payload parsed."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize FetchError.

        Args:
            message: Error message
            url: Status endpoint that failed
            context: Additional context information
        """
        full_context = dict(context or {})
        if url is not None:
            full_context["url"] = url

        super().__init__(message, full_context)
        self.url: str | None = url


class PersistenceError(RelayPulseError):
    """Raised when the persisted key-value store cannot be read or written."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize PersistenceError.

        Args:
            message: Error message
            key: Store key involved in the failed operation
            context: Additional context information
        """
        full_context = dict(context or {})
        if key is not None:
            full_context["key"] = key

        super().__init__(message, full_context)
        self.key: str | None = key


class HostQueryError(RelayPulseError):
    """Raised when the host window API fails to report or apply geometry."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize HostQueryError.

        Args:
            message: Error message
            operation: Host operation that failed (e.g. ``outer_position``)
            context: Additional context information
        """
        full_context = dict(context or {})
        if operation is not None:
            full_context["operation"] = operation

        super().__init__(message, full_context)
        self.operation: str | None = operation


class ConfigurationError(RelayPulseError):
    """Exception raised when configuration loading or validation fails.

    This exception provides detailed, actionable error messages for configuration
    issues including file not found, YAML parsing errors, and validation failures.
    """


class EnvironmentVariableError(RelayPulseError):
    """Exception raised when environment variable resolution fails.

    Raised when a referenced environment variable is missing. The message
    names the variable but never its value.
    """
