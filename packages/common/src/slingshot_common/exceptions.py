"""Common exception hierarchy for all slingshot packages.

Every slingshot package raises subclasses of :class:`SlingshotError`, so a
caller can catch one type to handle any failure coming out of the tool while
still being able to tell categories apart (configuration problems versus
resource or operation failures).

Each exception carries an optional ``context`` dictionary with structured
information about the failure (index names, document identifiers, ...).

Example:
    ```python
    from slingshot_common.exceptions import NotFoundError, SlingshotError

    raise NotFoundError(
        "Index not found",
        context={"index": "sale_v2"}
    )

    try:
        operation()
    except SlingshotError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from typing import Any, Dict


class SlingshotError(Exception):
    """Base exception for all slingshot packages.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context
        details: Alternative to context (both are supported)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        # Details takes precedence if both are provided
        self.context = details or context or {}
        self.details = self.context


class ConfigurationError(SlingshotError):
    """Raised when configuration is invalid or missing.

    Use this exception for problems the operator has to fix before anything
    can run: missing required settings, invalid values, unreadable files.
    """

    pass


class ResourceError(SlingshotError):
    """Raised when resource operations fail.

    Covers connection errors, unreachable hosts and exhausted resources.
    """

    pass


class NotFoundError(SlingshotError):
    """Raised when a requested item is not found."""

    pass


class OperationError(SlingshotError):
    """Raised when an operation fails.

    Use this exception for general operation failures that don't fit
    other categories.
    """

    pass


__all__ = [
    "SlingshotError",
    "ConfigurationError",
    "ResourceError",
    "NotFoundError",
    "OperationError",
]
