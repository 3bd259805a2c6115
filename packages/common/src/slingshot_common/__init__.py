"""Common base classes shared by the slingshot packages.

- **Exceptions**: Unified exception hierarchy with context support

Example:
    ```python
    from slingshot_common import SlingshotError

    raise SlingshotError("Something went wrong", context={"details": "here"})
    ```
"""

from slingshot_common.exceptions import (
    ConfigurationError,
    NotFoundError,
    OperationError,
    ResourceError,
    SlingshotError,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SlingshotError",
    "ConfigurationError",
    "ResourceError",
    "NotFoundError",
    "OperationError",
]
