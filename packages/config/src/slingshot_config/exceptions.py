"""Custom exceptions for the config package.

Built on the common exception framework from slingshot_common.
"""

from slingshot_common import (
    ConfigurationError as BaseConfigurationError,
    NotFoundError,
)

ConfigError = BaseConfigurationError


class ConfigNotFoundError(NotFoundError):
    """Raised when a configuration file or section is not found."""

    pass
