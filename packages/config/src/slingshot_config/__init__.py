"""Slingshot Config Package

Section-based configuration loading with environment variable substitution.
"""

from .config import Config, deep_merge
from .exceptions import ConfigError, ConfigNotFoundError
from .substitution import VariableSubstitution

__version__ = "1.0.0"
__all__ = [
    "Config",
    "ConfigError",
    "ConfigNotFoundError",
    "VariableSubstitution",
    "deep_merge",
]
