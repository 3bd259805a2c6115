"""Environment variable substitution for configuration values."""

import os
import re
from typing import Any, Dict, List, Union


class VariableSubstitution:
    """Handles environment variable substitution in configuration values.

    Supports patterns:
    - ${VAR} - Replace with environment variable VAR, error if not found
    - ${VAR:default} - Replace with VAR or use default if not found
    - ${VAR:-default} - Same as above (bash-style)

    Host names, credentials and index names are the usual candidates, e.g.
    ``source: ${SLINGSHOT_SOURCE_HOST:-http://localhost:9200}``.
    """

    VAR_PATTERN = re.compile(r'\$\{([^}:]+)(?::(-)?([^}]*))?\}')

    def __init__(self, environ: Dict[str, str] | None = None) -> None:
        """Initialize the substitution helper.

        Args:
            environ: Mapping to read variables from (default: os.environ)
        """
        self._environ = environ if environ is not None else os.environ

    def substitute(self, value: Any) -> Any:
        """Recursively substitute environment variables in a value.

        Args:
            value: Value to process (can be string, dict, list, or other)

        Returns:
            Value with environment variables substituted

        Raises:
            ValueError: If a required environment variable is not found
        """
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, dict):
            return self._substitute_dict(value)
        elif isinstance(value, list):
            return self._substitute_list(value)
        else:
            return value

    def _lookup(self, match: re.Match) -> tuple[str, bool]:
        """Resolve one ${...} match, returning (value, came_from_env)."""
        var_name = match.group(1)
        has_default = match.group(2) is not None or match.group(3) is not None
        if var_name in self._environ:
            return self._environ[var_name], True
        if has_default:
            return match.group(3) or "", False
        raise ValueError(f"Environment variable '{var_name}' not found")

    def _substitute_string(self, text: str) -> Union[str, int, float, bool]:
        # A value that is exactly one reference may become a non-string
        if text.startswith('${') and text.endswith('}') and text.count('${') == 1:
            match = self.VAR_PATTERN.fullmatch(text)
            if match:
                value, _ = self._lookup(match)
                return self._convert_type(value)

        return self.VAR_PATTERN.sub(lambda m: self._lookup(m)[0], text)

    def _substitute_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # Keys are not substituted, only values
        return {key: self.substitute(value) for key, value in data.items()}

    def _substitute_list(self, data: List[Any]) -> List[Any]:
        return [self.substitute(item) for item in data]

    def _convert_type(self, value: str) -> Union[str, int, float, bool]:
        """Convert a string value to int, float or bool where it reads as one.

        Args:
            value: String value to convert

        Returns:
            Converted value, or the original string
        """
        lowered = value.lower()
        if lowered in ('true', 'yes'):
            return True
        elif lowered in ('false', 'no'):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def has_variables(self, value: Any) -> bool:
        """Check if a value contains environment variable references.

        Args:
            value: Value to check

        Returns:
            True if value contains ${...} patterns
        """
        if isinstance(value, str):
            return bool(self.VAR_PATTERN.search(value))
        elif isinstance(value, dict):
            return any(self.has_variables(v) for v in value.values())
        elif isinstance(value, list):
            return any(self.has_variables(item) for item in value)
        else:
            return False
