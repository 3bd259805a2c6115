"""Core Config class implementation."""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError, ConfigNotFoundError
from .substitution import VariableSubstitution

logger = logging.getLogger(__name__)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries.

    Nested dictionaries are merged recursively; all other types are replaced.

    Example:
        >>> deep_merge({"a": 1, "n": {"x": 10}}, {"a": 2, "n": {"y": 20}})
        {'a': 2, 'n': {'x': 10, 'y': 20}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Section-based configuration loaded from files or dictionaries.

    A configuration is a dictionary of named sections (``hosts``,
    ``migration``, ``transform``, ...). Sources are loaded in order and each
    one is deep-merged over the previous ones, so a shared base file can be
    refined by a per-job file. ``${VAR}`` references in values are resolved
    against the environment at load time.
    """

    def __init__(self, *sources: Union[str, Path, dict], **kwargs: Any) -> None:
        """Initialize a Config object from one or more sources.

        Args:
            *sources: Variable number of sources (file paths or dictionaries)
            **kwargs: ``use_env`` (default True) toggles variable substitution;
                ``environ`` supplies an alternate variable mapping
        """
        self._data: Dict[str, Any] = {}
        self._use_env = kwargs.get("use_env", True)
        self._substitution = VariableSubstitution(kwargs.get("environ"))
        self.sources: List[str] = []

        for source in sources:
            self.load(source)

    def load(self, source: Union[str, Path, dict]) -> None:
        """Load configuration from a source and merge it over the current data.

        Args:
            source: File path or dictionary

        Raises:
            ConfigNotFoundError: If a file source does not exist
            ConfigError: If the source cannot be parsed or substituted
        """
        if isinstance(source, dict):
            data = copy.deepcopy(source)
            self.sources.append("<dict>")
        elif isinstance(source, (str, Path)):
            data = self._load_file(source)
            self.sources.append(str(source))
        else:
            raise ConfigError(f"Invalid source type: {type(source)}")

        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration root must be a mapping",
                context={"source": self.sources[-1], "type": type(data).__name__},
            )

        if self._use_env:
            try:
                data = self._substitution.substitute(data)
            except ValueError as e:
                raise ConfigError(str(e), context={"source": self.sources[-1]}) from e

        self._data = deep_merge(self._data, data)
        logger.debug(f"Loaded configuration from {self.sources[-1]}")

    def _load_file(self, path: Union[str, Path]) -> Any:
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise ConfigNotFoundError(
                f"Configuration file not found: {path}", context={"path": str(path)}
            )

        suffix = path.suffix.lower()
        with open(path, encoding="utf-8") as f:
            try:
                if suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigError(
                        f"Unsupported file format: {suffix}", context={"path": str(path)}
                    )
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigError(
                    f"Cannot parse configuration file {path}: {e}",
                    context={"path": str(path)},
                ) from e

        return data or {}

    def get_sections(self) -> List[str]:
        """Get the names of all loaded sections."""
        return list(self._data.keys())

    def get(self, section: str, default: Any = None) -> Any:
        """Get a copy of a section, or ``default`` when it is absent."""
        if section not in self._data:
            return default
        return copy.deepcopy(self._data[section])

    def require(self, section: str) -> Any:
        """Get a copy of a section that must be present.

        Raises:
            ConfigNotFoundError: If the section is missing
        """
        if section not in self._data:
            raise ConfigNotFoundError(
                f"Configuration section not found: {section}",
                context={"section": section, "available": self.get_sections()},
            )
        return copy.deepcopy(self._data[section])

    def to_dict(self) -> Dict[str, Any]:
        """Export the full configuration as a dictionary."""
        return copy.deepcopy(self._data)
