"""Ready-made transforms and transform loading for the command line."""

from __future__ import annotations

import copy
import importlib
from functools import wraps
from typing import Any, TYPE_CHECKING

from .exceptions import MigrationConfigError
from .records import DocumentRecord, Many, Single, TransformResult

if TYPE_CHECKING:
    from collections.abc import Callable

    Transform = Callable[[DocumentRecord], TransformResult]

VERSION_FIELD = "tech"


def identity(record: DocumentRecord) -> TransformResult:
    """Copy the document unchanged under the same id."""
    return Single(record.to_dict(), record.id)


def already_migrated(document: dict[str, Any], version: dict[str, Any], field: str = VERSION_FIELD) -> bool:
    """True when ``document`` already lists ``version['code']`` in its history."""
    history = document.get(field) or []
    return any(
        isinstance(entry, dict) and entry.get("code") == version["code"]
        for entry in history
    )


def versioned(version: dict[str, Any], transform: Transform, field: str = VERSION_FIELD) -> Transform:
    """Make a transform safe to re-run.

    Documents whose ``field`` history already holds ``version`` are copied
    through untouched; every other document goes through ``transform`` and
    the version is appended to the history of each document it produces.

    Args:
        version: Mapping with at least a ``code`` key (and usually a ``label``)
        transform: The transform to guard
        field: Name of the history list in the document

    Example:
        ```python
        rename_regions = versioned(
            {"code": 1, "label": "Rename _c.de criteria to _c_de"},
            rename_criteria,
        )
        ```
    """
    if "code" not in version:
        raise MigrationConfigError("version", "version needs a 'code'")

    @wraps(transform)
    def wrapper(record: DocumentRecord) -> TransformResult:
        if already_migrated(dict(record.fields), version, field):
            return identity(record)
        result = transform(record)
        if isinstance(result, Single):
            return _stamp(result, version, field)
        if isinstance(result, Many):
            return Many([_stamp(item, version, field) for item in result.items])
        return result

    return wrapper


def _stamp(result: Single, version: dict[str, Any], field: str) -> Single:
    """Copy of ``result`` with ``version`` appended to the document history."""
    document = result.document
    history = list(document.get(field) or []) + [copy.deepcopy(version)]
    return Single({**document, field: history}, result.id)


def load_transform(reference: str) -> Transform:
    """Import a transform from a ``"package.module:function"`` reference.

    Raises:
        MigrationConfigError: If the module or attribute cannot be loaded,
            or is not callable
    """
    module_path, sep, attr_path = reference.partition(":")
    if not sep or not module_path or not attr_path:
        raise MigrationConfigError(
            "transform", f"expected 'module:function', got '{reference}'"
        )
    try:
        target: Any = importlib.import_module(module_path)
    except ImportError as e:
        raise MigrationConfigError("transform", f"cannot import module '{module_path}': {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError:
            raise MigrationConfigError(
                "transform", f"'{module_path}' has no attribute '{attr_path}'"
            ) from None

    if not callable(target):
        raise MigrationConfigError("transform", f"'{reference}' is not callable")
    return target
