"""Resolve ``package.module:attribute`` import paths from configuration."""

import importlib
from typing import Any

from mixbridge.exceptions import ConfigValidationError


def load_object(import_path: str, field: str = "import path") -> Any:
    """
    Import and return the object named by ``package.module:attribute``.

    Raises:
        ConfigValidationError: If the path is malformed or cannot be imported
    """
    module_name, sep, attr_path = import_path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigValidationError(field, import_path, "expected 'package.module:callable'")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigValidationError(field, import_path, f"cannot import module: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ConfigValidationError(field, import_path, f"'{attr}' not found") from e
    return obj
