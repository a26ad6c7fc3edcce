"""Common utility functions for the SSR content gateway."""

import importlib
from typing import Any


def load_object(import_string: str) -> Any:
    """Import an object from a ``"package.module:attribute"`` string.

    Dotted attributes after the colon are followed, so
    ``"app.pages:registry.routes"`` is accepted.
    """
    module_name, sep, attr_path = import_string.partition(':')
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Import string must look like 'module:attribute', got {import_string!r}")

    obj = importlib.import_module(module_name)
    for attr in attr_path.split('.'):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise ImportError(f"{module_name!r} has no attribute {attr_path!r}") from None
    return obj
