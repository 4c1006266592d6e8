"""Deferred imports for optional drivers.

The Mongo and Redis drivers are imported on first use, so that importing
credit_threads (or running the in-memory store) does not pull them in.
"""

from collections.abc import Callable
from importlib import import_module

__all__ = [
    "lazy_import",
]


def lazy_import(
    module_name: str,
    name: str | None = None,
) -> Callable[[], object]:
    """Lazily import a module or an attribute from a module.

    Example:
        get_return_document = lazy_import("pymongo", "ReturnDocument")
        ReturnDocument = get_return_document()
    """

    def _load() -> object:
        mod = import_module(module_name)
        return getattr(mod, name) if name else mod

    return _load
