"""Base classes for configuration models.

Kept apart from config.py so that log.py can build its sink
models on the same foundation without a circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release held resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Subclasses become context managers. On close() every field
    value implementing Closeable is closed in turn; a failure in
    one child is reported on stderr and the remaining children are
    still closed.
    """

    def close(self):
        """Close all closeable child objects."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    msg = f"Warning: Error closing {field_name}: {e}"
                    print(msg, file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base class for configuration sections.

    Everything deriving from it is loaded from YAML, environment
    or CLI and treated as read-only once validated.
    """
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig"]
