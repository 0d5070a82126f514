"""Base classes for configuration and state models.

This module contains the foundational classes shared by the
configuration and logging layers:
- Closeable Protocol for resource cleanup
- BaseCloseable for automatic cleanup cascade
- BaseConfig for configuration models

They live in a separate module so that config.py and log.py can both
import them without importing each other.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Any model inheriting from BaseCloseable:
    - Is a context manager (supports 'with' statement)
    - Walks its fields on close()
    - Calls close() on every child implementing Closeable
    - Keeps closing the remaining children if one of them fails

    The resulting cascade is
    State.__exit__() → Config.close() → Logger.close() → Sink.close()
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
                    print(
                        f"Warning: Error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections.

    Configuration is loaded from YAML/env/CLI and never mutated by the
    resolution workflow.
    """
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig"]
