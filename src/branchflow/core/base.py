"""Base classes for configuration and state models.

Kept apart from config.py so that log.py can build its sink models
on them without importing the full configuration.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Anything holding a resource that must be released."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Model that closes every Closeable field when it is closed.

    Closing the state closes the config, which closes the logger,
    which closes each sink and its open log file:
    State -> Config -> Logger -> Sink.
    """

    def close(self):
        """Close all closeable children, carrying on past failures."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    print(
                        f"Warning: error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""


class BaseState(BaseCloseable):
    """Marker base for runtime sections mutated by a workflow run."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
