"""Schema repository adapters - Storage-backed implementations."""

from .filesystem import FileSchemaRepository

__all__ = ["FileSchemaRepository"]
