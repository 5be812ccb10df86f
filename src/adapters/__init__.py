"""
Adapters package
----------------

Storage abstraction so that ingestion and analysis write their artefacts
through the same interface, whatever the backing location.
"""

from .storage import (  # noqa: F401
    LocalStorageAdapter,
    StorageAdapter,
)

__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
]
