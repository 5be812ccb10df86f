"""
Common helpers
--------------

Shared pieces used across ingestion, transformations and analysis.
"""

from .errors import (  # noqa: F401
    DataUnavailableError,
    MissingFieldError,
)

__all__ = [
    "DataUnavailableError",
    "MissingFieldError",
]
