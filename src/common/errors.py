from __future__ import annotations

from typing import Iterable, List


class DataUnavailableError(RuntimeError):
    """
    The source dataset could not be retrieved.

    Raised once at the fetch boundary (network failure, timeout, HTTP error
    or a missing local input file). There is no retry; callers are expected
    to stop the run and surface the message.
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class MissingFieldError(KeyError):
    """A required column is absent from the input table."""

    def __init__(self, missing: Iterable[str], *, available: Iterable[str] = ()) -> None:
        self.missing: List[str] = list(missing)
        self.available: List[str] = list(available)
        super().__init__(
            f"Input table is missing required column(s): {', '.join(self.missing)}"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


__all__ = ["DataUnavailableError", "MissingFieldError"]
