from __future__ import annotations

import io
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

import pandas as pd


class StorageAdapter(ABC):
    """
    Abstraction over the place where pipeline artefacts end up.

    Implementations map logical keys such as "raw/owid_co2/..." or
    "analysis/20240101/global_index.csv" to physical locations.
    """

    @abstractmethod
    def write_raw(self, key: str, content: bytes) -> str:
        """
        Persist arbitrary bytes at the given key.

        Returns the fully-qualified location string (for tracing/logging),
        for example "output/raw/owid_co2/owid_co2_raw_20240101T000000Z.csv".
        """

    @abstractmethod
    def read_raw(self, key: str) -> bytes:
        """Read raw bytes previously stored at the given key."""

    @abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        """List logical keys under the given prefix."""

    def write_csv(self, df: pd.DataFrame, key: str) -> str:
        """Persist a DataFrame as CSV (no index) at the given key."""
        buf = io.StringIO()
        df.to_csv(buf, index=False)
        return self.write_raw(key, buf.getvalue().encode("utf-8"))

    def read_csv(self, key: str) -> pd.DataFrame:
        """Load a CSV stored at the given key into a DataFrame."""
        return pd.read_csv(io.BytesIO(self.read_raw(key)))

    def write_parquet(self, df: pd.DataFrame, key: str) -> str:
        """Persist a DataFrame as a Parquet file at the given key."""
        buf = io.BytesIO()
        df.to_parquet(buf, index=False)
        return self.write_raw(key, buf.getvalue())

    def read_parquet(self, key: str) -> pd.DataFrame:
        """Load a Parquet file stored at the given key into a DataFrame."""
        return pd.read_parquet(io.BytesIO(self.read_raw(key)))


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem-backed storage adapter.

    Keys are treated as relative paths under a root directory.
    Example:
        root_dir = Path("output")
        key      = "analysis/20240101/global_index.csv"
        -> actual path: ./output/analysis/20240101/global_index.csv
    """

    def __init__(self, root_dir: Path | str = ".") -> None:
        self.root_dir = Path(root_dir)

    def _resolve(self, key: str) -> Path:
        path = self.root_dir / key.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def write_raw(self, key: str, content: bytes) -> str:
        path = self._resolve(key)
        with path.open("wb") as f:
            f.write(content)
        return str(path)

    def read_raw(self, key: str) -> bytes:
        path = self.root_dir / key.lstrip("/")
        with path.open("rb") as f:
            return f.read()

    def write_parquet(self, df: pd.DataFrame, key: str) -> str:
        path = self._resolve(key)
        df.to_parquet(path, index=False)
        return str(path)

    def read_parquet(self, key: str) -> pd.DataFrame:
        return pd.read_parquet(self.root_dir / key.lstrip("/"))

    def list_keys(self, prefix: str) -> List[str]:
        base = self.root_dir / prefix
        if not base.exists():
            return []

        keys: List[str] = []
        for path in base.rglob("*"):
            if path.is_file():
                rel = path.relative_to(self.root_dir)
                keys.append(str(rel).replace(os.sep, "/"))
        return sorted(keys)


__all__ = ["StorageAdapter", "LocalStorageAdapter"]
