"""
RAW ingestion of the OWID "CO2 and Greenhouse Gas Emissions" panel.

The source is a single public CSV with one row per (country, year) and
several dozen indicator columns. Only five of them are needed downstream:

    country     - string
    year        - int
    gdp         - float (constant international dollars)
    co2         - float (million tonnes)
    population  - float

The fetch is performed once, synchronously, with a timeout and without
retries: any failure is converted into DataUnavailableError and the run
stops. The RAW bytes are persisted through a StorageAdapter as-is, for
traceability, under:

    raw/owid_co2/owid_co2_raw_<YYYYMMDDTHHMMSSZ>.csv

Local usage:

    PYTHONPATH=src python -m ingestion_api.owid_co2_ingestion --output-root output
"""

from __future__ import annotations

import io
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable, Optional, Union

import pandas as pd
import requests

from adapters import StorageAdapter
from common.errors import DataUnavailableError, MissingFieldError
from env_loader import load_dotenv_if_present

# Carrega .env se existir (para OWID_CO2_URL).
load_dotenv_if_present()

OWID_CO2_DEFAULT_URL = "https://owid-public.owid.io/data/co2/owid-co2-data.csv"
OWID_CO2_URL_ENV = "OWID_CO2_URL"
OWID_DATA_SOURCE = "owid_co2"

# Logical base prefix for RAW files.
RAW_BASE_PREFIX = "raw/owid_co2"

REQUIRED_COLUMNS = ("country", "year", "gdp", "co2", "population")

USER_AGENT = "gdp-co2-decoupling/0.1"

CsvSource = Union[str, Path, bytes, IO[str], IO[bytes]]


def resolve_source_url(url: Optional[str] = None) -> str:
    """Explicit argument first, then the OWID_CO2_URL variable, then the default."""
    if url:
        return url
    return os.getenv(OWID_CO2_URL_ENV) or OWID_CO2_DEFAULT_URL


def fetch_owid_co2_csv(url: Optional[str] = None, *, timeout: int = 60) -> bytes:
    """
    Download the OWID CSV and return its raw bytes.

    Raises DataUnavailableError on connection errors, timeouts, non-2xx
    responses or an empty body.
    """
    source_url = resolve_source_url(url)
    try:
        response = requests.get(
            source_url,
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise DataUnavailableError(
            f"Could not retrieve the OWID CO2 dataset from {source_url}: {exc}",
            source=source_url,
        ) from exc

    content = response.content
    if not content or not content.strip():
        raise DataUnavailableError(
            f"OWID CO2 dataset at {source_url} returned an empty body",
            source=source_url,
        )
    return content


def ingest_owid_co2_raw(
    storage: StorageAdapter,
    *,
    url: Optional[str] = None,
    timeout: int = 60,
) -> str:
    """
    Fetch the OWID CSV and persist it unchanged in the RAW layer.

    Returns
    -------
    raw_key:
        Logical key of the stored file, e.g.
        "raw/owid_co2/owid_co2_raw_20240101T000000Z.csv"
    """
    content = fetch_owid_co2_csv(url, timeout=timeout)

    timestamp_for_filename = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    key = f"{RAW_BASE_PREFIX}/owid_co2_raw_{timestamp_for_filename}.csv"
    location = storage.write_raw(key, content)
    print(f"[ingestion] Stored {len(content)} bytes from {OWID_DATA_SOURCE} at {location}")
    return key


def validate_required_columns(
    df: pd.DataFrame,
    required: Iterable[str] = REQUIRED_COLUMNS,
) -> None:
    """Raise MissingFieldError listing every required column absent from df."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise MissingFieldError(missing, available=df.columns)


def read_owid_co2_csv(source: CsvSource) -> pd.DataFrame:
    """
    Load the panel CSV into a DataFrame restricted to REQUIRED_COLUMNS.

    `source` may be a filesystem path, the raw bytes returned by
    fetch_owid_co2_csv, or an open file-like object. Values that cannot be
    parsed as numbers become NaN; filtering them out is the panel filter's
    job, not the loader's.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise DataUnavailableError(f"Input CSV not found: {path}", source=str(path))
        df = pd.read_csv(path)
    elif isinstance(source, bytes):
        df = pd.read_csv(io.BytesIO(source))
    else:
        df = pd.read_csv(source)

    validate_required_columns(df)

    df = df[list(REQUIRED_COLUMNS)].copy()
    df["country"] = df["country"].astype("string")
    df["year"] = pd.to_numeric(df["year"], errors="coerce").astype("Int64")
    for col in ["gdp", "co2", "population"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    return df


if __name__ == "__main__":
    import argparse

    from adapters import LocalStorageAdapter

    parser = argparse.ArgumentParser(
        description="Download the OWID CO2 panel and store it in the RAW layer.",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help=f"Source URL (default: ${OWID_CO2_URL_ENV} or {OWID_CO2_DEFAULT_URL}).",
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=".",
        help="Root directory for the local storage adapter (default: CWD).",
    )

    args = parser.parse_args()
    print(ingest_owid_co2_raw(LocalStorageAdapter(args.output_root), url=args.url))


__all__ = [
    "OWID_CO2_DEFAULT_URL",
    "OWID_CO2_URL_ENV",
    "OWID_DATA_SOURCE",
    "RAW_BASE_PREFIX",
    "REQUIRED_COLUMNS",
    "resolve_source_url",
    "fetch_owid_co2_csv",
    "ingest_owid_co2_raw",
    "validate_required_columns",
    "read_owid_co2_csv",
]
