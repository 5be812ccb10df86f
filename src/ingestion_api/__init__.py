"""
Ingestion layer
---------------

Retrieval of the OWID CO2 panel (RAW) and loading of that CSV into a
typed DataFrame with the columns the analysis needs.
"""

from .owid_co2_ingestion import (  # noqa: F401
    OWID_CO2_DEFAULT_URL,
    OWID_CO2_URL_ENV,
    RAW_BASE_PREFIX,
    REQUIRED_COLUMNS,
    fetch_owid_co2_csv,
    ingest_owid_co2_raw,
    read_owid_co2_csv,
    resolve_source_url,
    validate_required_columns,
)

__all__ = [
    "OWID_CO2_DEFAULT_URL",
    "OWID_CO2_URL_ENV",
    "RAW_BASE_PREFIX",
    "REQUIRED_COLUMNS",
    "fetch_owid_co2_csv",
    "ingest_owid_co2_raw",
    "read_owid_co2_csv",
    "resolve_source_url",
    "validate_required_columns",
]
