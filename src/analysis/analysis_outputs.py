"""
Persistence of the decoupling analysis tables.

Layout (relative to the StorageAdapter root):

    analysis/<YYYYMMDD>/
        global_index.csv
        income_bracket_index.csv
        global_change.csv
        income_bracket_change.csv
        carbon_intensity.csv
        income_bracket_carbon_intensity.csv
        country_comparison.csv
        decoupling_summary.csv
        decoupling_by_income_bracket.csv

    curated/owid_panel/snapshot_date=<YYYYMMDD>/
        cleaned_panel.parquet

Tables are plain CSV with no index, ready for plotting or reporting tools.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

import pandas as pd

from adapters import StorageAdapter
from .decoupling_analysis import DecouplingAnalysisResult

ANALYSIS_BASE_PREFIX = "analysis"
CURATED_BASE_PREFIX = "curated/owid_panel"
PANEL_PARQUET_NAME = "cleaned_panel.parquet"

# DecouplingAnalysisResult attribute -> artefact file name
TABLE_FILE_NAMES: Dict[str, str] = {
    "global_index": "global_index.csv",
    "bracket_index": "income_bracket_index.csv",
    "global_change": "global_change.csv",
    "bracket_change": "income_bracket_change.csv",
    "carbon_intensity": "carbon_intensity.csv",
    "bracket_carbon_intensity": "income_bracket_carbon_intensity.csv",
    "comparison": "country_comparison.csv",
    "summary": "decoupling_summary.csv",
    "bracket_summary": "decoupling_by_income_bracket.csv",
}


def _snapshot_date(snapshot_date: Optional[str]) -> str:
    return snapshot_date or datetime.now(timezone.utc).strftime("%Y%m%d")


def _extract_snapshot_date_from_key(key: str) -> Optional[str]:
    """Pull the YYYYMMDD component out of an analysis/ or curated/ key."""
    for part in key.replace("\\", "/").split("/"):
        candidate = part.split("=", 1)[1] if part.startswith("snapshot_date=") else part
        if len(candidate) == 8 and candidate.isdigit():
            return candidate
    return None


def save_analysis_outputs(
    result: DecouplingAnalysisResult,
    storage: StorageAdapter,
    *,
    snapshot_date: Optional[str] = None,
    include_panel: bool = True,
) -> Dict[str, str]:
    """
    Write every table of `result` and return {table name: location}.

    Empty tables are still written (header only) so that consumers always
    find the full set of files for a snapshot.
    """
    snapshot = _snapshot_date(snapshot_date)
    locations: Dict[str, str] = {}

    for name, file_name in TABLE_FILE_NAMES.items():
        df: pd.DataFrame = getattr(result, name)
        key = f"{ANALYSIS_BASE_PREFIX}/{snapshot}/{file_name}"
        locations[name] = storage.write_csv(df, key)

    if include_panel:
        key = f"{CURATED_BASE_PREFIX}/snapshot_date={snapshot}/{PANEL_PARQUET_NAME}"
        panel = result.panel.copy()
        if "income_bracket" in panel.columns:
            panel["income_bracket"] = panel["income_bracket"].astype("string")
        locations["panel"] = storage.write_parquet(panel, key)

    print(f"[analysis] Wrote {len(locations)} artefacts for snapshot {snapshot}")
    return locations


def load_latest_analysis_table(storage: StorageAdapter, name: str) -> pd.DataFrame:
    """
    Read the most recent snapshot of one analysis table back.

    `name` is a DecouplingAnalysisResult attribute (e.g. "comparison").
    Raises KeyError for unknown names and FileNotFoundError when no
    snapshot has been written yet.
    """
    if name not in TABLE_FILE_NAMES:
        raise KeyError(f"Unknown analysis table {name!r}")

    file_name = TABLE_FILE_NAMES[name]
    keys = [k for k in storage.list_keys(ANALYSIS_BASE_PREFIX) if k.endswith("/" + file_name)]
    if not keys:
        raise FileNotFoundError(f"No snapshot of {file_name} under {ANALYSIS_BASE_PREFIX}/")

    keys.sort(key=lambda k: _extract_snapshot_date_from_key(k) or "")
    return storage.read_csv(keys[-1])


__all__ = [
    "ANALYSIS_BASE_PREFIX",
    "CURATED_BASE_PREFIX",
    "PANEL_PARQUET_NAME",
    "TABLE_FILE_NAMES",
    "save_analysis_outputs",
    "load_latest_analysis_table",
]
