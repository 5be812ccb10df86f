"""
Local orchestration entrypoint for the GDP x CO2 decoupling pipeline.

When executed locally, runs:

1. OWID CO2 ingestion (RAW), or reading of a local CSV when --input-csv
   is given
2. Loading of the required columns (country, year, gdp, co2, population)
3. Decoupling analysis (panel filter, indices, classification, summaries)
4. Analytical outputs (CSV tables + cleaned panel parquet)

Intended usage (local):

    PYTHONPATH=src python -m local_pipeline

Optional arguments restrict the analysis window or skip the download:

    PYTHONPATH=src python -m local_pipeline --input-csv owid-co2-data.csv \\
        --start-year 1990 --end-year 2022 --basis per_capita
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

from adapters import LocalStorageAdapter, StorageAdapter
from analysis import run_decoupling_analysis, save_analysis_outputs
from common.errors import DataUnavailableError, MissingFieldError
from ingestion_api.owid_co2_ingestion import ingest_owid_co2_raw, read_owid_co2_csv
from transformations import DEFAULT_START_YEAR

DEFAULT_OUTPUT_ROOT = Path("output")


def run_local_pipeline(
    *,
    input_csv: Optional[Path | str] = None,
    source_url: Optional[str] = None,
    start_year: int = DEFAULT_START_YEAR,
    end_year: Optional[int] = None,
    basis: str = "total",
    use_available_endpoints: bool = False,
    storage: Optional[StorageAdapter] = None,
    output_root: Path | str = DEFAULT_OUTPUT_ROOT,
    snapshot_date: Optional[str] = None,
) -> Dict[str, List[str]]:
    """
    Run the full local pipeline end-to-end.

    Parameters
    ----------
    input_csv:
        Local copy of the OWID CSV. When omitted, the dataset is downloaded
        from `source_url` (or OWID_CO2_URL / the default URL) and stored in
        the RAW layer first.
    start_year, end_year, basis, use_available_endpoints:
        Forwarded to run_decoupling_analysis.
    storage:
        Where artefacts go. Defaults to a LocalStorageAdapter on `output_root`.

    Returns
    -------
    artefacts:
        Dictionary mapping step names to lists of generated locations.

    Raises DataUnavailableError when the dataset cannot be obtained and
    MissingFieldError when it lacks a required column.
    """
    artefacts: Dict[str, List[str]] = {}
    store = storage or LocalStorageAdapter(output_root)

    # 1. RAW
    if input_csv is None:
        print("[1/4] Downloading OWID CO2 dataset (RAW)...")
        raw_key = ingest_owid_co2_raw(store, url=source_url)
        artefacts["raw"] = [raw_key]
        source: Path | bytes = store.read_raw(raw_key)
        print(f"      RAW file: {raw_key}")
    else:
        print(f"[1/4] Using local OWID CO2 file {input_csv}...")
        source = Path(input_csv)
        artefacts["raw"] = [str(source)]

    # 2. Load
    print("[2/4] Loading country-year panel...")
    raw_df = read_owid_co2_csv(source)
    print(f"      {len(raw_df)} rows loaded.")

    # 3. Analysis
    print("[3/4] Running decoupling analysis...")
    result = run_decoupling_analysis(
        raw_df,
        start_year=start_year,
        end_year=end_year,
        basis=basis,
        use_available_endpoints=use_available_endpoints,
    )

    # 4. Outputs
    print("[4/4] Writing analytical outputs...")
    locations = save_analysis_outputs(result, store, snapshot_date=snapshot_date)
    artefacts["analysis"] = list(locations.values())
    for name, location in locations.items():
        print(f"      {name}: {location}")

    print("\nPipeline completed successfully.")
    return artefacts


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(
        description="Run the GDP x CO2 decoupling pipeline end-to-end.",
    )
    parser.add_argument(
        "--input-csv",
        type=str,
        default=None,
        help="Local OWID CO2 CSV. If omitted, the dataset is downloaded.",
    )
    parser.add_argument(
        "--source-url",
        type=str,
        default=None,
        help="Override the download URL (default: $OWID_CO2_URL or the OWID URL).",
    )
    parser.add_argument(
        "--start-year",
        type=int,
        default=DEFAULT_START_YEAR,
        help=f"First year of the analysis window (default: {DEFAULT_START_YEAR}).",
    )
    parser.add_argument(
        "--end-year",
        type=int,
        default=None,
        help="Last year of the analysis window (default: latest year available).",
    )
    parser.add_argument(
        "--basis",
        choices=["total", "per_capita"],
        default="total",
        help="Compare total or per-capita GDP and CO2 (default: total).",
    )
    parser.add_argument(
        "--use-available-endpoints",
        action="store_true",
        help="Compare each country's own first and last years instead of fixed endpoints.",
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=str(DEFAULT_OUTPUT_ROOT),
        help=f"Root directory for RAW and analysis artefacts (default: {DEFAULT_OUTPUT_ROOT}).",
    )

    args = parser.parse_args(argv)
    try:
        run_local_pipeline(
            input_csv=args.input_csv,
            source_url=args.source_url,
            start_year=args.start_year,
            end_year=args.end_year,
            basis=args.basis,
            use_available_endpoints=args.use_available_endpoints,
            output_root=Path(args.output_root),
        )
    except (DataUnavailableError, MissingFieldError) as exc:
        print(f"[pipeline] Aborted: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())


__all__ = ["run_local_pipeline", "main"]
