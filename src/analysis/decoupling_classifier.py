"""
Country comparison and decoupling classification.

For every country with data at both endpoint years, the percent change of
GDP and CO2 between those years is computed and mapped to one status.
The rule is order-sensitive (first match wins):

1. gdp > 0 and co2 < 0     -> Absolute Decoupling
2. gdp > 0 and co2 < gdp   -> Relative Decoupling
3. gdp > 0                 -> No Decoupling
4. otherwise               -> Other (GDP did not grow; not reported)

Before classifying, comparisons with |co2 change| >= 300% or
|gdp change| >= 500% are dropped: such ratios come from near-zero base
values rather than from real trajectories.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from transformations.growth_index import pct_change

MAX_ABS_CO2_PCT_CHANGE = 300.0
MAX_ABS_GDP_PCT_CHANGE = 500.0

# Which panel columns feed the comparison, by basis.
BASIS_COLUMNS: Dict[str, Tuple[str, str]] = {
    "total": ("gdp", "co2"),
    "per_capita": ("gdp_per_capita", "co2_per_capita"),
}

COMPARISON_COLUMNS = [
    "country",
    "income_bracket",
    "start_year",
    "end_year",
    "gdp_start",
    "gdp_end",
    "co2_start",
    "co2_end",
    "gdp_pct_change",
    "co2_pct_change",
]


class DecouplingStatus(str, Enum):
    ABSOLUTE = "Absolute Decoupling"
    RELATIVE = "Relative Decoupling"
    NO_DECOUPLING = "No Decoupling"
    OTHER = "Other"


STATUS_ORDER: List[str] = [s.value for s in DecouplingStatus]

# Statuses that enter reported counts and percentages.
REPORTED_STATUSES: List[str] = [
    DecouplingStatus.ABSOLUTE.value,
    DecouplingStatus.RELATIVE.value,
    DecouplingStatus.NO_DECOUPLING.value,
]


def classify_decoupling(gdp_pct_change: float, co2_pct_change: float) -> DecouplingStatus:
    """
    Map a (gdp, co2) percent-change pair to its DecouplingStatus.

    Missing values are classified as Other.
    """
    if pd.isna(gdp_pct_change) or pd.isna(co2_pct_change):
        return DecouplingStatus.OTHER
    if gdp_pct_change > 0 and co2_pct_change < 0:
        return DecouplingStatus.ABSOLUTE
    if gdp_pct_change > 0 and co2_pct_change < gdp_pct_change:
        return DecouplingStatus.RELATIVE
    if gdp_pct_change > 0:
        return DecouplingStatus.NO_DECOUPLING
    return DecouplingStatus.OTHER


def is_plausible_change(
    gdp_pct_change: float,
    co2_pct_change: float,
    *,
    max_abs_gdp: float = MAX_ABS_GDP_PCT_CHANGE,
    max_abs_co2: float = MAX_ABS_CO2_PCT_CHANGE,
) -> bool:
    """True when both changes are strictly inside their plausibility bounds."""
    if pd.isna(gdp_pct_change) or pd.isna(co2_pct_change):
        return False
    return abs(co2_pct_change) < max_abs_co2 and abs(gdp_pct_change) < max_abs_gdp


def _empty_comparison() -> pd.DataFrame:
    return pd.DataFrame(columns=COMPARISON_COLUMNS)


def build_country_comparison(
    panel: pd.DataFrame,
    *,
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
    basis: str = "total",
    use_available_endpoints: bool = False,
) -> pd.DataFrame:
    """
    Build one comparison row per country.

    Parameters
    ----------
    panel:
        Cleaned panel (see transformations.panel_filter).
    start_year, end_year:
        Endpoint years. Default to the panel's first and last years.
    basis:
        "total" compares gdp/co2, "per_capita" compares gdp_per_capita /
        co2_per_capita. Output columns keep the gdp_* / co2_* names.
    use_available_endpoints:
        When False (default), a country needs observations at exactly
        start_year and end_year. When True, each country uses its own first
        and last years inside [start_year, end_year], and needs at least
        two distinct years.

    Countries that do not qualify are left out without raising.
    """
    if basis not in BASIS_COLUMNS:
        raise ValueError(
            f"Unknown comparison basis {basis!r}; expected one of {sorted(BASIS_COLUMNS)}"
        )
    if panel.empty:
        return _empty_comparison()

    gdp_col, co2_col = BASIS_COLUMNS[basis]
    context_cols = ["country"] + (["income_bracket"] if "income_bracket" in panel.columns else [])
    df = panel[context_cols + ["year", gdp_col, co2_col]].rename(
        columns={gdp_col: "gdp", co2_col: "co2"},
    )

    first_year = int(df["year"].min()) if start_year is None else int(start_year)
    last_year = int(df["year"].max()) if end_year is None else int(end_year)
    if first_year >= last_year:
        print(
            f"[classifier] Comparison window {first_year}-{last_year} is empty; "
            "no countries compared"
        )
        return _empty_comparison()

    if use_available_endpoints:
        window = df[(df["year"] >= first_year) & (df["year"] <= last_year)]
        n_years = window.groupby("country")["year"].nunique()
        eligible = n_years[n_years >= 2].index
        window = window[window["country"].isin(eligible)].sort_values(["country", "year"])
        grouped = window.groupby("country", sort=True)
        start_rows = grouped.head(1)[context_cols + ["year", "gdp", "co2"]]
        end_rows = grouped.tail(1)[["country", "year", "gdp", "co2"]]
        merged = start_rows.merge(end_rows, on="country", how="inner", suffixes=("_start", "_end"))
        merged = merged.rename(columns={"year_start": "start_year", "year_end": "end_year"})
    else:
        start_rows = df.loc[df["year"] == first_year, context_cols + ["gdp", "co2"]]
        end_rows = df.loc[df["year"] == last_year, ["country", "gdp", "co2"]]
        merged = start_rows.merge(end_rows, on="country", how="inner", suffixes=("_start", "_end"))
        merged["start_year"] = first_year
        merged["end_year"] = last_year

    if merged.empty:
        return _empty_comparison()

    if "income_bracket" not in merged.columns:
        merged["income_bracket"] = pd.NA

    merged["gdp_pct_change"] = pct_change(merged["gdp_start"], merged["gdp_end"])
    merged["co2_pct_change"] = pct_change(merged["co2_start"], merged["co2_end"])

    return merged[COMPARISON_COLUMNS].sort_values("country").reset_index(drop=True)


def drop_implausible_changes(
    comparison: pd.DataFrame,
    *,
    max_abs_gdp: float = MAX_ABS_GDP_PCT_CHANGE,
    max_abs_co2: float = MAX_ABS_CO2_PCT_CHANGE,
) -> pd.DataFrame:
    """Remove rows outside the plausibility bounds, noting who was dropped."""
    if comparison.empty:
        return comparison.copy()

    mask = (comparison["co2_pct_change"].abs() < max_abs_co2) & (
        comparison["gdp_pct_change"].abs() < max_abs_gdp
    )
    excluded = comparison.loc[~mask, "country"].astype(str).tolist()
    if excluded:
        print(
            f"[classifier] Data-quality note: excluded {len(excluded)} countries with "
            f"|co2 change| >= {max_abs_co2:g}% or |gdp change| >= {max_abs_gdp:g}%: "
            + ", ".join(excluded)
        )
    return comparison[mask].reset_index(drop=True)


def classify_countries(comparison: pd.DataFrame) -> pd.DataFrame:
    """
    Add a `status` column (categorical, STATUS_ORDER) to a comparison table.

    Vectorised form of classify_decoupling; both give identical results.
    """
    df = comparison.copy()
    if df.empty:
        df["status"] = pd.Categorical([], categories=STATUS_ORDER)
        return df

    gdp = pd.to_numeric(df["gdp_pct_change"], errors="coerce")
    co2 = pd.to_numeric(df["co2_pct_change"], errors="coerce")
    grew = gdp.notna() & co2.notna() & (gdp > 0)

    status = np.select(
        [grew & (co2 < 0), grew & (co2 < gdp), grew],
        REPORTED_STATUSES,
        default=DecouplingStatus.OTHER.value,
    )
    df["status"] = pd.Categorical(status, categories=STATUS_ORDER)
    return df


def summarize_decoupling(
    classified: pd.DataFrame,
    *,
    include_other: bool = False,
) -> pd.DataFrame:
    """
    Count countries per status, with percentages over reported countries.

    "Other" never enters the denominator; with include_other=True it is
    listed with its count and a missing share.
    """
    statuses = REPORTED_STATUSES + ([DecouplingStatus.OTHER.value] if include_other else [])
    if classified.empty:
        counts = pd.Series(0, index=statuses, dtype="int64")
    else:
        counts = (
            classified["status"].astype(str).value_counts().reindex(statuses, fill_value=0)
        )

    reported_total = int(counts.reindex(REPORTED_STATUSES).sum())
    summary = pd.DataFrame({"status": statuses, "countries": counts.to_numpy(dtype="int64")})
    if reported_total > 0:
        summary["share_pct"] = 100.0 * summary["countries"] / reported_total
    else:
        summary["share_pct"] = np.nan
    summary.loc[summary["status"] == DecouplingStatus.OTHER.value, "share_pct"] = np.nan
    return summary


def summarize_decoupling_by_bracket(classified: pd.DataFrame) -> pd.DataFrame:
    """Status counts and within-bracket shares for reported countries."""
    out_cols = ["income_bracket", "status", "countries", "share_pct"]
    if classified.empty or "income_bracket" not in classified.columns:
        return pd.DataFrame(columns=out_cols)

    reported = classified[classified["status"].astype(str).isin(REPORTED_STATUSES)]
    reported = reported.dropna(subset=["income_bracket"])
    if reported.empty:
        return pd.DataFrame(columns=out_cols)

    reported = reported.assign(
        status=pd.Categorical(reported["status"].astype(str), categories=REPORTED_STATUSES)
    )
    counts = (
        reported.groupby(["income_bracket", "status"], observed=False)
        .size()
        .rename("countries")
        .reset_index()
    )
    totals = counts.groupby("income_bracket", observed=False)["countries"].transform("sum")
    counts["share_pct"] = 100.0 * counts["countries"] / totals.where(totals > 0)
    return counts[out_cols]


__all__ = [
    "MAX_ABS_CO2_PCT_CHANGE",
    "MAX_ABS_GDP_PCT_CHANGE",
    "BASIS_COLUMNS",
    "COMPARISON_COLUMNS",
    "DecouplingStatus",
    "STATUS_ORDER",
    "REPORTED_STATUSES",
    "classify_decoupling",
    "is_plausible_change",
    "build_country_comparison",
    "drop_implausible_changes",
    "classify_countries",
    "summarize_decoupling",
    "summarize_decoupling_by_bracket",
]
