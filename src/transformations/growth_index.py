"""
Growth indices and group aggregates over the cleaned country-year panel.

Groups are selected with `group_by`:

- None               -> a single global series (all countries summed)
- "income_bracket"   -> one series per bracket
- "country"          -> one series per country
- any other column present in the panel

Within a group, rows are ordered by year and each metric is rebased to 100
at the group's own earliest year (`base_year`); groups do not have to share
the same first year. Percent changes over the window use absolute values at
the two endpoint years, never the indices.

Carbon intensity is aggregated as a GDP-weighted mean of per-country
intensities, so that small economies do not dominate a group average.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from common.errors import MissingFieldError

AGGREGATE_METRICS = ["gdp", "co2", "population"]
INDEX_METRICS = ("gdp", "co2")

# co2 (million tonnes) * 1e9 -> kg; divided by gdp (dollars) gives kg CO2 per dollar.
CARBON_INTENSITY_SCALE = 1e9

Number = Union[int, float]


def _group_keys(group_by: Optional[str]) -> List[str]:
    return [group_by] if group_by else []


def _require_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingFieldError(missing, available=df.columns)


def pct_change(
    start: Union[Number, pd.Series],
    end: Union[Number, pd.Series],
) -> Union[float, pd.Series]:
    """
    100 * (end - start) / start, for scalars or aligned Series.

    A zero or missing start value gives NaN instead of an infinite ratio.
    """
    if np.isscalar(start) and np.isscalar(end):
        if pd.isna(start) or pd.isna(end) or start == 0:
            return float("nan")
        return 100.0 * (float(end) - float(start)) / float(start)

    start_series = pd.to_numeric(pd.Series(start), errors="coerce")
    end_series = pd.to_numeric(pd.Series(end), errors="coerce")
    denominator = start_series.where(start_series != 0)
    return 100.0 * (end_series - start_series) / denominator


def gdp_weighted_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    """
    Weighted mean of `values` using `weights` (typically GDP).

    Pairs where either side is NaN, or the weight is not positive, are
    ignored. Returns NaN when nothing is left to average.
    """
    vals = np.asarray(values, dtype="float64")
    wts = np.asarray(weights, dtype="float64")
    if vals.shape != wts.shape:
        raise ValueError(
            f"values and weights must have the same length ({vals.size} != {wts.size})"
        )

    mask = ~np.isnan(vals) & ~np.isnan(wts) & (wts > 0)
    if not mask.any():
        return float("nan")
    return float(np.average(vals[mask], weights=wts[mask]))


def aggregate_panel(
    panel: pd.DataFrame,
    group_by: Optional[str] = None,
) -> pd.DataFrame:
    """Sum gdp, co2 and population per (group, year)."""
    keys = _group_keys(group_by) + ["year"]
    if panel.empty:
        return pd.DataFrame(columns=keys + AGGREGATE_METRICS)

    _require_columns(panel, keys + AGGREGATE_METRICS)

    return (
        panel.groupby(keys, observed=True, sort=True)[AGGREGATE_METRICS]
        .sum()
        .reset_index()
    )


def index_to_base_year(
    series: pd.DataFrame,
    group_by: Optional[str] = None,
    metrics: Sequence[str] = INDEX_METRICS,
) -> pd.DataFrame:
    """
    Rebase each metric to 100 at the first year of its group.

    Adds `base_year` and one `<metric>_index` column per metric. The input
    is not modified.
    """
    keys = _group_keys(group_by)
    index_cols = [f"{m}_index" for m in metrics]
    if series.empty:
        return pd.DataFrame(columns=list(series.columns) + ["base_year"] + index_cols)

    _require_columns(series, keys + ["year", *metrics])

    df = series.sort_values(keys + ["year"]).reset_index(drop=True)

    if keys:
        grouped = df.groupby(keys, observed=True, sort=False)
        df["base_year"] = grouped["year"].transform("first")
        for metric in metrics:
            base = grouped[metric].transform("first")
            df[f"{metric}_index"] = 100.0 * (df[metric] / base.where(base != 0))
    else:
        df["base_year"] = df["year"].iloc[0]
        for metric in metrics:
            base = df[metric].iloc[0]
            df[f"{metric}_index"] = (
                100.0 * (df[metric] / base) if base != 0 else np.nan
            )

    return df


def build_index_series(
    panel: pd.DataFrame,
    group_by: Optional[str] = None,
    metrics: Sequence[str] = INDEX_METRICS,
) -> pd.DataFrame:
    """
    Aggregate the panel per group and year, then rebase to 100.

    Columns: [group_by], year, gdp, co2, population, base_year,
    gdp_index, co2_index.
    """
    return index_to_base_year(
        aggregate_panel(panel, group_by=group_by),
        group_by=group_by,
        metrics=metrics,
    )


def window_pct_change(
    series: pd.DataFrame,
    group_by: Optional[str] = None,
    metrics: Sequence[str] = INDEX_METRICS,
) -> pd.DataFrame:
    """
    Percent change of each metric between the first and last year of a group.

    Columns: [group_by], start_year, end_year, <m>_start, <m>_end,
    <m>_pct_change for each metric. A group with a single year has
    start_year == end_year and a 0% change.
    """
    keys = _group_keys(group_by)
    value_cols = ["year", *metrics]
    out_cols = keys + ["start_year", "end_year"]
    for metric in metrics:
        out_cols += [f"{metric}_start", f"{metric}_end", f"{metric}_pct_change"]

    if series.empty:
        return pd.DataFrame(columns=out_cols)

    _require_columns(series, keys + value_cols)

    df = series.sort_values(keys + ["year"]).reset_index(drop=True)
    if keys:
        grouped = df.groupby(keys, observed=True, sort=True)
        start = grouped.head(1)[keys + value_cols]
        end = grouped.tail(1)[keys + value_cols]
        merged = start.merge(end, on=keys, suffixes=("_start", "_end"))
    else:
        start = df.head(1)[value_cols].reset_index(drop=True).add_suffix("_start")
        end = df.tail(1)[value_cols].reset_index(drop=True).add_suffix("_end")
        merged = start.join(end)

    merged = merged.rename(columns={"year_start": "start_year", "year_end": "end_year"})
    for metric in metrics:
        merged[f"{metric}_pct_change"] = pct_change(
            merged[f"{metric}_start"],
            merged[f"{metric}_end"],
        )

    return merged[out_cols].reset_index(drop=True)


def weighted_carbon_intensity(
    panel: pd.DataFrame,
    group_by: Optional[str] = None,
) -> pd.DataFrame:
    """
    GDP-weighted carbon intensity (kg CO2 per dollar) per (group, year).

    carbon_intensity = sum(intensity_i * gdp_i) / sum(gdp_i) over the
    countries of the group, with intensity_i = co2_i * scale / gdp_i.
    The unweighted mean is kept alongside for comparison.

    Columns: [group_by], year, countries, gdp, carbon_intensity,
    carbon_intensity_unweighted.
    """
    keys = _group_keys(group_by) + ["year"]
    out_cols = keys + ["countries", "gdp", "carbon_intensity", "carbon_intensity_unweighted"]
    if panel.empty:
        return pd.DataFrame(columns=out_cols)

    _require_columns(panel, keys + ["country", "gdp", "co2"])

    df = panel[panel["gdp"] > 0]
    intensity = df["co2"] * CARBON_INTENSITY_SCALE / df["gdp"]
    df = df.assign(_intensity=intensity, _weighted=intensity * df["gdp"])

    result = (
        df.groupby(keys, observed=True, sort=True)
        .agg(
            countries=("country", "nunique"),
            gdp=("gdp", "sum"),
            _weighted=("_weighted", "sum"),
            carbon_intensity_unweighted=("_intensity", "mean"),
        )
        .reset_index()
    )
    result["carbon_intensity"] = result["_weighted"] / result["gdp"]
    return result[out_cols]


__all__ = [
    "AGGREGATE_METRICS",
    "INDEX_METRICS",
    "CARBON_INTENSITY_SCALE",
    "pct_change",
    "gdp_weighted_mean",
    "aggregate_panel",
    "index_to_base_year",
    "build_index_series",
    "window_pct_change",
    "weighted_carbon_intensity",
]
