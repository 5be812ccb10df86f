"""
Panel filter: raw OWID rows -> cleaned country-year panel.

Rules, applied in order:

(a) keep years in [start_year, end_year] (end_year defaults to the latest
    year present in the input);
(b) drop rows with missing gdp, co2 or population;
(c) drop rows where any of gdp, co2, population is <= 0;
(d) drop aggregate pseudo-countries (AGGREGATE_REGIONS);
(e) derive gdp_per_capita and co2_per_capita.

Duplicated (country, year) pairs keep their last occurrence. The cleaned
panel is then enriched with one income bracket per country, computed from
gdp_per_capita at that country's latest year and shared by all of its rows.

Output schema:
    country          - string
    year             - int64
    gdp              - float
    co2              - float (million tonnes)
    population       - float
    gdp_per_capita   - float
    co2_per_capita   - float (tonnes per person)
    income_bracket   - ordered category (Low < ... < High)
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd

from common.errors import MissingFieldError

DEFAULT_START_YEAR = 1990

# OWID reports co2 in million tonnes; per-capita values are in tonnes.
CO2_TONNES_PER_UNIT = 1_000_000.0

VALUE_COLUMNS = ["gdp", "co2", "population"]
INPUT_COLUMNS = ["country", "year", *VALUE_COLUMNS]
PANEL_COLUMNS = [*INPUT_COLUMNS, "gdp_per_capita", "co2_per_capita"]

INCOME_BRACKET_ORDER = ["Low", "Lower-middle", "Upper-middle", "High"]
# Lower bounds (inclusive) of GDP per capita for each bracket above "Low".
INCOME_BRACKET_THRESHOLDS = (
    ("High", 40_000.0),
    ("Upper-middle", 12_000.0),
    ("Lower-middle", 4_000.0),
)

# Regions, income groups and other aggregates published alongside countries.
AGGREGATE_REGIONS = frozenset(
    {
        "World",
        "Africa",
        "Asia",
        "Europe",
        "North America",
        "South America",
        "Oceania",
        "Antarctica",
        "European Union (27)",
        "European Union (28)",
        "Europe (excl. EU-27)",
        "Europe (excl. EU-28)",
        "Asia (excl. China and India)",
        "North America (excl. USA)",
        "High-income countries",
        "Upper-middle-income countries",
        "Lower-middle-income countries",
        "Low-income countries",
        "Least developed countries (Jan 2024)",
        "OECD (GCP)",
        "Non-OECD (GCP)",
        "Africa (GCP)",
        "Asia (GCP)",
        "Central America (GCP)",
        "Europe (GCP)",
        "Middle East (GCP)",
        "North America (GCP)",
        "Oceania (GCP)",
        "South America (GCP)",
        "Ryukyu Islands (GCP)",
        "International aviation",
        "International shipping",
        "International transport",
        "Kuwaiti Oil Fires",
        "Kuwaiti Oil Fires (GCP)",
    }
)


def _empty_panel(with_bracket: bool = False) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "country": pd.Series(dtype="string"),
            "year": pd.Series(dtype="int64"),
            "gdp": pd.Series(dtype="float64"),
            "co2": pd.Series(dtype="float64"),
            "population": pd.Series(dtype="float64"),
            "gdp_per_capita": pd.Series(dtype="float64"),
            "co2_per_capita": pd.Series(dtype="float64"),
        }
    )
    if with_bracket:
        df["income_bracket"] = pd.Categorical(
            [],
            categories=INCOME_BRACKET_ORDER,
            ordered=True,
        )
    return df


def clean_panel(
    raw: pd.DataFrame,
    *,
    start_year: int = DEFAULT_START_YEAR,
    end_year: Optional[int] = None,
) -> pd.DataFrame:
    """
    Apply filter rules (a)-(e) and return a new, sorted DataFrame.

    An empty input, or one where nothing survives the filters, yields an
    empty DataFrame with the PANEL_COLUMNS schema. A non-empty input lacking
    one of the required columns raises MissingFieldError.
    """
    if raw.empty:
        return _empty_panel()

    missing = [col for col in INPUT_COLUMNS if col not in raw.columns]
    if missing:
        raise MissingFieldError(missing, available=raw.columns)

    df = raw[INPUT_COLUMNS].copy()
    n_input = len(df)

    df["year"] = pd.to_numeric(df["year"], errors="coerce")
    df = df.dropna(subset=["year"])
    if df.empty:
        return _empty_panel()
    df["year"] = df["year"].astype("int64")

    # (a) analysis window
    latest_year = int(df["year"].max()) if end_year is None else int(end_year)
    df = df[(df["year"] >= start_year) & (df["year"] <= latest_year)].copy()

    # (b) missing values
    for col in VALUE_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype("float64")
    df = df.dropna(subset=VALUE_COLUMNS)

    # (c) non-positive values
    df = df[(df["gdp"] > 0) & (df["co2"] > 0) & (df["population"] > 0)]

    # (d) aggregates
    df = df.dropna(subset=["country"]).astype({"country": "string"})
    df = df[~df["country"].isin(list(AGGREGATE_REGIONS))]

    if df.empty:
        print(f"[panel] No rows left after filtering {n_input} input rows")
        return _empty_panel()

    df = df.drop_duplicates(subset=["country", "year"], keep="last")

    # (e) derived per-capita metrics
    df = df.assign(
        gdp_per_capita=df["gdp"] / df["population"],
        co2_per_capita=df["co2"] * CO2_TONNES_PER_UNIT / df["population"],
    )

    df = df.sort_values(["country", "year"]).reset_index(drop=True)
    print(
        f"[panel] Kept {len(df)} of {n_input} rows for "
        f"{df['country'].nunique()} countries ({df['year'].min()}-{df['year'].max()})"
    )
    return df[PANEL_COLUMNS]


def income_bracket_for(gdp_per_capita: Optional[float]) -> Optional[str]:
    """Map a GDP per capita value to its bracket label (None for missing)."""
    if gdp_per_capita is None:
        return None
    value = float(gdp_per_capita)
    if math.isnan(value):
        return None
    for label, threshold in INCOME_BRACKET_THRESHOLDS:
        if value >= threshold:
            return label
    return "Low"


def assign_income_brackets(panel: pd.DataFrame) -> pd.DataFrame:
    """
    Attach `income_bracket` to every row of a cleaned panel.

    The bracket is computed once per country from gdp_per_capita at the
    country's maximum year and left-joined onto all of its years, so it
    never changes over time for a given country.
    """
    if panel.empty:
        return _empty_panel(with_bracket=True)

    base = panel.drop(columns=["income_bracket"], errors="ignore").reset_index(drop=True)

    latest_idx = base.groupby("country", sort=False)["year"].idxmax()
    latest = base.loc[latest_idx, ["country", "gdp_per_capita"]]

    bins = [-np.inf] + [t for _, t in reversed(INCOME_BRACKET_THRESHOLDS)] + [np.inf]
    latest = latest.assign(
        income_bracket=pd.cut(
            latest["gdp_per_capita"],
            bins=bins,
            labels=INCOME_BRACKET_ORDER,
            right=False,
            ordered=True,
        )
    )[["country", "income_bracket"]]

    return base.merge(latest, on="country", how="left", validate="many_to_one")


def build_filtered_panel(
    raw: pd.DataFrame,
    *,
    start_year: int = DEFAULT_START_YEAR,
    end_year: Optional[int] = None,
) -> pd.DataFrame:
    """clean_panel followed by assign_income_brackets."""
    return assign_income_brackets(
        clean_panel(raw, start_year=start_year, end_year=end_year)
    )


__all__ = [
    "DEFAULT_START_YEAR",
    "CO2_TONNES_PER_UNIT",
    "PANEL_COLUMNS",
    "INCOME_BRACKET_ORDER",
    "INCOME_BRACKET_THRESHOLDS",
    "AGGREGATE_REGIONS",
    "clean_panel",
    "income_bracket_for",
    "assign_income_brackets",
    "build_filtered_panel",
]
