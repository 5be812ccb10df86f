"""
Transformations layer
---------------------

Pure functions turning the RAW OWID rows into the cleaned country-year
panel and the indexed / aggregated series derived from it.
"""

from .panel_filter import (  # noqa: F401
    AGGREGATE_REGIONS,
    CO2_TONNES_PER_UNIT,
    DEFAULT_START_YEAR,
    INCOME_BRACKET_ORDER,
    INCOME_BRACKET_THRESHOLDS,
    PANEL_COLUMNS,
    assign_income_brackets,
    build_filtered_panel,
    clean_panel,
    income_bracket_for,
)
from .growth_index import (  # noqa: F401
    CARBON_INTENSITY_SCALE,
    aggregate_panel,
    build_index_series,
    gdp_weighted_mean,
    index_to_base_year,
    pct_change,
    weighted_carbon_intensity,
    window_pct_change,
)

__all__ = [
    "AGGREGATE_REGIONS",
    "CO2_TONNES_PER_UNIT",
    "CARBON_INTENSITY_SCALE",
    "DEFAULT_START_YEAR",
    "INCOME_BRACKET_ORDER",
    "INCOME_BRACKET_THRESHOLDS",
    "PANEL_COLUMNS",
    "clean_panel",
    "income_bracket_for",
    "assign_income_brackets",
    "build_filtered_panel",
    "aggregate_panel",
    "index_to_base_year",
    "build_index_series",
    "window_pct_change",
    "pct_change",
    "gdp_weighted_mean",
    "weighted_carbon_intensity",
]
