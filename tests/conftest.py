from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from transformations.panel_filter import build_filtered_panel

# country, year, gdp, co2 (Mt), population
RAW_ROWS = [
    ("Alpha", 1985, 0.8e9, 9.0, 1.0e6),
    ("Alpha", 1990, 1.0e9, 10.0, 1.0e6),
    ("Alpha", 2000, 1.5e9, 11.0, 1.0e6),
    ("Alpha", 2022, 2.0e9, 13.0, 1.0e6),
    ("Beta", 1990, 5.0e10, 1.0, 1.0e6),
    ("Beta", 2000, 6.0e10, 1.4, 1.0e6),
    ("Beta", 2022, 7.5e10, 1.8, 1.0e6),
    ("Gamma", 1990, 2.0e10, 4.0, 1.0e6),
    ("Gamma", 2000, 2.5e10, 3.0, 1.0e6),
    ("Gamma", 2022, 3.0e10, 2.0, 1.0e6),
    ("Delta", 1990, 1.0e10, 2.0, 1.0e6),
    ("Delta", 2000, 9.5e9, 1.95, 1.0e6),
    ("Delta", 2022, 9.0e9, 1.9, 1.0e6),
    ("Epsilon", 1990, 1.0e9, 0.1, 1.0e6),
    ("Epsilon", 2022, 2.0e9, 0.5, 1.0e6),
    ("Zeta", 2000, 4.0e9, 1.0, 1.0e6),
    ("Zeta", 2022, 6.0e9, 0.8, 1.0e6),
    ("World", 1990, 1.0e12, 100.0, 5.0e9),
    ("World", 2022, 2.0e12, 150.0, 8.0e9),
    ("Eta", 1990, np.nan, 1.0, 1.0e6),
    ("Eta", 2022, 1.0e9, 0.0, 1.0e6),
]


@pytest.fixture
def raw_panel() -> pd.DataFrame:
    return pd.DataFrame(RAW_ROWS, columns=["country", "year", "gdp", "co2", "population"])


@pytest.fixture
def panel(raw_panel: pd.DataFrame) -> pd.DataFrame:
    return build_filtered_panel(raw_panel)


@pytest.fixture
def raw_csv_bytes(raw_panel: pd.DataFrame) -> bytes:
    # OWID files carry many more columns; the loader must ignore them.
    df = raw_panel.assign(iso_code="XXX", methane=1.0)
    return df.to_csv(index=False).encode("utf-8")
