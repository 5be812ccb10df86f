import numpy as np
import pandas as pd
import pytest

from common.errors import MissingFieldError
from transformations.panel_filter import (
    AGGREGATE_REGIONS,
    CO2_TONNES_PER_UNIT,
    INCOME_BRACKET_ORDER,
    PANEL_COLUMNS,
    assign_income_brackets,
    clean_panel,
    income_bracket_for,
)


def test_clean_panel_keeps_only_valid_positive_rows(raw_panel):
    cleaned = clean_panel(raw_panel)

    assert list(cleaned.columns) == PANEL_COLUMNS
    assert (cleaned["gdp"] > 0).all()
    assert (cleaned["co2"] > 0).all()
    assert (cleaned["population"] > 0).all()
    assert not cleaned[["gdp", "co2", "population"]].isna().any().any()
    assert not cleaned.duplicated(["country", "year"]).any()


def test_clean_panel_applies_year_window(raw_panel):
    cleaned = clean_panel(raw_panel)
    assert cleaned["year"].min() == 1990
    assert cleaned["year"].max() == 2022
    assert 1985 not in cleaned.loc[cleaned["country"] == "Alpha", "year"].tolist()

    narrowed = clean_panel(raw_panel, start_year=2000, end_year=2000)
    assert set(narrowed["year"]) == {2000}


def test_clean_panel_drops_aggregates_and_invalid_countries(raw_panel):
    cleaned = clean_panel(raw_panel)
    countries = set(cleaned["country"])

    assert "World" in AGGREGATE_REGIONS
    assert "World" not in countries
    # Eta has one missing gdp and one zero co2 row
    assert "Eta" not in countries
    assert countries == {"Alpha", "Beta", "Gamma", "Delta", "Epsilon", "Zeta"}
    assert len(cleaned) == 16


def test_clean_panel_derives_per_capita_metrics(raw_panel):
    cleaned = clean_panel(raw_panel)
    row = cleaned[(cleaned["country"] == "Alpha") & (cleaned["year"] == 2022)].iloc[0]

    assert row["gdp_per_capita"] == pytest.approx(2000.0)
    assert row["co2_per_capita"] == pytest.approx(13.0 * CO2_TONNES_PER_UNIT / 1.0e6)


def test_clean_panel_keeps_last_duplicate(raw_panel):
    dup = pd.DataFrame(
        [("Alpha", 2022, 2.2e9, 14.0, 1.0e6)],
        columns=raw_panel.columns,
    )
    cleaned = clean_panel(pd.concat([raw_panel, dup], ignore_index=True))
    alpha_2022 = cleaned[(cleaned["country"] == "Alpha") & (cleaned["year"] == 2022)]

    assert len(alpha_2022) == 1
    assert alpha_2022["gdp"].iloc[0] == pytest.approx(2.2e9)


def test_clean_panel_does_not_mutate_input(raw_panel):
    before = raw_panel.copy()
    clean_panel(raw_panel)
    pd.testing.assert_frame_equal(raw_panel, before)


def test_clean_panel_empty_input_returns_empty_schema():
    cleaned = clean_panel(pd.DataFrame())
    assert cleaned.empty
    assert list(cleaned.columns) == PANEL_COLUMNS


def test_clean_panel_everything_filtered_returns_empty(raw_panel):
    only_world = raw_panel[raw_panel["country"] == "World"]
    cleaned = clean_panel(only_world)
    assert cleaned.empty
    assert list(cleaned.columns) == PANEL_COLUMNS


def test_clean_panel_missing_column_raises(raw_panel):
    with pytest.raises(MissingFieldError) as excinfo:
        clean_panel(raw_panel.drop(columns=["population"]))
    assert excinfo.value.missing == ["population"]


@pytest.mark.parametrize(
    "gdp_per_capita, expected",
    [
        (40_000.0, "High"),
        (85_000.0, "High"),
        (39_999.99, "Upper-middle"),
        (12_000.0, "Upper-middle"),
        (11_999.0, "Lower-middle"),
        (4_000.0, "Lower-middle"),
        (3_999.0, "Low"),
        (250.0, "Low"),
        (np.nan, None),
        (None, None),
    ],
)
def test_income_bracket_for_thresholds(gdp_per_capita, expected):
    assert income_bracket_for(gdp_per_capita) == expected


def test_income_brackets_use_latest_year(panel):
    brackets = panel.groupby("country")["income_bracket"].first().astype(str).to_dict()

    assert brackets == {
        "Alpha": "Low",
        "Beta": "High",
        "Gamma": "Upper-middle",
        "Delta": "Lower-middle",
        "Epsilon": "Low",
        "Zeta": "Lower-middle",
    }
    assert list(panel["income_bracket"].cat.categories) == INCOME_BRACKET_ORDER


def test_income_bracket_is_stable_across_years():
    # Gamma crosses the High threshold only in its last year.
    raw = pd.DataFrame(
        [
            ("Gamma", 1990, 5.0e9, 1.0, 1.0e6),
            ("Gamma", 2000, 2.0e10, 1.0, 1.0e6),
            ("Gamma", 2022, 4.5e10, 1.0, 1.0e6),
        ],
        columns=["country", "year", "gdp", "co2", "population"],
    )
    bracketed = assign_income_brackets(clean_panel(raw))

    assert bracketed["income_bracket"].nunique() == 1
    assert set(bracketed["income_bracket"].astype(str)) == {"High"}
    assert len(bracketed) == 3


def test_assign_income_brackets_empty_panel():
    result = assign_income_brackets(clean_panel(pd.DataFrame()))
    assert result.empty
    assert "income_bracket" in result.columns
