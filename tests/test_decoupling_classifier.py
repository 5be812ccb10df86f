import itertools

import numpy as np
import pandas as pd
import pytest

from analysis.decoupling_classifier import (
    COMPARISON_COLUMNS,
    REPORTED_STATUSES,
    STATUS_ORDER,
    DecouplingStatus,
    build_country_comparison,
    classify_countries,
    classify_decoupling,
    drop_implausible_changes,
    is_plausible_change,
    summarize_decoupling,
    summarize_decoupling_by_bracket,
)


@pytest.mark.parametrize(
    "gdp, co2, expected",
    [
        # Estonia
        (47.8, -67.6, DecouplingStatus.ABSOLUTE),
        # Romania: a large GDP rise does not matter once co2 fell
        (294.5, -58.5, DecouplingStatus.ABSOLUTE),
        (100.0, 40.0, DecouplingStatus.RELATIVE),
        (50.0, 0.0, DecouplingStatus.RELATIVE),
        (50.0, 80.0, DecouplingStatus.NO_DECOUPLING),
        (50.0, 50.0, DecouplingStatus.NO_DECOUPLING),
        (-10.0, -5.0, DecouplingStatus.OTHER),
        (0.0, -20.0, DecouplingStatus.OTHER),
        (-3.0, 12.0, DecouplingStatus.OTHER),
        (np.nan, -5.0, DecouplingStatus.OTHER),
        (10.0, np.nan, DecouplingStatus.OTHER),
    ],
)
def test_classify_decoupling_rules(gdp, co2, expected):
    assert classify_decoupling(gdp, co2) is expected


def test_status_values_are_report_labels():
    assert DecouplingStatus.ABSOLUTE == "Absolute Decoupling"
    assert STATUS_ORDER == [
        "Absolute Decoupling",
        "Relative Decoupling",
        "No Decoupling",
        "Other",
    ]


def test_vectorised_classification_matches_scalar_rule():
    values = [-50.0, -1.0, 0.0, 0.5, 10.0, 40.0, 120.0]
    pairs = list(itertools.product(values, values))
    comparison = pd.DataFrame(pairs, columns=["gdp_pct_change", "co2_pct_change"])

    classified = classify_countries(comparison)

    expected = [classify_decoupling(g, c).value for g, c in pairs]
    assert classified["status"].astype(str).tolist() == expected


def test_classification_is_order_independent():
    comparison = pd.DataFrame(
        {
            "country": ["A", "B", "C", "D"],
            "gdp_pct_change": [47.8, 100.0, 50.0, -10.0],
            "co2_pct_change": [-67.6, 40.0, 80.0, -5.0],
        }
    )
    forward = classify_countries(comparison).set_index("country")["status"]
    backward = classify_countries(comparison.iloc[::-1]).set_index("country")["status"]

    assert forward.sort_index().astype(str).tolist() == backward.sort_index().astype(str).tolist()


@pytest.mark.parametrize(
    "gdp, co2, expected",
    [
        (50.0, 299.9, True),
        (50.0, 300.0, False),
        (50.0, -300.0, False),
        (499.0, 10.0, True),
        (500.0, 10.0, False),
        (-500.0, 10.0, False),
        (np.nan, 10.0, False),
    ],
)
def test_is_plausible_change_bounds(gdp, co2, expected):
    assert is_plausible_change(gdp, co2) is expected


def test_build_country_comparison_requires_both_endpoints(panel):
    comparison = build_country_comparison(panel)

    assert list(comparison.columns) == COMPARISON_COLUMNS
    # Zeta has no 1990 observation
    assert set(comparison["country"]) == {"Alpha", "Beta", "Gamma", "Delta", "Epsilon"}
    assert (comparison["start_year"] == 1990).all()
    assert (comparison["end_year"] == 2022).all()

    alpha = comparison.set_index("country").loc["Alpha"]
    assert alpha["gdp_start"] == pytest.approx(1.0e9)
    assert alpha["gdp_end"] == pytest.approx(2.0e9)
    assert alpha["gdp_pct_change"] == pytest.approx(100.0)
    assert alpha["co2_pct_change"] == pytest.approx(30.0)
    assert str(alpha["income_bracket"]) == "Low"


def test_build_country_comparison_available_endpoints(panel):
    comparison = build_country_comparison(panel, use_available_endpoints=True).set_index("country")

    assert "Zeta" in comparison.index
    assert comparison.loc["Zeta", "start_year"] == 2000
    assert comparison.loc["Zeta", "gdp_pct_change"] == pytest.approx(50.0)
    assert comparison.loc["Zeta", "co2_pct_change"] == pytest.approx(-20.0)


def test_available_endpoints_need_two_years():
    panel = pd.DataFrame(
        {
            "country": ["Solo", "Pair", "Pair"],
            "year": [2000, 2000, 2010],
            "gdp": [1.0, 1.0, 2.0],
            "co2": [1.0, 1.0, 0.5],
            "population": [1.0, 1.0, 1.0],
        }
    )
    comparison = build_country_comparison(panel, use_available_endpoints=True)
    assert comparison["country"].tolist() == ["Pair"]


def test_build_country_comparison_per_capita_basis(panel):
    comparison = build_country_comparison(panel, basis="per_capita").set_index("country")

    # Constant population: per-capita change equals total change.
    assert comparison.loc["Gamma", "gdp_pct_change"] == pytest.approx(50.0)
    assert comparison.loc["Gamma", "co2_pct_change"] == pytest.approx(-50.0)
    assert comparison.loc["Gamma", "gdp_end"] == pytest.approx(30_000.0)


def test_build_country_comparison_rejects_unknown_basis(panel):
    with pytest.raises(ValueError):
        build_country_comparison(panel, basis="ppp")


def test_build_country_comparison_empty_and_degenerate_windows(panel):
    assert build_country_comparison(panel.iloc[0:0]).empty
    assert build_country_comparison(panel, start_year=2022, end_year=2022).empty


def test_drop_implausible_changes_removes_outliers(panel, capsys):
    comparison = build_country_comparison(panel)
    kept = drop_implausible_changes(comparison)

    assert "Epsilon" not in set(kept["country"])
    assert len(kept) == len(comparison) - 1
    assert "Epsilon" in capsys.readouterr().out


def test_classify_countries_on_fixture(panel):
    classified = classify_countries(drop_implausible_changes(build_country_comparison(panel)))
    statuses = classified.set_index("country")["status"].astype(str).to_dict()

    assert statuses == {
        "Alpha": "Relative Decoupling",
        "Beta": "No Decoupling",
        "Gamma": "Absolute Decoupling",
        "Delta": "Other",
    }


def test_classify_countries_empty():
    classified = classify_countries(pd.DataFrame(columns=COMPARISON_COLUMNS))
    assert classified.empty
    assert "status" in classified.columns


def test_summarize_decoupling_excludes_other_from_percentages(panel):
    classified = classify_countries(drop_implausible_changes(build_country_comparison(panel)))
    summary = summarize_decoupling(classified)

    assert summary["status"].tolist() == REPORTED_STATUSES
    assert summary["countries"].tolist() == [1, 1, 1]
    assert summary["share_pct"].sum() == pytest.approx(100.0)

    with_other = summarize_decoupling(classified, include_other=True).set_index("status")
    assert with_other.loc["Other", "countries"] == 1
    assert np.isnan(with_other.loc["Other", "share_pct"])


def test_summarize_decoupling_empty():
    summary = summarize_decoupling(pd.DataFrame(columns=COMPARISON_COLUMNS + ["status"]))
    assert summary["countries"].sum() == 0
    assert summary["share_pct"].isna().all()


def test_summarize_decoupling_by_bracket(panel):
    classified = classify_countries(drop_implausible_changes(build_country_comparison(panel)))
    by_bracket = summarize_decoupling_by_bracket(classified)
    by_bracket = by_bracket.assign(income_bracket=by_bracket["income_bracket"].astype(str))

    high = by_bracket[by_bracket["income_bracket"] == "High"].set_index("status")
    assert high.loc["No Decoupling", "countries"] == 1
    assert high.loc["No Decoupling", "share_pct"] == pytest.approx(100.0)
    assert high.loc["Absolute Decoupling", "countries"] == 0
    # Delta (Lower-middle) is "Other" and therefore not counted
    lower_middle = by_bracket[by_bracket["income_bracket"] == "Lower-middle"]
    assert lower_middle["countries"].sum() == 0
