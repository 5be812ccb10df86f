"""
End-to-end decoupling analysis over a raw OWID panel.

Chains the pure stages in order:

    clean_panel + income brackets
        -> global / income-bracket index series and window changes
        -> GDP-weighted carbon intensity (global and per bracket)
        -> country comparison -> plausibility filter -> classification
        -> status summaries

Nothing here touches the network or the filesystem; the result bundle is
handed to analysis_outputs for persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, List, Optional

import pandas as pd

from transformations.growth_index import (
    build_index_series,
    weighted_carbon_intensity,
    window_pct_change,
)
from transformations.panel_filter import DEFAULT_START_YEAR, build_filtered_panel
from .decoupling_classifier import (
    DecouplingStatus,
    build_country_comparison,
    classify_countries,
    drop_implausible_changes,
    summarize_decoupling,
    summarize_decoupling_by_bracket,
)


@dataclass
class DecouplingAnalysisResult:
    panel: pd.DataFrame
    global_index: pd.DataFrame
    bracket_index: pd.DataFrame
    global_change: pd.DataFrame
    bracket_change: pd.DataFrame
    carbon_intensity: pd.DataFrame
    bracket_carbon_intensity: pd.DataFrame
    comparison: pd.DataFrame
    summary: pd.DataFrame
    bracket_summary: pd.DataFrame

    def tables(self) -> Dict[str, pd.DataFrame]:
        """All tables keyed by attribute name, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def countries_with_status(self, status: DecouplingStatus | str) -> List[str]:
        value = status.value if isinstance(status, DecouplingStatus) else str(status)
        if self.comparison.empty:
            return []
        mask = self.comparison["status"].astype(str) == value
        return self.comparison.loc[mask, "country"].astype(str).tolist()


def run_decoupling_analysis(
    raw: pd.DataFrame,
    *,
    start_year: int = DEFAULT_START_YEAR,
    end_year: Optional[int] = None,
    basis: str = "total",
    use_available_endpoints: bool = False,
) -> DecouplingAnalysisResult:
    """
    Run every stage on `raw` and return the resulting tables.

    An empty input (or one that filters down to nothing) produces empty
    tables rather than an error.
    """
    panel = build_filtered_panel(raw, start_year=start_year, end_year=end_year)

    global_index = build_index_series(panel)
    bracket_index = build_index_series(panel, group_by="income_bracket")

    comparison = build_country_comparison(
        panel,
        start_year=start_year,
        end_year=end_year,
        basis=basis,
        use_available_endpoints=use_available_endpoints,
    )
    comparison = classify_countries(drop_implausible_changes(comparison))
    summary = summarize_decoupling(comparison)

    result = DecouplingAnalysisResult(
        panel=panel,
        global_index=global_index,
        bracket_index=bracket_index,
        global_change=window_pct_change(global_index),
        bracket_change=window_pct_change(bracket_index, group_by="income_bracket"),
        carbon_intensity=weighted_carbon_intensity(panel),
        bracket_carbon_intensity=weighted_carbon_intensity(panel, group_by="income_bracket"),
        comparison=comparison,
        summary=summary,
        bracket_summary=summarize_decoupling_by_bracket(comparison),
    )

    if summary["countries"].sum() > 0:
        parts = [
            f"{row.status}: {row.countries} ({row.share_pct:.1f}%)"
            for row in summary.itertuples(index=False)
        ]
        print(f"[analysis] {len(comparison)} countries classified; " + "; ".join(parts))
    else:
        print("[analysis] No countries could be classified")

    return result


__all__ = ["DecouplingAnalysisResult", "run_decoupling_analysis"]
