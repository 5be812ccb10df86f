"""
Analysis layer
--------------

Decoupling classification over the cleaned panel, the end-to-end analysis
runner and the writer for its tabular artefacts.
"""

from .decoupling_classifier import (  # noqa: F401
    MAX_ABS_CO2_PCT_CHANGE,
    MAX_ABS_GDP_PCT_CHANGE,
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
from .decoupling_analysis import (  # noqa: F401
    DecouplingAnalysisResult,
    run_decoupling_analysis,
)
from .analysis_outputs import (  # noqa: F401
    ANALYSIS_BASE_PREFIX,
    TABLE_FILE_NAMES,
    load_latest_analysis_table,
    save_analysis_outputs,
)

__all__ = [
    "MAX_ABS_CO2_PCT_CHANGE",
    "MAX_ABS_GDP_PCT_CHANGE",
    "REPORTED_STATUSES",
    "STATUS_ORDER",
    "DecouplingStatus",
    "classify_decoupling",
    "is_plausible_change",
    "build_country_comparison",
    "drop_implausible_changes",
    "classify_countries",
    "summarize_decoupling",
    "summarize_decoupling_by_bracket",
    "DecouplingAnalysisResult",
    "run_decoupling_analysis",
    "ANALYSIS_BASE_PREFIX",
    "TABLE_FILE_NAMES",
    "save_analysis_outputs",
    "load_latest_analysis_table",
]
