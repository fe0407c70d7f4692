"""Per-feature hypothesis testing and false discovery control."""

from ktx_ml.stats.fdr import DiscoverySummary, bh_adjust, count_discoveries
from ktx_ml.stats.hypothesis import WelchRecord, records_to_frame, welch_test, welch_tests
from ktx_ml.stats.local_fdr import LocalFdrResult, estimate_local_fdr, t_to_z

__all__ = [
    "WelchRecord",
    "welch_test",
    "welch_tests",
    "records_to_frame",
    "DiscoverySummary",
    "bh_adjust",
    "count_discoveries",
    "LocalFdrResult",
    "estimate_local_fdr",
    "t_to_z",
]
