"""
Benchmark
=========

Diagnostics comparing vector-only and hybrid retrieval.
"""

from hybridrag.benchmark.comparison import (
    ComparisonReport,
    SearchComparison,
    StrategyStats,
)

__all__ = ["ComparisonReport", "SearchComparison", "StrategyStats"]
