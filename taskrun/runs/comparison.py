"""Comparison utilities for stored runs."""
from __future__ import annotations

import logging
from typing import List, Optional

import pandas as pd

from taskrun.tasks.measures import MEASURES

logger = logging.getLogger(__name__)


def _lower_is_better(measure: str) -> bool:
    return measure in MEASURES and MEASURES[measure].minimize


class RunComparison:
    """Ranking helpers over a wide evaluations frame (one column per measure)."""

    @staticmethod
    def evaluations_wide(evaluations: pd.DataFrame) -> pd.DataFrame:
        """Pivot long ``run_id, measure, value`` rows into one row per run."""
        if evaluations.empty:
            return pd.DataFrame(columns=["run_id"])
        wide = evaluations.pivot_table(
            index="run_id", columns="measure", values="value", aggfunc="first"
        )
        wide.columns.name = None
        return wide.reset_index()

    @staticmethod
    def rank_by_measure(
        comparison_df: pd.DataFrame,
        measure: str,
        ascending: Optional[bool] = None,
    ) -> pd.DataFrame:
        """Rank runs by a measure.

        Args:
            comparison_df: Frame with one column per measure
            measure: Measure to rank by (e.g., 'predictive_accuracy')
            ascending: Rank direction; defaults to ascending for error measures

        Returns:
            Sorted DataFrame with rank column
        """
        if measure not in comparison_df.columns:
            raise ValueError(f"Measure '{measure}' not found in comparison data")
        if ascending is None:
            ascending = _lower_is_better(measure)

        result = comparison_df.copy()
        result["rank"] = result[measure].rank(ascending=ascending, na_option="bottom")
        return result.sort_values("rank")

    @staticmethod
    def get_top_n(
        comparison_df: pd.DataFrame,
        measure: str,
        n: int = 5,
        ascending: Optional[bool] = None,
    ) -> pd.DataFrame:
        ranked = RunComparison.rank_by_measure(comparison_df, measure, ascending)
        return ranked.head(n)

    @staticmethod
    def generate_leaderboard(
        comparison_df: pd.DataFrame,
        primary_measure: str,
        secondary_measures: Optional[List[str]] = None,
        id_columns: Optional[List[str]] = None,
    ) -> pd.DataFrame:
        """Leaderboard sorted by the primary measure, best first."""
        id_columns = id_columns or ["run_id", "flow_name", "task_id"]
        secondary_measures = secondary_measures or []
        columns = [c for c in id_columns if c in comparison_df.columns] + [primary_measure] + [
            m for m in secondary_measures if m in comparison_df.columns and m != primary_measure
        ]
        if primary_measure not in comparison_df.columns:
            raise ValueError(f"Measure '{primary_measure}' not found in comparison data")

        leaderboard = comparison_df[columns].sort_values(
            primary_measure, ascending=_lower_is_better(primary_measure), na_position="last"
        )
        leaderboard.insert(0, "rank", range(1, len(leaderboard) + 1))
        logger.debug("Leaderboard by %s with %d runs", primary_measure, len(leaderboard))
        return leaderboard
