"""Reshaping of raw resampling predictions into run prediction records."""
from __future__ import annotations

import pandas as pd

from taskrun.tasks.adapter import ExecutableTask


def reformat_predictions(raw: pd.DataFrame, task: ExecutableTask) -> pd.DataFrame:
    """Map raw executor predictions onto the run prediction layout.

    Output columns are ``repeat``, ``fold``, ``row_id``, ``prediction`` and
    ``truth``, plus ``confidence.<class>`` per class level for classification
    tasks. Indices are 0-based.
    """
    plan = task.resampling
    iterations = raw["iter"].astype(int)
    repeat_fold = [plan.repeat_and_fold(i) for i in iterations]
    out = pd.DataFrame(
        {
            "repeat": [r for r, _ in repeat_fold],
            "fold": [f for _, f in repeat_fold],
            "row_id": raw["id"].astype(int).to_numpy(),
            "prediction": raw["response"].to_numpy(),
            "truth": raw["truth"].to_numpy(),
        }
    )
    if task.is_classification:
        for cls in task.class_levels:
            column = f"prob.{cls}"
            out[f"confidence.{cls}"] = raw[column].to_numpy() if column in raw else float("nan")
    return out
