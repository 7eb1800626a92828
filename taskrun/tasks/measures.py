"""Evaluation measures addressed by their repository names."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

import numpy as np
from sklearn import metrics

from taskrun.errors import ConfigurationError

from .schema import TaskType

CLASSIF = frozenset({TaskType.CLASSIFICATION.value})
REGR = frozenset({TaskType.REGRESSION.value})


@dataclass(frozen=True)
class Measure:
    name: str
    func: Callable[..., float]
    task_types: FrozenSet[str]
    minimize: bool = False
    needs_proba: bool = False

    def compute(
        self,
        truth: np.ndarray,
        response: np.ndarray,
        proba: Optional[np.ndarray] = None,
        labels: Optional[Sequence] = None,
    ) -> float:
        if self.needs_proba:
            if proba is None:
                return float("nan")
            return float(self.func(truth, proba, labels))
        return float(self.func(truth, response))


def _auc(truth: np.ndarray, proba: np.ndarray, labels: Sequence) -> float:
    labels = list(labels)
    if len(labels) == 2:
        return metrics.roc_auc_score(truth == labels[1], proba[:, 1])
    return metrics.roc_auc_score(
        truth, proba, multi_class="ovr", average="weighted", labels=labels
    )


def _rmse(truth: np.ndarray, response: np.ndarray) -> float:
    return float(np.sqrt(metrics.mean_squared_error(truth, response)))


MEASURES: Dict[str, Measure] = {
    m.name: m
    for m in [
        Measure("predictive_accuracy", metrics.accuracy_score, CLASSIF),
        Measure("kappa", metrics.cohen_kappa_score, CLASSIF),
        Measure(
            "f_measure",
            lambda t, r: metrics.f1_score(t, r, average="weighted", zero_division=0),
            CLASSIF,
        ),
        Measure(
            "precision",
            lambda t, r: metrics.precision_score(t, r, average="weighted", zero_division=0),
            CLASSIF,
        ),
        Measure(
            "recall",
            lambda t, r: metrics.recall_score(t, r, average="weighted", zero_division=0),
            CLASSIF,
        ),
        Measure("area_under_roc_curve", _auc, CLASSIF, needs_proba=True),
        Measure("mean_absolute_error", metrics.mean_absolute_error, REGR, minimize=True),
        Measure("mean_squared_error", metrics.mean_squared_error, REGR, minimize=True),
        Measure("root_mean_squared_error", _rmse, REGR, minimize=True),
        Measure("r_squared", metrics.r2_score, REGR),
    ]
}


def get_measure(name: str, task_type: Optional[str] = None) -> Measure:
    if name not in MEASURES:
        raise ConfigurationError(
            f"Unknown measure '{name}'. Known measures: {sorted(MEASURES)}"
        )
    measure = MEASURES[name]
    if task_type is not None and task_type not in measure.task_types:
        raise ConfigurationError(f"Measure '{name}' does not apply to {task_type}")
    return measure


def list_measures(task_type: Optional[str] = None) -> List[str]:
    return sorted(
        name for name, m in MEASURES.items() if task_type is None or task_type in m.task_types
    )
