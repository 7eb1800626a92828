"""Benchmark execution: fit and evaluate a learner over a resampling plan."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import numpy as np
import pandas as pd

from taskrun.registry.schema import Learner
from taskrun.tasks.adapter import ExecutableTask

logger = logging.getLogger(__name__)


@dataclass
class ResampleResult:
    """Outcome of one learner resampled on one task.

    ``train_errors`` and ``predict_errors`` hold one entry per iteration,
    ``None`` where the step succeeded.
    """

    task_id: int
    learner_id: str
    predictions: pd.DataFrame
    measures_test: pd.DataFrame
    aggregate: Dict[str, float]
    train_errors: List[Optional[str]]
    predict_errors: List[Optional[str]]
    models: Optional[List[Any]] = None
    runtime: float = 0.0


@dataclass
class BenchmarkResult:
    results: Dict[int, Dict[str, ResampleResult]] = field(default_factory=dict)

    def first(self) -> ResampleResult:
        """Result of the first learner on the first task."""
        for by_learner in self.results.values():
            for result in by_learner.values():
                return result
        raise ValueError("Benchmark result is empty")

    def aggregate_frame(self) -> pd.DataFrame:
        rows = []
        for task_id, by_learner in self.results.items():
            for learner_id, result in by_learner.items():
                rows.append({"task_id": task_id, "learner_id": learner_id, **result.aggregate})
        return pd.DataFrame(rows)


class BenchmarkExecutor(Protocol):
    def run(
        self,
        learner: Learner,
        task: ExecutableTask,
        show_info: bool = True,
        models: bool = True,
    ) -> BenchmarkResult:
        """Fit and evaluate ``learner`` on every iteration of ``task``."""


def _error_text(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


def _align_proba(estimator: Any, proba: np.ndarray, class_levels: Sequence[str]) -> np.ndarray:
    levels = list(class_levels)
    aligned = np.zeros((proba.shape[0], len(levels)))
    for j, cls in enumerate(estimator.classes_):
        aligned[:, levels.index(str(cls))] = proba[:, j]
    return aligned


class SklearnBenchmarkExecutor:
    """Resamples scikit-learn estimators, capturing failures per iteration.

    Estimators without an explicit ``random_state`` draw from NumPy's global
    RNG, so results are reproducible once the run seed has been applied.
    """

    def run(
        self,
        learner: Learner,
        task: ExecutableTask,
        show_info: bool = True,
        models: bool = True,
    ) -> BenchmarkResult:
        log = logger.info if show_info else logger.debug
        started = time.perf_counter()
        features, target = task.features, task.target
        prob_columns = [f"prob.{cls}" for cls in task.class_levels]

        frames: List[pd.DataFrame] = []
        measure_rows: List[Dict[str, float]] = []
        train_errors: List[Optional[str]] = []
        predict_errors: List[Optional[str]] = []
        fitted: List[Any] = []

        log("Task: %s, Learner: %s", task.task_id, learner.learner_id)
        for iteration, (train_idx, test_idx) in enumerate(task.resampling.iterations):
            train_error: Optional[str] = None
            predict_error: Optional[str] = None
            response: Optional[np.ndarray] = None
            proba: Optional[np.ndarray] = None

            estimator = learner.new_estimator()
            try:
                estimator.fit(features.iloc[train_idx], target.iloc[train_idx])
            except Exception as exc:
                train_error = _error_text(exc)
                estimator = None
                logger.warning("Training failed in iteration %d: %s", iteration + 1, train_error)

            if estimator is not None:
                test_features = features.iloc[test_idx]
                try:
                    response = np.asarray(estimator.predict(test_features))
                    if task.is_classification and hasattr(estimator, "predict_proba"):
                        proba = _align_proba(
                            estimator, estimator.predict_proba(test_features), task.class_levels
                        )
                except Exception as exc:
                    predict_error = _error_text(exc)
                    response, proba = None, None
                    logger.warning(
                        "Prediction failed in iteration %d: %s", iteration + 1, predict_error
                    )

            train_errors.append(train_error)
            predict_errors.append(predict_error)
            fitted.append(estimator)

            truth = target.iloc[test_idx].to_numpy()
            frame = pd.DataFrame({"iter": iteration, "id": test_idx, "truth": truth})
            if response is None:
                frame["response"] = None if task.is_classification else np.nan
            else:
                frame["response"] = response.astype(str) if task.is_classification else response
            for j, column in enumerate(prob_columns):
                frame[column] = proba[:, j] if proba is not None else np.nan
            frames.append(frame)

            row: Dict[str, float] = {"iter": iteration}
            for measure in task.measures:
                value = float("nan")
                if response is not None:
                    try:
                        value = measure.compute(truth, response, proba, task.class_levels)
                    except ValueError as exc:
                        logger.warning(
                            "Measure %s not computable in iteration %d: %s",
                            measure.name,
                            iteration + 1,
                            exc,
                        )
                row[measure.name] = value
            measure_rows.append(row)
            log(
                "[Resample] iter %d: %s",
                iteration + 1,
                ", ".join(f"{m.name}={row[m.name]:.4g}" for m in task.measures),
            )

        measures_test = pd.DataFrame(measure_rows, columns=["iter", *task.measure_names])
        aggregate = {
            name: float(measures_test[name].mean(skipna=False)) for name in task.measure_names
        }
        log(
            "Aggregated result: %s",
            ", ".join(f"{name}.test.mean={value:.4g}" for name, value in aggregate.items()),
        )

        result = ResampleResult(
            task_id=task.task_id,
            learner_id=learner.learner_id,
            predictions=pd.concat(frames, ignore_index=True),
            measures_test=measures_test,
            aggregate=aggregate,
            train_errors=train_errors,
            predict_errors=predict_errors,
            models=fitted if models else None,
            runtime=time.perf_counter() - started,
        )
        return BenchmarkResult({task.task_id: {learner.learner_id: result}})


__all__ = [
    "BenchmarkExecutor",
    "BenchmarkResult",
    "ResampleResult",
    "SklearnBenchmarkExecutor",
]
