"""Conversion of task descriptions into executable benchmark units."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import (
    LeaveOneOut,
    RepeatedKFold,
    RepeatedStratifiedKFold,
    ShuffleSplit,
    StratifiedShuffleSplit,
)

from taskrun.config import get_config
from taskrun.errors import ConfigurationError, UnsupportedTaskError

from .measures import Measure, get_measure
from .schema import SUPPORTED_TASK_TYPES, EstimationProcedure, Task, TaskType

logger = logging.getLogger(__name__)

DEFAULT_MEASURES = {
    TaskType.CLASSIFICATION: "predictive_accuracy",
    TaskType.REGRESSION: "root_mean_squared_error",
}

Split = Tuple[np.ndarray, np.ndarray]


@dataclass(frozen=True)
class ResamplingPlan:
    """Train/test index pairs, ordered repeat-major then fold."""

    desc: str
    number_repeats: int
    number_folds: int
    iterations: Tuple[Split, ...]

    @property
    def size(self) -> int:
        return len(self.iterations)

    def repeat_and_fold(self, iteration: int) -> Tuple[int, int]:
        return divmod(iteration, self.number_folds)


@dataclass(frozen=True)
class ExecutableTask:
    """A task resolved into features, target, splits and measures."""

    task_id: int
    task_type: TaskType
    features: pd.DataFrame
    target: pd.Series
    resampling: ResamplingPlan
    measures: Tuple[Measure, ...]
    class_levels: Tuple[str, ...] = ()
    verbosity: int = 1

    @property
    def is_classification(self) -> bool:
        return self.task_type == TaskType.CLASSIFICATION

    @property
    def measure_names(self) -> List[str]:
        return [m.name for m in self.measures]


def resolve_task_type(task: Task) -> TaskType:
    if task.task_type not in SUPPORTED_TASK_TYPES:
        raise UnsupportedTaskError(
            f"Task {task.task_id} has unsupported type '{task.task_type}'; "
            f"expected one of {sorted(SUPPORTED_TASK_TYPES)}"
        )
    return TaskType(task.task_type)


def resolve_measures(
    task: Task, measures: Optional[Iterable[Union[str, Measure]]] = None
) -> List[str]:
    """Effective measure names for ``task``.

    The task's declared measures are used, or the domain default when none is
    declared, followed by any extra ``measures`` not already present. The task
    itself is left untouched.
    """
    task_type = resolve_task_type(task)
    names = task.declared_measures or [DEFAULT_MEASURES[task_type]]
    for extra in measures or []:
        name = extra.name if isinstance(extra, Measure) else str(extra)
        if name not in names:
            names.append(name)
    return names


def _predefined_iterations(splits: pd.DataFrame, n_rows: int) -> Tuple[int, int, List[Split]]:
    required = {"type", "rowid", "repeat", "fold"}
    missing = required - set(splits.columns)
    if missing:
        raise ConfigurationError(f"Splits are missing columns: {sorted(missing)}")
    for column in ("rowid", "repeat", "fold"):
        values = pd.to_numeric(splits[column], errors="coerce")
        if values.isna().any() or (values < 0).any() or (values % 1 != 0).any():
            raise ConfigurationError(f"Splits column '{column}' must hold non-negative integers")
    rowids = splits["rowid"].astype(int)
    if (rowids >= n_rows).any():
        raise ConfigurationError(
            f"Splits reference row ids up to {int(rowids.max())} but the data has {n_rows} rows"
        )
    kinds = splits["type"].astype(str).str.upper()
    repeats = int(splits["repeat"].max()) + 1
    folds = int(splits["fold"].max()) + 1
    iterations: List[Split] = []
    for rep in range(repeats):
        for fold in range(folds):
            mask = (splits["repeat"] == rep) & (splits["fold"] == fold)
            train = np.sort(splits.loc[mask & (kinds == "TRAIN"), "rowid"].to_numpy(dtype=int))
            test = np.sort(splits.loc[mask & (kinds == "TEST"), "rowid"].to_numpy(dtype=int))
            if len(test) == 0:
                raise ConfigurationError(f"Split repeat={rep} fold={fold} has no test rows")
            iterations.append((train, test))
    return repeats, folds, iterations


def make_resampling_plan(
    procedure: EstimationProcedure,
    target: pd.Series,
    task_type: TaskType,
    splits: Optional[pd.DataFrame] = None,
) -> ResamplingPlan:
    """Build the resampling plan for a task.

    Generated splits depend only on ``procedure.split_seed`` so every run of
    the task sees the same folds whatever the run seed is.
    """
    n = len(target)
    placeholder = np.zeros((n, 1))
    stratify = procedure.stratified_sampling and task_type == TaskType.CLASSIFICATION

    if procedure.type == "predefined":
        if splits is None:
            raise ConfigurationError("predefined estimation procedure requires splits")
        repeats, folds, iterations = _predefined_iterations(splits, n)
        return ResamplingPlan("predefined", repeats, folds, tuple(iterations))

    if procedure.type == "crossvalidation":
        splitter_cls = RepeatedStratifiedKFold if stratify else RepeatedKFold
        splitter = splitter_cls(
            n_splits=procedure.number_folds,
            n_repeats=procedure.number_repeats,
            random_state=procedure.split_seed,
        )
        repeats, folds = procedure.number_repeats, procedure.number_folds
    elif procedure.type == "holdout":
        splitter_cls = StratifiedShuffleSplit if stratify else ShuffleSplit
        splitter = splitter_cls(
            n_splits=procedure.number_repeats,
            test_size=procedure.percentage / 100.0,
            random_state=procedure.split_seed,
        )
        repeats, folds = procedure.number_repeats, 1
    else:
        splitter = LeaveOneOut()
        repeats, folds = 1, n

    try:
        iterations = tuple(splitter.split(placeholder, target))
    except ValueError as exc:
        raise ConfigurationError(f"Cannot build {procedure.type} splits: {exc}") from exc
    return ResamplingPlan(procedure.type, repeats, folds, iterations)


class TaskAdapter:
    """Turns a :class:`Task` into an :class:`ExecutableTask`."""

    def __init__(self, verbosity: Optional[int] = None) -> None:
        self.verbosity = get_config().verbosity if verbosity is None else verbosity

    def convert(
        self,
        task: Task,
        measures: Optional[Sequence[Union[str, Measure]]] = None,
        ignore_flagged_attributes: bool = True,
    ) -> ExecutableTask:
        task_type = resolve_task_type(task)
        measure_names = resolve_measures(task, measures)
        resolved = tuple(get_measure(name, task_type.value) for name in measure_names)

        data = task.load_data()
        target_name = task.target_feature
        if target_name not in data.columns:
            raise ConfigurationError(
                f"Target feature '{target_name}' not found in data of task {task.task_id}"
            )
        target = data[target_name].reset_index(drop=True)
        features = data.drop(columns=[target_name]).reset_index(drop=True)

        if ignore_flagged_attributes:
            data_set = task.input.data_set
            flagged = list(data_set.ignore_attribute)
            if data_set.row_id_attribute:
                flagged.append(data_set.row_id_attribute)
            features = features.drop(columns=[c for c in flagged if c in features.columns])

        categorical = features.select_dtypes(include=["object", "category"]).columns
        if len(categorical):
            features = pd.get_dummies(features, columns=list(categorical), dtype=float)

        class_levels: Tuple[str, ...] = ()
        if task_type == TaskType.CLASSIFICATION:
            target = target.astype(str)
            class_levels = tuple(sorted(target.unique()))
        else:
            numeric = pd.to_numeric(target, errors="coerce")
            if numeric.isna().any() and not target.isna().any():
                raise ConfigurationError(
                    f"Target feature '{target_name}' of regression task {task.task_id} is not numeric"
                )
            target = numeric.astype(float)

        plan = make_resampling_plan(
            task.input.estimation_procedure, target, task_type, task.load_splits()
        )
        log = logger.info if self.verbosity > 1 else logger.debug
        log(
            "Task %s: %d rows, %d features, %s with %d iterations, measures %s",
            task.task_id,
            len(features),
            features.shape[1],
            plan.desc,
            plan.size,
            measure_names,
        )
        return ExecutableTask(
            task_id=task.task_id,
            task_type=task_type,
            features=features,
            target=target.rename(target_name),
            resampling=plan,
            measures=resolved,
            class_levels=class_levels,
            verbosity=self.verbosity,
        )
