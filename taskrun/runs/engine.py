"""Run a learner on a task and assemble the resulting run record."""
from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from taskrun.benchmark.engine import BenchmarkExecutor, SklearnBenchmarkExecutor
from taskrun.config import AppConfig, get_config
from taskrun.errors import ConfigurationError, ValidationError
from taskrun.registry.discovery import LearnerRegistry, default_registry
from taskrun.registry.schema import Learner
from taskrun.tasks.adapter import TaskAdapter, resolve_measures, resolve_task_type
from taskrun.tasks.measures import Measure
from taskrun.tasks.schema import Task, TaskType

from .flow import make_flow
from .parameters import make_run_parameters, validate_learner
from .predictions import reformat_predictions
from .schema import (
    ParameterSetting,
    RunResult,
    TaskRunResult,
    check_unique_names,
    validate_scimark_vector,
)
from .seeds import SEED_LOCK, SeedSpec, apply_seed_spec, coerce_seed

logger = logging.getLogger(__name__)

TRAIN_ERROR_PREFIX = "Error in training the model: \n "
PREDICT_ERROR_PREFIX = "Error in making predictions: \n "

LEARNER_TYPES = {TaskType.CLASSIFICATION: "classif", TaskType.REGRESSION: "regr"}


def _unique_messages(messages: Iterable[Optional[str]]) -> List[str]:
    unique: List[str] = []
    for message in messages:
        if message is None or (isinstance(message, float) and math.isnan(message)):
            continue
        if message not in unique:
            unique.append(message)
    return unique


def build_error_message(
    train_errors: Iterable[Optional[str]], predict_errors: Iterable[Optional[str]]
) -> Optional[str]:
    """Combine per-fold errors into a run error message.

    Unique training errors come first, then unique prediction errors. Returns
    None when no fold reported an error.
    """
    parts = []
    train = _unique_messages(train_errors)
    if train:
        parts.append(TRAIN_ERROR_PREFIX + "\n ".join(train))
    predict = _unique_messages(predict_errors)
    if predict:
        parts.append(PREDICT_ERROR_PREFIX + "\n ".join(predict))
    return "".join(parts) or None


def merge_parameter_settings(
    parameters: Sequence[ParameterSetting], seed_spec: SeedSpec, component: Optional[str] = None
) -> Tuple[ParameterSetting, ...]:
    merged = tuple(p.model_copy(update={"component": component}) for p in parameters)
    merged += seed_spec.with_component(component).parameters
    check_unique_names(merged)
    return merged


class RunAssembler:
    """Runs one learner against one task and assembles the run record."""

    def __init__(
        self,
        executor: Optional[BenchmarkExecutor] = None,
        registry: Optional[LearnerRegistry] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.executor = executor or SklearnBenchmarkExecutor()
        self.registry = registry or default_registry
        self._config = config

    @property
    def config(self) -> AppConfig:
        return self._config or get_config()

    def resolve_learner(self, learner: Union[str, Learner]) -> Learner:
        if isinstance(learner, str):
            return self.registry.make_learner(learner)
        return validate_learner(learner)

    def run_task(
        self,
        task: Task,
        learner: Union[str, Learner],
        measures: Optional[Sequence[Union[str, Measure]]] = None,
        verbosity: Optional[int] = None,
        seed: Union[int, SeedSpec] = 1,
        scimark_vector: Optional[Sequence[float]] = None,
        models: bool = True,
        **kwargs: Any,
    ) -> TaskRunResult:
        """Run ``learner`` on ``task``.

        Args:
            task: Task to run. It is never modified.
            learner: Learner id known to the registry, or a resolved Learner.
            measures: Extra measures computed alongside the task's own.
            verbosity: Progress level; defaults to the process configuration.
            seed: Non-negative integer seed or a prebuilt SeedSpec.
            scimark_vector: Optional six hardware benchmark covariates.
            models: Keep the fitted models in the benchmark result.
            **kwargs: Passed to :meth:`TaskAdapter.convert`.

        Returns:
            TaskRunResult with the run record, the benchmark result and the flow.

        Failures while fitting or predicting inside a fold do not raise; they
        are reported in ``run.error_message``.
        """
        if not isinstance(task, Task):
            raise ConfigurationError(f"task must be a Task, got {type(task).__name__}")
        task_type = resolve_task_type(task)
        learner = self.resolve_learner(learner)
        if learner.learner_type != LEARNER_TYPES[task_type]:
            raise ConfigurationError(
                f"Learner {learner.learner_id} cannot be used for {task_type.value}"
            )

        seed_spec = coerce_seed(seed, prefix=self.config.seed_prefix)
        scimark = validate_scimark_vector(scimark_vector)

        parameters = make_run_parameters(learner)
        if verbosity is None:
            verbosity = self.config.verbosity
        if isinstance(verbosity, bool) or not isinstance(verbosity, int) or verbosity < 0:
            raise ValidationError(f"verbosity must be a non-negative integer, got {verbosity!r}")
        show_info = verbosity > 0

        measure_names = resolve_measures(task, measures)
        flow = make_flow(learner)
        parameter_setting = merge_parameter_settings(parameters, seed_spec, component=flow.name)
        executable = TaskAdapter(verbosity=verbosity).convert(task, measures=measure_names, **kwargs)

        logger.info(
            "Running %s on task %s with seed %d", learner.learner_id, task.task_id, seed_spec.seed
        )
        with SEED_LOCK:
            apply_seed_spec(seed_spec)
            benchmark = self.executor.run(
                learner, executable, show_info=show_info, models=models
            )
        result = benchmark.first()

        error_message = build_error_message(result.train_errors, result.predict_errors)
        if error_message:
            logger.warning("Run of %s on task %s had errors", learner.learner_id, task.task_id)

        run = RunResult(
            task_id=task.task_id,
            error_message=error_message,
            predictions=reformat_predictions(result.predictions, executable),
            parameter_setting=parameter_setting,
            flow=flow,
            scimark_vector=scimark,
            evaluations=dict(result.aggregate),
        )
        logger.info("Finished %s on task %s: %s", learner.learner_id, task.task_id, run.evaluations)
        return TaskRunResult(run=run, benchmark=benchmark, flow=flow)


def run_task(
    task: Task,
    learner: Union[str, Learner],
    measures: Optional[Sequence[Union[str, Measure]]] = None,
    verbosity: Optional[int] = None,
    seed: Union[int, SeedSpec] = 1,
    scimark_vector: Optional[Sequence[float]] = None,
    models: bool = True,
    executor: Optional[BenchmarkExecutor] = None,
    **kwargs: Any,
) -> TaskRunResult:
    """Run ``learner`` on ``task`` with a default :class:`RunAssembler`."""
    return RunAssembler(executor=executor).run_task(
        task,
        learner,
        measures=measures,
        verbosity=verbosity,
        seed=seed,
        scimark_vector=scimark_vector,
        models=models,
        **kwargs,
    )
