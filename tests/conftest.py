"""Shared fixtures: synthetic tasks and a recording executor."""
from typing import List, Optional

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification, make_regression

from taskrun.benchmark.engine import BenchmarkResult, ResampleResult
from taskrun.config import AppConfig, set_config
from taskrun.tasks import Task


@pytest.fixture(autouse=True)
def quiet_config():
    set_config(AppConfig(verbosity=0))
    yield
    set_config(None)


def build_task(
    data: pd.DataFrame,
    task_type: str = "Supervised Classification",
    task_id: int = 1,
    measures: str = "",
    target: str = "target",
    **procedure,
) -> Task:
    return Task(
        task_id=task_id,
        task_type=task_type,
        input={
            "data_set": {"name": "synthetic", "target_feature": target},
            "estimation_procedure": {"type": "crossvalidation", "number_folds": 5, **procedure},
            "evaluation_measures": measures,
        },
        data=data,
    )


@pytest.fixture
def classification_data() -> pd.DataFrame:
    X, y = make_classification(
        n_samples=60, n_features=4, n_informative=3, n_redundant=0, random_state=0
    )
    data = pd.DataFrame(X, columns=[f"f{i}" for i in range(4)])
    data["target"] = np.where(y == 1, "pos", "neg")
    return data


@pytest.fixture
def regression_data() -> pd.DataFrame:
    X, y = make_regression(n_samples=50, n_features=3, noise=0.5, random_state=0)
    data = pd.DataFrame(X, columns=["a", "b", "c"])
    data["target"] = y
    return data


@pytest.fixture
def classification_task(classification_data) -> Task:
    return build_task(classification_data)


@pytest.fixture
def regression_task(regression_data) -> Task:
    return build_task(regression_data, task_type="Supervised Regression", task_id=2)


class RecordingExecutor:
    """Executor double: predicts the truth and reports the configured errors."""

    def __init__(
        self,
        train_errors: Optional[List[Optional[str]]] = None,
        predict_errors: Optional[List[Optional[str]]] = None,
    ) -> None:
        self.train_errors = train_errors
        self.predict_errors = predict_errors
        self.calls = []

    def run(self, learner, task, show_info=True, models=True):
        self.calls.append({"learner": learner, "task": task, "show_info": show_info, "models": models})
        frames = []
        for iteration, (_, test_idx) in enumerate(task.resampling.iterations):
            truth = task.target.iloc[test_idx].to_numpy()
            frame = pd.DataFrame({"iter": iteration, "id": test_idx, "truth": truth, "response": truth})
            for cls in task.class_levels:
                frame[f"prob.{cls}"] = (truth == cls).astype(float)
            frames.append(frame)
        size = task.resampling.size
        result = ResampleResult(
            task_id=task.task_id,
            learner_id=learner.learner_id,
            predictions=pd.concat(frames, ignore_index=True),
            measures_test=pd.DataFrame({"iter": range(size)}),
            aggregate={name: 1.0 for name in task.measure_names},
            train_errors=self.train_errors or [None] * size,
            predict_errors=self.predict_errors or [None] * size,
        )
        return BenchmarkResult({task.task_id: {learner.learner_id: result}})


@pytest.fixture
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()
