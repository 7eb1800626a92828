"""Tests for task schemas and the task adapter."""
import numpy as np
import pandas as pd
import pytest

from taskrun.config import AppConfig, set_config
from taskrun.errors import ConfigurationError, UnsupportedTaskError
from taskrun.runs import RunAssembler
from taskrun.tasks import Task, TaskAdapter, TaskType, resolve_measures, resolve_task_type

from conftest import build_task


class TestResolveMeasures:
    """Tests for measure resolution."""

    def test_classification_default(self, classification_task):
        assert resolve_measures(classification_task) == ["predictive_accuracy"]

    def test_regression_default(self, regression_task):
        assert resolve_measures(regression_task) == ["root_mean_squared_error"]

    def test_declared_measures_used(self, classification_data):
        task = build_task(classification_data, measures="kappa, f_measure")
        assert resolve_measures(task) == ["kappa", "f_measure"]

    def test_extras_unioned_without_duplicates(self, classification_data):
        task = build_task(classification_data, measures="kappa")
        assert resolve_measures(task, ["predictive_accuracy", "kappa"]) == [
            "kappa",
            "predictive_accuracy",
        ]

    def test_task_is_not_modified(self, classification_task):
        resolve_measures(classification_task, ["kappa"])
        assert classification_task.input.evaluation_measures == ""

    def test_unsupported_task_type(self, classification_data):
        task = build_task(classification_data, task_type="Survival Analysis")
        with pytest.raises(UnsupportedTaskError):
            resolve_measures(task)
        with pytest.raises(UnsupportedTaskError):
            resolve_task_type(task)


class TestTaskAdapter:
    """Tests for conversion into executable tasks."""

    def test_classification_bundle(self, classification_task):
        bundle = TaskAdapter().convert(classification_task)
        assert bundle.task_type == TaskType.CLASSIFICATION
        assert "target" not in bundle.features.columns
        assert bundle.class_levels == ("neg", "pos")
        assert bundle.measure_names == ["predictive_accuracy"]
        assert bundle.resampling.size == 5
        tested = np.concatenate([test for _, test in bundle.resampling.iterations])
        assert sorted(tested.tolist()) == list(range(60))

    def test_repeated_crossvalidation_indices(self, classification_data):
        task = build_task(classification_data, number_folds=5, number_repeats=2)
        plan = TaskAdapter().convert(task).resampling
        assert plan.size == 10
        assert plan.repeat_and_fold(7) == (1, 2)

    def test_splits_are_fixed_by_task(self, classification_task):
        first = TaskAdapter().convert(classification_task).resampling
        np.random.seed(99)
        second = TaskAdapter().convert(classification_task).resampling
        for (_, a), (_, b) in zip(first.iterations, second.iterations):
            assert a.tolist() == b.tolist()

    def test_stratified_holdout(self, classification_data):
        task = build_task(
            classification_data,
            type="holdout",
            percentage=25,
            number_repeats=3,
            stratified_sampling=True,
        )
        plan = TaskAdapter().convert(task).resampling
        assert plan.size == 3
        assert plan.repeat_and_fold(2) == (2, 0)
        assert all(len(test) == 15 for _, test in plan.iterations)

    def test_predefined_splits(self, regression_data):
        rows = []
        for fold in range(2):
            for rowid in range(len(regression_data)):
                kind = "TEST" if rowid % 2 == fold else "TRAIN"
                rows.append({"type": kind, "rowid": rowid, "repeat": 0, "fold": fold})
        task = Task(
            task_id=3,
            task_type="Supervised Regression",
            input={
                "data_set": {"name": "synthetic", "target_feature": "target"},
                "estimation_procedure": {"type": "predefined", "splits_file": "unused.csv"},
            },
            data=regression_data,
            splits=pd.DataFrame(rows),
        )
        plan = TaskAdapter().convert(task).resampling
        assert plan.size == 2
        assert plan.iterations[0][1].tolist() == list(range(0, 50, 2))

    @pytest.mark.parametrize(
        "bad_row",
        [
            {"type": "TEST", "rowid": 60, "repeat": 0, "fold": 0},
            {"type": "TEST", "rowid": -1, "repeat": 0, "fold": 0},
            {"type": "TEST", "rowid": 3, "repeat": float("nan"), "fold": 0},
        ],
    )
    def test_malformed_predefined_splits_rejected(self, classification_data, recording_executor, bad_row):
        rows = [
            {"type": "TEST" if rowid >= 50 else "TRAIN", "rowid": rowid, "repeat": 0, "fold": 0}
            for rowid in range(60)
        ]
        task = Task(
            task_id=5,
            task_type="Supervised Classification",
            input={
                "data_set": {"name": "synthetic", "target_feature": "target"},
                "estimation_procedure": {"type": "predefined", "splits_file": "unused.csv"},
            },
            data=classification_data,
            splits=pd.DataFrame(rows + [bad_row]),
        )
        with pytest.raises(ConfigurationError, match="Splits"):
            TaskAdapter().convert(task)
        with pytest.raises(ConfigurationError):
            RunAssembler(executor=recording_executor).run_task(task, "classif.rpart")
        assert recording_executor.calls == []

    def test_flagged_and_categorical_attributes(self, classification_data):
        data = classification_data.assign(row=range(60), color=["red", "blue"] * 30)
        task = Task(
            task_id=4,
            task_type="Supervised Classification",
            input={
                "data_set": {
                    "name": "synthetic",
                    "target_feature": "target",
                    "row_id_attribute": "row",
                    "ignore_attribute": ["f3"],
                },
            },
            data=data,
        )
        features = TaskAdapter().convert(task).features
        assert "row" not in features.columns
        assert "f3" not in features.columns
        assert {"color_blue", "color_red"} <= set(features.columns)

        kept = TaskAdapter().convert(task, ignore_flagged_attributes=False).features
        assert "row" in kept.columns

    def test_regression_target_is_numeric(self, regression_task):
        bundle = TaskAdapter().convert(regression_task)
        assert bundle.target.dtype == float
        assert bundle.class_levels == ()

    def test_unknown_measure(self, classification_task):
        with pytest.raises(ConfigurationError, match="Unknown measure"):
            TaskAdapter().convert(classification_task, measures=["nope"])

    def test_measure_for_wrong_task_type(self, classification_task):
        with pytest.raises(ConfigurationError, match="does not apply"):
            TaskAdapter().convert(classification_task, measures=["mean_absolute_error"])

    def test_missing_target(self, classification_data):
        task = build_task(classification_data, target="label")
        with pytest.raises(ConfigurationError, match="not found"):
            TaskAdapter().convert(task)

    def test_verbosity_defaults_from_config(self):
        set_config(AppConfig(verbosity=3))
        assert TaskAdapter().verbosity == 3
        assert TaskAdapter(verbosity=0).verbosity == 0


class TestTaskSchema:
    """Tests for task loading."""

    def test_from_yaml_reads_relative_data(self, tmp_path, classification_data):
        (tmp_path / "data").mkdir()
        classification_data.to_csv(tmp_path / "data" / "synthetic.csv", index=False)
        (tmp_path / "task.yaml").write_text(
            "task_id: 9\n"
            "task_type: Supervised Classification\n"
            "input:\n"
            "  data_set:\n"
            "    name: synthetic\n"
            "    data_file: data/synthetic.csv\n"
            "    target_feature: target\n"
            "  estimation_procedure:\n"
            "    number_folds: 3\n"
        )
        task = Task.from_yaml(tmp_path / "task.yaml")
        assert task.task_id == 9
        assert len(task.data) == 60
        assert TaskAdapter().convert(task).resampling.size == 3

    def test_task_is_frozen(self, classification_task):
        with pytest.raises(Exception):
            classification_task.task_id = 5

    def test_holdout_requires_percentage(self, classification_data):
        with pytest.raises(ValueError, match="percentage"):
            build_task(classification_data, type="holdout")

    def test_declared_measures_split(self, classification_data):
        task = build_task(classification_data, measures="kappa,,recall ")
        assert task.declared_measures == ["kappa", "recall"]
