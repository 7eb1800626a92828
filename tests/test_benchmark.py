"""Tests for the scikit-learn benchmark executor."""
import numpy as np
import pytest
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from taskrun.benchmark.engine import BenchmarkResult, SklearnBenchmarkExecutor
from taskrun.registry.schema import Learner
from taskrun.tasks import TaskAdapter


class FlakyClassifier(ClassifierMixin, BaseEstimator):
    """Fails to fit or to predict, depending on ``fail_on``."""

    def __init__(self, fail_on="fit"):
        self.fail_on = fail_on

    def fit(self, X, y):
        if self.fail_on == "fit":
            raise RuntimeError("cannot fit")
        self.classes_ = np.unique(y)
        return self

    def predict(self, X):
        raise RuntimeError("cannot predict")


class FirstRowDependentClassifier(ClassifierMixin, BaseEstimator):
    """Refuses to fit unless row 0 is part of the training data."""

    def fit(self, X, y):
        if 0 not in X.index:
            raise RuntimeError("row 0 missing")
        self.classes_ = np.unique(y)
        return self

    def predict(self, X):
        return np.repeat(self.classes_[0], len(X))


class TestSklearnBenchmarkExecutor:
    """Tests for fold execution and error capture."""

    def test_classification_run(self, classification_task):
        bundle = TaskAdapter().convert(classification_task, measures=["area_under_roc_curve"])
        learner = Learner("classif.rpart", DecisionTreeClassifier(max_depth=2))
        bmr = SklearnBenchmarkExecutor().run(learner, bundle, show_info=False, models=True)

        result = bmr.first()
        assert result.task_id == classification_task.task_id
        assert len(result.predictions) == 60
        assert {"iter", "id", "truth", "response", "prob.neg", "prob.pos"} <= set(
            result.predictions.columns
        )
        assert result.train_errors == [None] * 5
        assert result.predict_errors == [None] * 5
        assert len(result.models) == 5
        assert 0.0 <= result.aggregate["predictive_accuracy"] <= 1.0
        assert list(result.measures_test.columns) == [
            "iter",
            "predictive_accuracy",
            "area_under_roc_curve",
        ]

    def test_models_not_kept(self, regression_task):
        bundle = TaskAdapter().convert(regression_task)
        learner = Learner("regr.rpart", DecisionTreeRegressor())
        result = SklearnBenchmarkExecutor().run(learner, bundle, show_info=True, models=False).first()
        assert result.models is None
        assert result.aggregate["root_mean_squared_error"] >= 0

    def test_training_errors_captured(self, classification_task):
        bundle = TaskAdapter().convert(classification_task)
        learner = Learner("classif.flaky", FlakyClassifier(fail_on="fit"))
        result = SklearnBenchmarkExecutor().run(learner, bundle, show_info=False).first()
        assert result.train_errors == ["cannot fit"] * 5
        assert result.predict_errors == [None] * 5
        assert result.predictions["response"].isna().all()
        assert np.isnan(result.aggregate["predictive_accuracy"])

    def test_aggregate_is_nan_when_any_fold_failed(self, classification_task):
        bundle = TaskAdapter().convert(classification_task)
        learner = Learner("classif.partial", FirstRowDependentClassifier())
        result = SklearnBenchmarkExecutor().run(learner, bundle, show_info=False).first()
        assert result.train_errors.count("row 0 missing") == 1
        assert result.measures_test["predictive_accuracy"].notna().sum() == 4
        assert np.isnan(result.aggregate["predictive_accuracy"])

    def test_prediction_errors_captured(self, classification_task):
        bundle = TaskAdapter().convert(classification_task)
        learner = Learner("classif.flaky", FlakyClassifier(fail_on="predict"))
        result = SklearnBenchmarkExecutor().run(learner, bundle, show_info=False).first()
        assert result.train_errors == [None] * 5
        assert result.predict_errors == ["cannot predict"] * 5


def test_empty_benchmark_result_has_no_first():
    with pytest.raises(ValueError, match="empty"):
        BenchmarkResult().first()
