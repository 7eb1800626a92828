"""Lookup of learners by string identifier."""
from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, List, Optional

from taskrun.errors import ConfigurationError

from .schema import Learner

logger = logging.getLogger(__name__)

BUILTIN_LEARNERS: Dict[str, str] = {
    "classif.rpart": "sklearn.tree.DecisionTreeClassifier",
    "classif.randomForest": "sklearn.ensemble.RandomForestClassifier",
    "classif.logreg": "sklearn.linear_model.LogisticRegression",
    "classif.kknn": "sklearn.neighbors.KNeighborsClassifier",
    "classif.naiveBayes": "sklearn.naive_bayes.GaussianNB",
    "regr.lm": "sklearn.linear_model.LinearRegression",
    "regr.ridge": "sklearn.linear_model.Ridge",
    "regr.rpart": "sklearn.tree.DecisionTreeRegressor",
    "regr.randomForest": "sklearn.ensemble.RandomForestRegressor",
    "regr.kknn": "sklearn.neighbors.KNeighborsRegressor",
}


def _import_class(import_path: str) -> Any:
    module_name, _, class_name = import_path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid import path: {import_path}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, class_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Cannot import {import_path}: {exc}") from exc


class LearnerRegistry:
    def __init__(self, learners: Optional[Dict[str, str]] = None) -> None:
        self.learners: Dict[str, str] = dict(BUILTIN_LEARNERS if learners is None else learners)

    def register(self, learner_id: str, import_path: str) -> None:
        if learner_id in self.learners:
            raise ConfigurationError(f"Learner '{learner_id}' is already registered")
        self.learners[learner_id] = import_path

    def list_learners(self) -> List[str]:
        return sorted(self.learners)

    def make_learner(self, learner_id: str, **params: Any) -> Learner:
        if learner_id not in self.learners:
            raise ConfigurationError(f"Learner {learner_id} not found")
        cls = _import_class(self.learners[learner_id])
        try:
            estimator = cls(**params)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid parameters for {learner_id}: {exc}") from exc
        logger.debug("Resolved learner %s to %s", learner_id, self.learners[learner_id])
        return Learner(learner_id=learner_id, estimator=estimator, explicit_names=tuple(params))


default_registry = LearnerRegistry()


__all__ = ["BUILTIN_LEARNERS", "LearnerRegistry", "default_registry"]
