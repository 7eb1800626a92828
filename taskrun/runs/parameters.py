"""Extraction of run parameter settings from a learner."""
from __future__ import annotations

import json
from typing import Any, List, Optional

from taskrun.errors import ConfigurationError
from taskrun.registry.schema import Learner

from .schema import ParameterSetting


def validate_learner(learner: Any) -> Learner:
    if not isinstance(learner, Learner):
        raise ConfigurationError(
            f"learner must be a learner id or a Learner, got {type(learner).__name__}"
        )
    if not isinstance(learner.learner_id, str) or not learner.learner_id:
        raise ConfigurationError("learner has no id")
    if not hasattr(learner.estimator, "get_params") or not hasattr(learner.estimator, "fit"):
        raise ConfigurationError(
            f"learner {learner.learner_id} does not wrap an estimator with get_params/fit"
        )
    return learner


def serialize_value(value: Any) -> str:
    """String form of a hyperparameter value."""
    if isinstance(value, str):
        return value
    if hasattr(value, "get_params"):
        cls = type(value)
        return f"{cls.__module__}.{cls.__qualname__}"
    if callable(value):
        return f"{getattr(value, '__module__', '')}.{getattr(value, '__qualname__', repr(value))}"
    if hasattr(value, "tolist"):
        value = value.tolist()
    try:
        return json.dumps(value)
    except TypeError:
        return repr(value)


def make_run_parameters(learner: Learner, component: Optional[str] = None) -> List[ParameterSetting]:
    """One setting per explicitly set hyperparameter, in declaration order."""
    learner = validate_learner(learner)
    return [
        ParameterSetting(name=name, value=serialize_value(value), component=component)
        for name, value in learner.hyperparameters().items()
    ]
