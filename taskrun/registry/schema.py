"""Learner handle wrapping a scikit-learn estimator."""
from __future__ import annotations

import inspect
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sklearn.base import clone, is_classifier, is_regressor

LearnerType = str


def constructor_defaults(estimator: Any) -> "OrderedDict[str, Any]":
    """Constructor parameters of ``estimator`` in declaration order.

    Parameters without a default map to ``inspect.Parameter.empty``.
    """
    init = type(estimator).__init__
    defaults: "OrderedDict[str, Any]" = OrderedDict()
    if init is object.__init__:
        return defaults
    for name, param in inspect.signature(init).parameters.items():
        if name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        defaults[name] = param.default
    return defaults


@dataclass(frozen=True)
class Learner:
    """A configured learning algorithm.

    ``learner_id`` follows the ``<type>.<algorithm>`` convention
    (``classif.rpart``, ``regr.lm``) and ``estimator`` is an unfitted
    scikit-learn estimator. The estimator is never fitted in place; the
    executor works on clones.

    ``explicit_names`` lists the constructor arguments the caller passed.
    When it is None the explicit set is inferred by comparing against the
    constructor defaults, which cannot see values set to their default.
    """

    learner_id: str
    estimator: Any
    package: str = "sklearn"
    explicit_names: Optional[Tuple[str, ...]] = None

    @property
    def learner_type(self) -> Optional[LearnerType]:
        if is_classifier(self.estimator):
            return "classif"
        if is_regressor(self.estimator):
            return "regr"
        return None

    @property
    def class_name(self) -> str:
        cls = type(self.estimator)
        return f"{cls.__module__}.{cls.__qualname__}"

    def hyperparameters(self) -> Dict[str, Any]:
        """Explicitly set hyperparameters, in constructor declaration order."""
        params = self.estimator.get_params(deep=False)
        explicit: Dict[str, Any] = OrderedDict()
        for name, default in constructor_defaults(self.estimator).items():
            if name not in params:
                continue
            value = params[name]
            if self.explicit_names is not None:
                if name in self.explicit_names:
                    explicit[name] = value
                continue
            # repr comparison keeps arrays and nested estimators comparable
            if default is inspect.Parameter.empty or repr(value) != repr(default):
                explicit[name] = value
        return explicit

    def new_estimator(self) -> Any:
        return clone(self.estimator)
