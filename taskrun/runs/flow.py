"""Flow descriptors: learner identity across runs."""
from __future__ import annotations

import hashlib
import inspect
import json
from numbers import Integral, Real
from typing import Any

import numpy as np
import sklearn

from taskrun.registry.schema import Learner, constructor_defaults

from .parameters import serialize_value, validate_learner
from .schema import FlowDescriptor, FlowParameter


def _data_type(default: Any) -> str:
    if default is inspect.Parameter.empty or default is None:
        return "untyped"
    if isinstance(default, bool):
        return "logical"
    if isinstance(default, Integral):
        return "integer"
    if isinstance(default, Real):
        return "numeric"
    if isinstance(default, str):
        return "discrete"
    return "untyped"


def make_flow(learner: Learner) -> FlowDescriptor:
    """Describe ``learner`` without fitting it.

    The fingerprint covers the flow name, implementation class and parameter
    schema, so runs with different hyperparameter values share a flow.
    """
    learner = validate_learner(learner)
    name = f"{learner.package}.{learner.learner_id}"
    parameters = tuple(
        FlowParameter(
            name=param,
            data_type=_data_type(default),
            default_value=None
            if default is inspect.Parameter.empty
            else serialize_value(default),
        )
        for param, default in constructor_defaults(learner.estimator).items()
    )
    identity = {
        "name": name,
        "class_name": learner.class_name,
        "parameters": [p.model_dump() for p in parameters],
    }
    fingerprint = hashlib.sha1(
        json.dumps(identity, sort_keys=True).encode("utf-8")
    ).hexdigest()
    doc = inspect.getdoc(type(learner.estimator)) or ""
    return FlowDescriptor(
        name=name,
        class_name=learner.class_name,
        external_version=f"sklearn_{sklearn.__version__}",
        dependencies=f"sklearn_{sklearn.__version__}, numpy_{np.__version__}",
        description=doc.splitlines()[0] if doc else "",
        parameters=parameters,
        fingerprint=fingerprint,
    )
