"""Run record schemas."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from taskrun.benchmark.engine import BenchmarkResult
from taskrun.errors import ValidationError

SCIMARK_LENGTH = 6


class ParameterSetting(BaseModel):
    """A named, string-serialized parameter value attached to a run."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    component: Optional[str] = Field(
        default=None, description="Flow the parameter belongs to"
    )


class FlowParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str
    default_value: Optional[str] = None


class FlowDescriptor(BaseModel):
    """Identity of a learner, independent of any single run."""

    model_config = ConfigDict(frozen=True)

    name: str
    class_name: str
    external_version: str
    dependencies: str
    description: str = ""
    parameters: Tuple[FlowParameter, ...] = ()
    fingerprint: str


def check_unique_names(settings: Iterable[ParameterSetting]) -> None:
    counts = Counter(s.name for s in settings)
    duplicated = sorted(name for name, n in counts.items() if n > 1)
    if duplicated:
        raise ValidationError(
            f"duplicate parameter name in parameter and/or seed settings: {', '.join(duplicated)}"
        )


def validate_scimark_vector(vector: Optional[Sequence[Any]]) -> Optional[Tuple[float, ...]]:
    """Check a scimark vector: six finite, non-negative numbers."""
    if vector is None:
        return None
    if isinstance(vector, (str, bytes)):
        raise ValidationError("scimark vector must be a sequence of numbers")
    values = list(vector)
    if len(values) != SCIMARK_LENGTH:
        raise ValidationError(
            f"scimark vector must have exactly {SCIMARK_LENGTH} values, got {len(values)}"
        )
    checked: List[float] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValidationError(f"scimark vector value {value!r} is not numeric")
        value = float(value)
        if not math.isfinite(value) or value < 0:
            raise ValidationError(f"scimark vector value {value} must be finite and >= 0")
        checked.append(value)
    return tuple(checked)


@dataclass(frozen=True)
class RunResult:
    """One execution of a learner on a task, ready for comparison or upload.

    ``error_message`` is None unless a fold failed to train or predict.
    ``evaluations`` is a read-only view and ``predictions`` a private copy of
    the frame it was built from.
    """

    task_id: int
    error_message: Optional[str]
    predictions: pd.DataFrame
    parameter_setting: Tuple[ParameterSetting, ...]
    flow: FlowDescriptor
    scimark_vector: Optional[Tuple[float, ...]] = None
    evaluations: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_unique_names(self.parameter_setting)
        object.__setattr__(self, "scimark_vector", validate_scimark_vector(self.scimark_vector))
        object.__setattr__(self, "evaluations", MappingProxyType(dict(self.evaluations)))
        object.__setattr__(self, "predictions", self.predictions.copy())

    def parameter_dict(self) -> Dict[str, str]:
        return {p.name: p.value for p in self.parameter_setting}

    def to_dict(self) -> Dict[str, Any]:
        predictions = self.predictions.astype(object).where(self.predictions.notna(), None)
        return {
            "task_id": self.task_id,
            "error_message": self.error_message,
            "flow": self.flow.model_dump(),
            "parameter_setting": [p.model_dump() for p in self.parameter_setting],
            "scimark_vector": list(self.scimark_vector) if self.scimark_vector else None,
            "evaluations": dict(self.evaluations),
            "predictions": predictions.to_dict(orient="records"),
        }


@dataclass(frozen=True)
class TaskRunResult:
    """The run record together with the raw benchmark result and the flow."""

    run: RunResult
    benchmark: BenchmarkResult
    flow: FlowDescriptor
