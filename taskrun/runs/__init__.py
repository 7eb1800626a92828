"""Run record assembly: parameters, seeds, flows and the run assembler."""
from .schema import (
    FlowDescriptor,
    FlowParameter,
    ParameterSetting,
    RunResult,
    TaskRunResult,
    validate_scimark_vector,
)
from .parameters import make_run_parameters
from .seeds import SeedSpec, apply_seed_spec, coerce_seed, make_seed_spec
from .flow import make_flow
from .predictions import reformat_predictions
from .engine import RunAssembler, build_error_message, run_task
from .comparison import RunComparison

__all__ = [
    "FlowDescriptor",
    "FlowParameter",
    "ParameterSetting",
    "RunAssembler",
    "RunComparison",
    "RunResult",
    "SeedSpec",
    "TaskRunResult",
    "apply_seed_spec",
    "build_error_message",
    "coerce_seed",
    "make_flow",
    "make_run_parameters",
    "make_seed_spec",
    "reformat_predictions",
    "run_task",
    "validate_scimark_vector",
]
