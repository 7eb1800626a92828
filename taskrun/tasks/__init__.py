"""Task descriptions and their conversion into executable benchmark units."""
from .schema import (
    DataSetDescription,
    EstimationProcedure,
    Task,
    TaskInput,
    TaskType,
)
from .measures import Measure, get_measure, list_measures
from .adapter import (
    DEFAULT_MEASURES,
    ExecutableTask,
    ResamplingPlan,
    TaskAdapter,
    make_resampling_plan,
    resolve_measures,
    resolve_task_type,
)

__all__ = [
    "DEFAULT_MEASURES",
    "DataSetDescription",
    "EstimationProcedure",
    "ExecutableTask",
    "Measure",
    "ResamplingPlan",
    "Task",
    "TaskAdapter",
    "TaskInput",
    "TaskType",
    "get_measure",
    "list_measures",
    "make_resampling_plan",
    "resolve_measures",
    "resolve_task_type",
]
