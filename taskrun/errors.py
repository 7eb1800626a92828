"""Exception types raised by the run pipeline."""
from __future__ import annotations


class TaskRunError(Exception):
    """Base class for all taskrun errors."""


class ConfigurationError(TaskRunError, ValueError):
    """Raised when a learner or task has the wrong shape."""


class ValidationError(TaskRunError, ValueError):
    """Raised when seeds, scimark vectors or parameter settings are invalid."""


class UnsupportedTaskError(TaskRunError):
    """Raised for task types other than supervised classification/regression."""


__all__ = [
    "ConfigurationError",
    "TaskRunError",
    "UnsupportedTaskError",
    "ValidationError",
]
