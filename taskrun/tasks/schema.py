"""Task description schemas."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

import pandas as pd
import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from taskrun.errors import ConfigurationError


class TaskType(str, Enum):
    CLASSIFICATION = "Supervised Classification"
    REGRESSION = "Supervised Regression"


SUPPORTED_TASK_TYPES = {t.value for t in TaskType}

ESTIMATION_TYPES = {"crossvalidation", "holdout", "leaveoneout", "predefined"}


class EstimationProcedure(BaseModel):
    """How the data is split into training and test sets."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="crossvalidation", description="Resampling strategy")
    number_repeats: int = Field(default=1, ge=1)
    number_folds: int = Field(default=10, ge=2)
    percentage: Optional[float] = Field(
        default=None, description="Test set percentage for holdout"
    )
    stratified_sampling: bool = False
    split_seed: int = Field(
        default=0, ge=0, description="Fixed seed for generated splits"
    )
    splits_file: Optional[str] = Field(
        default=None, description="CSV with columns type,rowid,repeat,fold"
    )

    @model_validator(mode="after")
    def validate_type(self) -> "EstimationProcedure":
        if self.type not in ESTIMATION_TYPES:
            raise ValueError(f"estimation procedure type must be one of {sorted(ESTIMATION_TYPES)}")
        if self.type == "holdout":
            if self.percentage is None or not 0 < self.percentage < 100:
                raise ValueError("holdout requires a percentage between 0 and 100")
        if self.type == "predefined" and not self.splits_file:
            raise ValueError("predefined estimation requires splits_file")
        return self


class DataSetDescription(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    target_feature: str
    data_file: Optional[str] = None
    row_id_attribute: Optional[str] = None
    ignore_attribute: List[str] = Field(default_factory=list)


class TaskInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    data_set: DataSetDescription
    estimation_procedure: EstimationProcedure = EstimationProcedure()
    evaluation_measures: str = Field(
        default="", description="Comma separated measure names; empty means domain default"
    )


class Task(BaseModel):
    """A prediction problem: dataset, resampling plan and evaluation measure."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    task_id: int
    task_type: str
    input: TaskInput
    data: Optional[pd.DataFrame] = Field(default=None, exclude=True, repr=False)
    splits: Optional[pd.DataFrame] = Field(default=None, exclude=True, repr=False)

    @property
    def target_feature(self) -> str:
        return self.input.data_set.target_feature

    @property
    def declared_measures(self) -> List[str]:
        raw = self.input.evaluation_measures or ""
        return [m.strip() for m in raw.split(",") if m.strip()]

    def load_data(self) -> pd.DataFrame:
        if self.data is not None:
            return self.data
        data_file = self.input.data_set.data_file
        if not data_file:
            raise ConfigurationError(f"Task {self.task_id} has neither data nor data_file")
        return pd.read_csv(data_file)

    def load_splits(self) -> Optional[pd.DataFrame]:
        if self.splits is not None:
            return self.splits
        splits_file = self.input.estimation_procedure.splits_file
        if not splits_file:
            return None
        return pd.read_csv(splits_file)

    @staticmethod
    def from_yaml(path: str | Path) -> "Task":
        """Load a task from YAML, reading data and splits relative to the file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        base_dir = path.resolve().parent
        data_set = raw.get("input", {}).get("data_set", {})
        if data_set.get("data_file"):
            data_set["data_file"] = str(base_dir / data_set["data_file"])
        procedure = raw.get("input", {}).get("estimation_procedure", {}) or {}
        if procedure.get("splits_file"):
            procedure["splits_file"] = str(base_dir / procedure["splits_file"])

        task = Task(**raw)
        data = task.load_data()
        return task.model_copy(update={"data": data, "splits": task.load_splits()})
