"""DuckDB-backed local store for run records."""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import duckdb
import pandas as pd

from taskrun.runs.schema import TaskRunResult

from .schema import create_schema

logger = logging.getLogger(__name__)


def _as_text(value: object) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)


class RunStore:
    def __init__(self, db_path: str | Path, read_only: bool = False) -> None:
        self.db_path = Path(db_path)
        self.read_only = read_only
        if not read_only:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection = duckdb.connect(str(self.db_path), read_only=read_only)
        if not read_only:
            create_schema(self.connection)
        logger.debug("Connected to DuckDB at %s (read_only=%s)", self.db_path, read_only)

    def save_run(self, result: TaskRunResult, notes: str = "") -> str:
        """Persist a run record and return its generated run id."""
        if self.read_only:
            raise RuntimeError("Cannot insert into read-only database")
        run = result.run
        run_id = str(uuid.uuid4())

        self.connection.execute(
            "INSERT INTO runs VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                run_id,
                run.task_id,
                result.flow.name,
                result.flow.fingerprint,
                run.error_message,
                json.dumps(list(run.scimark_vector)) if run.scimark_vector else None,
                datetime.now(timezone.utc).replace(tzinfo=None),
                notes,
            ],
        )

        params_df = pd.DataFrame(
            [
                {"run_id": run_id, "name": p.name, "value": p.value, "component": p.component}
                for p in run.parameter_setting
            ],
            columns=["run_id", "name", "value", "component"],
        )
        if not params_df.empty:
            self.connection.execute("INSERT INTO run_parameters SELECT * FROM params_df")

        predictions = run.predictions
        confidence_columns = [c for c in predictions.columns if c.startswith("confidence.")]
        predictions_df = pd.DataFrame(
            {
                "run_id": run_id,
                "repeat": predictions["repeat"].astype(int),
                "fold": predictions["fold"].astype(int),
                "row_id": predictions["row_id"].astype(int),
                "prediction": [_as_text(v) for v in predictions["prediction"]],
                "truth": [_as_text(v) for v in predictions["truth"]],
                "confidence_json": [
                    json.dumps({c[len("confidence."):]: _nan_to_none(row[c]) for c in confidence_columns})
                    if confidence_columns
                    else None
                    for _, row in predictions.iterrows()
                ],
            }
        )
        if not predictions_df.empty:
            logger.debug("Inserting %d predictions for run %s", len(predictions_df), run_id)
            self.connection.execute("INSERT INTO run_predictions SELECT * FROM predictions_df")

        evaluations_df = pd.DataFrame(
            [
                {"run_id": run_id, "measure": name, "value": value}
                for name, value in run.evaluations.items()
            ],
            columns=["run_id", "measure", "value"],
        )
        if not evaluations_df.empty:
            self.connection.execute("INSERT INTO run_evaluations SELECT * FROM evaluations_df")

        logger.info("Stored run %s for task %s (%s)", run_id, run.task_id, result.flow.name)
        return run_id

    def fetch_runs(self, task_id: Optional[int] = None) -> pd.DataFrame:
        query = "SELECT * FROM runs"
        params = []
        if task_id is not None:
            query += " WHERE task_id = ?"
            params.append(task_id)
        query += " ORDER BY created_at"
        return self.connection.execute(query, params).fetch_df()

    def fetch_parameters(self, run_id: str) -> pd.DataFrame:
        return self.connection.execute(
            "SELECT name, value, component FROM run_parameters WHERE run_id = ? ORDER BY name",
            [run_id],
        ).fetch_df()

    def fetch_predictions(self, run_id: str) -> pd.DataFrame:
        return self.connection.execute(
            """
            SELECT "repeat", fold, row_id, prediction, truth, confidence_json
            FROM run_predictions
            WHERE run_id = ?
            ORDER BY "repeat", fold, row_id
            """,
            [run_id],
        ).fetch_df()

    def fetch_evaluations(self) -> pd.DataFrame:
        """Evaluations joined with run metadata, one row per run and measure."""
        return self.connection.execute(
            """
            SELECT e.run_id, r.task_id, r.flow_name, e.measure, e.value
            FROM run_evaluations e
            JOIN runs r ON r.run_id = e.run_id
            ORDER BY r.created_at, e.measure
            """
        ).fetch_df()

    def close(self) -> None:  # pragma: no cover - passthrough
        self.connection.close()


def _nan_to_none(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)
