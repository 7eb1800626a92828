"""DuckDB schema for the local run store."""
from __future__ import annotations

from pathlib import Path

import duckdb

DDL = [
    """
    CREATE TABLE IF NOT EXISTS runs (
        run_id VARCHAR PRIMARY KEY,
        task_id INTEGER,
        flow_name VARCHAR,
        flow_fingerprint VARCHAR,
        error_message VARCHAR,
        scimark_json VARCHAR,
        created_at TIMESTAMP,
        notes VARCHAR
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS run_parameters (
        run_id VARCHAR,
        name VARCHAR,
        value VARCHAR,
        component VARCHAR,
        PRIMARY KEY (run_id, name)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS run_predictions (
        run_id VARCHAR,
        "repeat" INTEGER,
        fold INTEGER,
        row_id INTEGER,
        prediction VARCHAR,
        truth VARCHAR,
        confidence_json VARCHAR
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS run_evaluations (
        run_id VARCHAR,
        measure VARCHAR,
        value DOUBLE,
        PRIMARY KEY (run_id, measure)
    );
    """,
]


def create_schema(connection: duckdb.DuckDBPyConnection) -> None:
    for stmt in DDL:
        connection.execute(stmt)


def create_run_store_schema(db_path: str | Path) -> None:
    """Initialize the run store schema in a DuckDB file.

    Args:
        db_path: Path to the DuckDB file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    con = duckdb.connect(str(db_path))
    create_schema(con)
    con.close()
