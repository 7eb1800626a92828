"""CLI entrypoint for taskrun."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from taskrun.config import configure_logging, load_app_config, set_config
from taskrun.errors import TaskRunError
from taskrun.registry.discovery import default_registry
from taskrun.runs import RunAssembler, RunComparison
from taskrun.storage.duckdb_adapter import RunStore
from taskrun.tasks import Task

app = typer.Typer(help="taskrun CLI")
console = Console()


def _split(value: Optional[str]) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()] if value else []


@app.command()
def list_learners() -> None:
    for learner_id in default_registry.list_learners():
        print(f"[bold]{learner_id}[/bold] - {default_registry.learners[learner_id]}")


@app.command()
def run_task(
    task_path: Path = typer.Argument(..., help="Path to task YAML"),
    learner: str = typer.Option(..., help="Learner identifier (see list-learners)"),
    seed: int = typer.Option(1, help="Run seed"),
    verbosity: Optional[int] = typer.Option(None, help="Overrides the configured verbosity"),
    measures: Optional[str] = typer.Option(None, help="Comma separated extra measures"),
    scimark: Optional[str] = typer.Option(None, help="Comma separated scimark vector (6 values)"),
    store: bool = typer.Option(True, help="Save the run to the local DuckDB store"),
    config_path: str = "config/base.yaml",
) -> None:
    """Run a learner on a task and print its evaluation.

    Example:
        taskrun run-task examples/tasks/blobs_classification.yaml --learner classif.rpart --seed 7
    """
    if not task_path.exists():
        print(f"[red]Error:[/red] Task file not found: {task_path}")
        raise typer.Exit(1)

    cfg = load_app_config(config_path)
    set_config(cfg)
    configure_logging(cfg)

    try:
        scimark_vector = [float(v) for v in _split(scimark)] if scimark else None
    except ValueError as e:
        print(f"[red]Error parsing --scimark:[/red] {e}")
        raise typer.Exit(1)

    try:
        task = Task.from_yaml(task_path)
        result = RunAssembler(config=cfg).run_task(
            task,
            learner,
            measures=_split(measures) or None,
            verbosity=verbosity,
            seed=seed,
            scimark_vector=scimark_vector,
            models=False,
        )
    except (TaskRunError, ValueError) as e:
        print(f"[red]Error running task:[/red] {e}")
        raise typer.Exit(1)

    run = result.run
    print(f"[bold]Flow:[/bold] {result.flow.name} ({result.flow.fingerprint[:12]})")
    if run.error_message:
        print(f"[yellow]Run reported errors:[/yellow]\n{run.error_message}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("measure")
    table.add_column("value")
    for name, value in run.evaluations.items():
        table.add_row(name, f"{value:.4f}")
    console.print(table)

    if store:
        run_store = RunStore(cfg.storage.duckdb_path)
        try:
            run_id = run_store.save_run(result)
        finally:
            run_store.close()
        print(f"[green]✓[/green] Stored run {run_id} in {cfg.storage.duckdb_path}")


@app.command()
def show_runs(
    measure: str = typer.Option("predictive_accuracy", help="Measure to rank by"),
    task_id: Optional[int] = typer.Option(None, help="Only runs of this task"),
    top_n: Optional[int] = typer.Option(None, help="Show only top N runs"),
    config_path: str = "config/base.yaml",
) -> None:
    """Rank stored runs by a measure."""
    cfg = load_app_config(config_path)
    if not Path(cfg.storage.duckdb_path).exists():
        print(f"[red]Error:[/red] Run store not found: {cfg.storage.duckdb_path}")
        raise typer.Exit(1)

    run_store = RunStore(cfg.storage.duckdb_path, read_only=True)
    try:
        evaluations = run_store.fetch_evaluations()
    finally:
        run_store.close()
    if task_id is not None:
        evaluations = evaluations[evaluations["task_id"] == task_id]

    wide = RunComparison.evaluations_wide(evaluations)
    if wide.empty:
        print("[yellow]No results to display[/yellow]")
        return
    meta = evaluations[["run_id", "task_id", "flow_name"]].drop_duplicates("run_id")
    wide = meta.merge(wide, on="run_id")

    try:
        leaderboard = RunComparison.generate_leaderboard(
            wide, measure, [c for c in wide.columns if c not in {"run_id", "task_id", "flow_name"}]
        )
    except ValueError as e:
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if top_n:
        leaderboard = leaderboard.head(top_n)
    _display_table(leaderboard)


def _display_table(df) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    for col in df.columns:
        table.add_column(str(col))
    for _, row in df.iterrows():
        table.add_row(*[str(val) for val in row])
    console.print(table)


if __name__ == "__main__":
    app()
