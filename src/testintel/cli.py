"""Command-line interface for TestIntel."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from testintel import __version__
from testintel.config import TestIntelConfig, create_example_config
from testintel.intelligence import TestIntelligence
from testintel.storage.catalog import load_catalog
from testintel.storage.database import SQLiteHistoryStore
from testintel.storage.models import ExecutionResult, TestCase

console = Console()

RISK_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}


def print_banner() -> None:
    """Print the TestIntel banner."""
    console.print(
        Panel.fit(
            "[bold blue]TestIntel[/bold blue] - Test Intelligence from Execution History",
            subtitle=f"v{__version__}",
        )
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(ctx: click.Context) -> tuple[TestIntelConfig, Path]:
    """Load configuration and return it with the base directory, exiting on error."""
    config_path = ctx.obj.get("config_path")
    try:
        if config_path:
            config = TestIntelConfig.from_file(config_path)
            base_dir = Path(config_path).resolve().parent
        else:
            found = TestIntelConfig.find()
            if found is None:
                raise FileNotFoundError(
                    "No configuration file found. Create testintel.json or run 'testintel init'"
                )
            config = TestIntelConfig.from_file(found)
            base_dir = found.parent
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("Run [bold]testintel init[/bold] to create a configuration file")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)

    return config, base_dir


def _open_engine(ctx: click.Context) -> TestIntelligence:
    config, base_dir = _load_config(ctx)
    paths = config.get_absolute_paths(base_dir)
    store = SQLiteHistoryStore(paths["database_path"], max_records=config.history.max_records)
    ctx.obj["base_dir"] = base_dir
    ctx.obj["catalog_path"] = paths["catalog_file"]
    return TestIntelligence(store=store, config=config)


def _load_test_cases(ctx: click.Context) -> list[TestCase]:
    try:
        return load_catalog(ctx.obj["catalog_path"])
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading test cases:[/red] {e}")
        sys.exit(1)


def _print_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__, prog_name="testintel")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: testintel.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """TestIntel - heuristic test intelligence from execution history.

    Scores test risk, selects tests impacted by code changes, predicts
    failures and orders tests so failures surface early.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="testintel.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new TestIntel configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Created configuration file:[/green] {output_path}")
    console.print("\nNext steps:")
    console.print("  1. Edit the configuration file for your project")
    console.print("  2. Describe your tests in the catalog file (test_cases.json)")
    console.print("  3. Run [bold]testintel record[/bold] after each test run")


@main.command()
@click.argument("test_case_id", type=int)
@click.argument("test_name")
@click.option(
    "--result",
    "-r",
    type=click.Choice([r.value for r in ExecutionResult], case_sensitive=False),
    required=True,
    help="Outcome of the run",
)
@click.option("--duration", "-d", type=int, required=True, help="Run duration in milliseconds")
@click.option("--error-type", "-e", default=None, help="Error class of a failure")
@click.option("--changed", "changed", multiple=True, help="File touched by the run (repeatable)")
@click.option("--branch", "-b", default=None, help="Branch the run executed on")
@click.pass_context
def record(
    ctx: click.Context,
    test_case_id: int,
    test_name: str,
    result: str,
    duration: int,
    error_type: Optional[str],
    changed: tuple[str, ...],
    branch: Optional[str],
) -> None:
    """Record the outcome of a completed test run."""
    engine = _open_engine(ctx)
    execution = engine.record_test_execution(
        test_case_id=test_case_id,
        test_name=test_name,
        result=result,
        duration=duration,
        error_type=error_type,
        code_changes=list(changed),
        branch_name=branch,
    )
    console.print(
        f"[green]Recorded[/green] {execution.result.value} run of "
        f"[bold]{test_name}[/bold] ({execution.duration_ms}ms)"
    )


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def risk(ctx: click.Context, as_json: bool) -> None:
    """Show risk scores for all test cases."""
    engine = _open_engine(ctx)
    scores = engine.calculate_risk_scores(_load_test_cases(ctx))

    if as_json:
        _print_json([s.to_dict() for s in scores])
        return

    table = Table(title="Test Risk Scores")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    table.add_column("Failure Rate", justify="right")
    table.add_column("Recommendation", style="dim")

    for score in scores:
        level = score.risk_level.value
        table.add_row(
            str(score.test_case_id),
            score.test_name,
            str(score.score),
            f"[{RISK_STYLES[level]}]{level}[/{RISK_STYLES[level]}]",
            f"{score.factors.historical_failure_rate}%",
            score.recommendation,
        )

    console.print(table)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def predict(ctx: click.Context, as_json: bool) -> None:
    """Predict the next outcome of every test case."""
    engine = _open_engine(ctx)
    predictions = engine.predict_test_failures(_load_test_cases(ctx))

    if as_json:
        _print_json([p.to_dict() for p in predictions])
        return

    table = Table(title="Failure Predictions")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Outcome")
    table.add_column("Confidence", justify="right")
    table.add_column("Risk Factors", style="dim")

    for prediction in predictions:
        outcome = "[red]fail[/red]" if prediction.will_fail else "[green]pass[/green]"
        table.add_row(
            str(prediction.test_case_id),
            prediction.test_name,
            outcome,
            f"{prediction.confidence}%",
            "; ".join(prediction.risk_factors) or "-",
        )

    console.print(table)


@main.command()
@click.argument("files", nargs=-1)
@click.option("--compare-ref", default=None, help="Git ref to diff against when no files are given")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def impact(ctx: click.Context, files: tuple[str, ...], compare_ref: Optional[str], as_json: bool) -> None:
    """Select tests impacted by changed FILES (or by the git diff)."""
    engine = _open_engine(ctx)
    changed_files = list(files)

    if not changed_files and engine.config.git.enabled:
        from testintel.git.diff import GitDiffAnalyzer

        try:
            analyzer = GitDiffAnalyzer(ctx.obj["base_dir"])
            changed_files = analyzer.changed_paths(
                compare_ref=compare_ref or engine.config.git.compare_ref,
                include_uncommitted=engine.config.git.include_uncommitted,
            )
        except ValueError as e:
            console.print(f"[yellow]Warning: Git analysis failed:[/yellow] {e}")

    result = engine.select_tests_for_code_changes(_load_test_cases(ctx), changed_files)

    if as_json:
        _print_json(result.to_dict())
        return

    if not result.files_changed:
        console.print("[yellow]No changed files to analyze[/yellow]")
        return

    console.print(f"[dim]Files changed:[/dim] {len(result.files_changed)}")
    console.print(
        f"[dim]Affected components:[/dim] {', '.join(result.affected_components) or '-'}"
    )
    console.print(f"[dim]Overall risk:[/dim] {result.risk_level}")

    table = Table(title="Impacted Tests")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Confidence", justify="right")
    table.add_column("Reason", style="dim")

    for test in result.impacted_tests:
        table.add_row(str(test.test_case_id), test.test_name, f"{test.confidence}%", test.reason)

    console.print(table)


@main.command()
@click.option("--id", "test_case_ids", type=int, multiple=True, help="Restrict to test case id (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--names", is_flag=True, help="Print only test names, one per line, in run order")
@click.option("--max", "max_tests", type=int, default=None, help="Limit --names to the first N tests")
@click.pass_context
def order(
    ctx: click.Context,
    test_case_ids: tuple[int, ...],
    as_json: bool,
    names: bool,
    max_tests: Optional[int],
) -> None:
    """Show the optimal execution order."""
    engine = _open_engine(ctx)
    result = engine.optimize_test_execution_order(_load_test_cases(ctx), list(test_case_ids))

    if as_json:
        _print_json(result.to_dict())
        return

    if names:
        for name in result.get_execution_order(max_tests):
            click.echo(name)
        return

    table = Table(title="Optimal Execution Order")
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Priority", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Fail %", justify="right")
    table.add_column("Reason", style="dim")

    for position, test in enumerate(result.ordered_tests, start=1):
        table.add_row(
            str(position),
            str(test.test_case_id),
            test.test_name,
            str(test.priority),
            f"{test.estimated_duration}ms",
            f"{test.failure_probability}%",
            test.reason,
        )

    console.print(table)
    console.print(f"Estimated total time: [bold]{result.estimated_total_time}ms[/bold]")
    if result.expected_failure_detection_time:
        console.print(
            f"Expected first failure after: [bold]{result.expected_failure_detection_time}ms[/bold]"
        )


@main.command()
@click.argument("test_case_id", type=int)
@click.option("--limit", "-n", type=int, default=20, help="Number of executions to show")
@click.pass_context
def history(ctx: click.Context, test_case_id: int, limit: int) -> None:
    """Show recorded executions of a test case."""
    engine = _open_engine(ctx)
    executions = engine.store.history(test_case_id)

    if not executions:
        console.print(f"[yellow]No executions recorded for test case {test_case_id}[/yellow]")
        return

    table = Table(title=f"Execution History ({len(executions)} retained)")
    table.add_column("Date", style="dim")
    table.add_column("Result")
    table.add_column("Duration", justify="right")
    table.add_column("Error")
    table.add_column("Branch", style="dim")

    styles = {"passed": "green", "failed": "red", "skipped": "yellow"}
    for execution in executions[-limit:]:
        result = execution.result.value
        table.add_row(
            execution.executed_at.strftime("%Y-%m-%d %H:%M"),
            f"[{styles[result]}]{result}[/{styles[result]}]",
            f"{execution.duration_ms}ms",
            execution.error_type or "-",
            execution.branch_name or "-",
        )

    console.print(table)


if __name__ == "__main__":
    main()
