"""teststate CLI implementation.

Replays result batch files through a result store and renders its
classification queries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from teststate.config import ConfigLoader, ConsistencyMode, StoreConfig
from teststate.exceptions import TestStateError
from teststate.models import BatchDocument, ClassSummary, ResultBatch, TestResult
from teststate.parser import BatchParser
from teststate.reporting import JsonSummaryGenerator
from teststate.store import ResultStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="teststate",
    help="Inspect incrementally updated test results.",
    no_args_is_help=True,
)

console = Console()

BatchFiles = Annotated[
    list[Path],
    typer.Argument(help="Result batch files (YAML or JSON), applied in order.", exists=True),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to teststate.yaml configuration file."),
]
ConsistencyOption = Annotated[
    ConsistencyMode | None,
    typer.Option("--consistency-check", help="Override the configured consistency mode."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log store activity."),
]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _resolve_config(
    config_file: Path | None,
    consistency_check: ConsistencyMode | None,
) -> StoreConfig:
    file_config = ConfigLoader.load_config(config_file)
    return ConfigLoader.resolve_store_config(
        file_config, cli_consistency_check=consistency_check
    )


def _replay(store: ResultStore, documents: list[BatchDocument]) -> None:
    """Apply each document's results, then its removals."""
    logger.debug("Replaying %d batch document(s)", len(documents))
    for document in documents:
        store.apply_update(document.to_batch())
        if document.removed:
            store.remove_classes(document.removed)


def _merge_batches(documents: list[BatchDocument]) -> ResultBatch:
    """Combine documents into one batch; later results win."""
    merged: dict[str, dict[str, TestResult]] = {}
    for document in documents:
        for class_name, tests in document.to_batch().items():
            merged.setdefault(class_name, {}).update(tests)
    return merged


def _display_classes(title: str, summaries: list[ClassSummary]) -> None:
    """Display one table row per class."""
    table = Table(title=title)
    table.add_column("Class", style="cyan")
    table.add_column("Passed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Skipped", justify="right")

    for s in summaries:
        failed = f"[red]{len(s.failing)}[/red]" if s.failing else "0"
        table.add_row(escape(s.name), str(len(s.passing)), failed, str(len(s.skipped)))

    console.print(table)


def _display_failures(summaries: list[ClassSummary]) -> None:
    """List each failing test with its failure message."""
    for s in summaries:
        console.print(f"\n[bold]{escape(s.name)}[/bold]")
        for result in s.failing:
            line = f"  [red]FAIL[/red] {escape(result.name)}"
            if result.detail and result.detail.message:
                line += f": {escape(result.detail.message)}"
            console.print(line)


@app.command()
def summary(  # noqa: PLR0913 - Typer requires CLI args as function parameters
    batches: BatchFiles,
    config_file: ConfigOption = None,
    consistency_check: ConsistencyOption = None,
    json_output: Annotated[
        Path | None,
        typer.Option("--json", "-j", help="Also write a JSON summary to this path."),
    ] = None,
    fail_on_failures: Annotated[
        bool,
        typer.Option("--fail-on-failures", help="Exit with error code if any test fails."),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Show passing and failing classes after replaying batches.

    Example:
        teststate summary run1.yaml run2.yaml --json summary.json
    """
    _setup_logging(verbose)

    try:
        store = ResultStore(_resolve_config(config_file, consistency_check))
        _replay(store, BatchParser.parse_files(batches))
    except TestStateError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    passing = store.get_passing_classes()
    failing = store.get_failing_classes()

    if not passing and not failing:
        console.print("[yellow]No results recorded.[/yellow]")
    else:
        if passing:
            _display_classes("Passing Classes", passing)
        if failing:
            _display_classes("Failing Classes", failing)
            _display_failures(failing)

    total_failures = store.get_total_failure_count()
    color = "red" if total_failures else "green"
    console.print(f"\n[bold {color}]Total failures: {total_failures}[/bold {color}]")

    if json_output is not None:
        JsonSummaryGenerator().generate(store, json_output)
        console.print(f"JSON summary written to {json_output}")

    if fail_on_failures and total_failures:
        raise typer.Exit(code=1)


@app.command()
def diff(  # noqa: PLR0913 - Typer requires CLI args as function parameters
    current: BatchFiles,
    baseline: Annotated[
        list[Path],
        typer.Option(
            "--baseline",
            "-b",
            help="Batch files recorded earlier in the session.",
            exists=True,
        ),
    ],
    config_file: ConfigOption = None,
    consistency_check: ConsistencyOption = None,
    json_output: Annotated[
        Path | None,
        typer.Option(
            "--json",
            "-j",
            help="Also write a JSON summary, including failures not rerun, to this path.",
        ),
    ] = None,
    fail_on_historic: Annotated[
        bool,
        typer.Option(
            "--fail-on-historic",
            help="Exit with error code if any earlier failure was not rerun.",
        ),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """List earlier failures that the current batches did not rerun.

    Example:
        teststate diff --baseline run1.yaml run2.yaml --json diff.json
    """
    _setup_logging(verbose)

    try:
        store = ResultStore(_resolve_config(config_file, consistency_check))
        _replay(store, BatchParser.parse_files(baseline))
        current_batch = _merge_batches(BatchParser.parse_files(current))
        historic = store.get_new_failures(current_batch)
    except TestStateError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if json_output is not None:
        JsonSummaryGenerator().generate(store, json_output, current_batch)
        console.print(f"JSON summary written to {json_output}")

    if not historic:
        console.print("[green]Every earlier failure was rerun.[/green]")
        raise typer.Exit(code=0)

    table = Table(title="Failures Not Rerun")
    table.add_column("Class", style="cyan")
    table.add_column("Test")
    table.add_column("Message")

    for result in historic:
        table.add_row(
            escape(result.class_name or ""),
            escape(result.name),
            escape(result.detail.message) if result.detail else "",
        )

    console.print(table)
    console.print(f"\n[yellow]{len(historic)} earlier failure(s) not rerun[/yellow]")

    if fail_on_historic:
        raise typer.Exit(code=1)


@app.command()
def validate(batches: BatchFiles) -> None:
    """Validate batch files without applying them."""
    try:
        documents = BatchParser.parse_files(batches)
    except TestStateError as e:
        console.print(f"[red]Validation failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Validated {len(documents)} batch file(s) successfully.[/green]")
    for path, document in zip(batches, documents, strict=True):
        count = sum(len(entries) for entries in document.classes.values())
        console.print(f"  - {path}: {len(document.classes)} class(es), {count} result(s)")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
