"""Audit command - show the audit trail recorded for a validation object."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from ...domain.errors import ReconcileError
from ...infrastructure.container import DependencyContainer
from ..helpers import ReconcileCommandError, echo_json, load_config
from ..presenters.workflow import WorkflowPresenter

console = Console()


@click.command()
@click.argument("name")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Console output format",
)
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the object store and audit trail",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a qc_reconcile.toml config file (default: ./qc_reconcile.toml)",
)
def audit_command(
    name: str,
    output_format: str,
    workspace: Path | None,
    config_file: Path | None,
) -> None:
    """Show every audit entry recorded for NAME, oldest first."""
    config = load_config(config_file, workspace=workspace)
    container = DependencyContainer(config=config, console=console)
    try:
        entries = container.create_workflow_use_case().history(name)
    except ReconcileError as e:
        raise ReconcileCommandError(str(e)) from e

    if output_format == "json":
        echo_json([entry.to_dict() for entry in entries])
    elif entries:
        WorkflowPresenter(console).present_history(name, entries)
    else:
        console.print(f"[dim]No audit entries for {name}[/dim]")
