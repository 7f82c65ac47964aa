"""Workflow commands - track validation objects through their lifecycle.

Objects and their audit trail are kept under the workspace directory
(``--workspace``, default from the configuration).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console

from ...constants import ExitCodes
from ...domain.entities.comparison import build_comparison_config
from ...domain.entities.validation_object import ValidationState
from ...domain.errors import ReconcileError
from ...infrastructure.container import DependencyContainer
from ...infrastructure.io.exceptions import DataSourceError
from ..helpers import ReconcileCommandError, echo_json, load_config, run_context
from ..presenters.summary import ComparisonPresenter
from ..presenters.workflow import WorkflowPresenter

if TYPE_CHECKING:
    from ...application.validation_workflow_use_case import ValidationWorkflowUseCase
    from ...domain.entities.context import RunContext

console = Console()


@dataclass(frozen=True, slots=True)
class WorkflowSession:
    container: DependencyContainer
    study_id: str | None

    @property
    def use_case(self) -> ValidationWorkflowUseCase:
        return self.container.create_workflow_use_case()

    @property
    def context(self) -> RunContext:
        return run_context(self.container.config, self.study_id)


@contextmanager
def _command_errors() -> Iterator[None]:
    try:
        yield
    except (ReconcileError, DataSourceError) as e:
        raise ReconcileCommandError(str(e)) from e


def _actor_option(function: Callable[..., None]) -> Callable[..., None]:
    return click.option(
        "--actor", help="Who performs the action (default: current user)"
    )(function)


@click.group()
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
@click.option("--study-id", help="Study identifier recorded in audit entries")
@click.option(
    "-v", "--verbose", count=True, help="Increase verbosity level (e.g., -v, -vv)"
)
@click.pass_context
def workflow_group(
    ctx: click.Context,
    workspace: Path | None,
    config_file: Path | None,
    study_id: str | None,
    verbose: int,
) -> None:
    """Track validation objects from registration to sign-off."""
    config = load_config(config_file, workspace=workspace)
    ctx.obj = WorkflowSession(
        container=DependencyContainer(config=config, verbose=verbose, console=console),
        study_id=study_id,
    )


@workflow_group.command("register")
@click.argument("name")
@click.option(
    "-k",
    "--key",
    "key",
    multiple=True,
    required=True,
    help="Key column (repeat for a composite key)",
)
@click.option(
    "--tolerance",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Numeric tolerance for this object (default: from config)",
)
@click.option("--lead", "lead_programmer", help="Lead (production) programmer")
@click.option(
    "--independent", "independent_programmer", help="Independent (QC) programmer"
)
@click.option("--reviewer", help="Reviewer who signs off")
@click.pass_obj
def register_command(
    session: WorkflowSession,
    name: str,
    key: tuple[str, ...],
    tolerance: float | None,
    lead_programmer: str | None,
    independent_programmer: str | None,
    reviewer: str | None,
) -> None:
    """Register NAME for independent programming."""
    config = session.container.config
    with _command_errors():
        obj = session.use_case.register(
            session.context,
            name,
            list(key),
            config.default_tolerance if tolerance is None else tolerance,
            lead_programmer=lead_programmer,
            independent_programmer=independent_programmer,
            reviewer=reviewer,
        )
    console.print(f"[green]✓[/green] Registered {obj.name} (key: {', '.join(obj.key)})")


@workflow_group.command("mark-lead")
@click.argument("name")
@_actor_option
@click.pass_obj
def mark_lead_command(session: WorkflowSession, name: str, actor: str | None) -> None:
    """Record that the lead programmer produced NAME."""
    with _command_errors():
        obj = session.use_case.mark_lead_produced(session.context, name, actor=actor)
    console.print(f"[green]✓[/green] {obj.name}: {obj.state}")


@workflow_group.command("mark-independent")
@click.argument("name")
@_actor_option
@click.pass_obj
def mark_independent_command(
    session: WorkflowSession, name: str, actor: str | None
) -> None:
    """Record that the independent programmer produced NAME."""
    with _command_errors():
        obj = session.use_case.mark_independent_produced(
            session.context, name, actor=actor
        )
    console.print(f"[green]✓[/green] {obj.name}: {obj.state}")


@workflow_group.command("compare")
@click.argument("name")
@click.argument("left", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("right", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-f", "--field", "fields", multiple=True, help="Field to compare")
@click.option(
    "--method",
    "tolerance_method",
    type=click.Choice(["absolute", "relative"]),
    default=None,
    help="How the tolerance is applied to numeric values",
)
@click.option(
    "--trim",
    type=click.Choice(["none", "trailing", "both"]),
    default=None,
    help="Whitespace trimming applied before comparing text",
)
@click.option(
    "--override",
    "override_note",
    help="Close the object even if differences remain, recording this note",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full comparison result as JSON to this file",
)
@_actor_option
@click.pass_obj
@click.pass_context
def compare_command(
    ctx: click.Context,
    session: WorkflowSession,
    name: str,
    left: Path,
    right: Path,
    fields: tuple[str, ...],
    tolerance_method: str | None,
    trim: str | None,
    override_note: str | None,
    output_path: Path | None,
    actor: str | None,
) -> None:
    """Compare LEFT against RIGHT for NAME and route the result.

    A passing comparison (or one with --override) closes the object; any
    other result opens a discrepancy and exits with status 1.
    """
    container = session.container
    use_case = session.use_case
    repository = container.create_snapshot_repository()
    with _command_errors():
        obj = use_case.get(name)
        config = None
        if fields or tolerance_method or trim:
            config = build_comparison_config(
                **{
                    **container.config.comparison_defaults(),
                    "key": list(obj.key),
                    "tolerance": obj.tolerance,
                    "compare_fields": list(fields) if fields else None,
                    "tolerance_method": tolerance_method
                    or container.config.tolerance_method,
                    "trim": trim or container.config.trim,
                }
            )
        left_snapshot = repository.load(left, text_columns=obj.key)
        right_snapshot = repository.load(right, text_columns=obj.key)
        result = use_case.compare_with_result(
            session.context,
            name,
            left_snapshot,
            right_snapshot,
            config,
            override_note=override_note,
            actor=actor,
        )
        if output_path is not None:
            container.create_result_writer().write_json(result, output_path)
        obj = use_case.get(name)
    ComparisonPresenter(console).present(result)
    console.print(f"[bold]{obj.name}[/bold] is now [bold]{obj.state}[/bold]")
    if obj.state is ValidationState.DISCREPANCY_OPEN:
        ctx.exit(ExitCodes.DIFFERENCES)


@workflow_group.command("resolve")
@click.argument("name")
@click.option("--note", required=True, help="How the discrepancy was resolved")
@_actor_option
@click.pass_obj
def resolve_command(
    session: WorkflowSession, name: str, note: str, actor: str | None
) -> None:
    """Record the resolution of NAME's open discrepancy."""
    with _command_errors():
        obj = session.use_case.resolve_discrepancy(session.context, name, note, actor)
    console.print(f"[green]✓[/green] Resolution recorded for {obj.name}")


@workflow_group.command("close")
@click.argument("name")
@_actor_option
@click.pass_obj
def close_command(session: WorkflowSession, name: str, actor: str | None) -> None:
    """Sign off NAME."""
    with _command_errors():
        obj = session.use_case.close(session.context, name, actor)
    console.print(f"[green]✓[/green] {obj.name} closed by {obj.closed_by}")


@workflow_group.command("status")
@click.argument("name", required=False)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
)
@click.pass_obj
def status_command(
    session: WorkflowSession, name: str | None, output_format: str
) -> None:
    """Show one validation object, or all of them."""
    with _command_errors():
        objects = (
            [session.use_case.get(name)] if name else session.use_case.list_objects()
        )
    if output_format == "json":
        echo_json([obj.to_dict() for obj in objects])
        return
    presenter = WorkflowPresenter(console)
    if name:
        presenter.present_object(objects[0])
    elif objects:
        presenter.present_objects(objects)
    else:
        console.print("[dim]No validation objects registered[/dim]")


@workflow_group.command("verify")
@click.argument("name", required=False)
@click.pass_obj
def verify_command(session: WorkflowSession, name: str | None) -> None:
    """Check that stored state agrees with the audit trail."""
    use_case = session.use_case
    with _command_errors():
        names = [name] if name else [obj.name for obj in use_case.list_objects()]
        for object_name in names:
            obj = use_case.verify_integrity(object_name)
            console.print(f"[green]✓[/green] {obj.name}: {obj.state} (consistent)")
