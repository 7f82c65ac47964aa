"""Compare command - reconcile two independently produced datasets.

Thin adapter between click and the application's ComparisonUseCase: parse the
options, build the request, run the use case and present the result.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from ...application.models import CompareDatasetsRequest
from ...constants import ExitCodes
from ...domain.entities.comparison import ComparisonStatus, build_comparison_config
from ...domain.errors import ConfigurationError
from ...infrastructure.container import DependencyContainer
from ..helpers import ReconcileCommandError, echo_json, load_config
from ..presenters.summary import ComparisonPresenter

console = Console()
err_console = Console(stderr=True)


@click.command()
@click.argument("left", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("right", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-k",
    "--key",
    "key",
    multiple=True,
    required=True,
    help="Key column identifying a record (repeat for a composite key)",
)
@click.option(
    "-f",
    "--field",
    "fields",
    multiple=True,
    help="Field to compare (repeatable; default: all common non-key fields)",
)
@click.option(
    "--tolerance",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Numeric tolerance (default: from config, 1e-5)",
)
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
@click.option("--name", "object_name", help="Name reported for the compared object")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full comparison result as JSON to this file",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Console output format",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a qc_reconcile.toml config file (default: ./qc_reconcile.toml)",
)
@click.option(
    "-v", "--verbose", count=True, help="Increase verbosity level (e.g., -v, -vv)"
)
@click.pass_context
def compare_command(
    ctx: click.Context,
    left: Path,
    right: Path,
    key: tuple[str, ...],
    fields: tuple[str, ...],
    tolerance: float | None,
    tolerance_method: str | None,
    trim: str | None,
    object_name: str | None,
    output_path: Path | None,
    output_format: str,
    config_file: Path | None,
    verbose: int,
) -> None:
    """Compare two datasets record by record.

    LEFT is the production dataset and RIGHT the independently programmed
    one. Records are matched on the key columns; schema, presence and value
    differences are reported.

    Exit status is 0 when the datasets match (warnings allowed), 1 when they
    differ and 2 when the comparison could not run.

    Examples:

    \b
        # Compare two SAS datasets on a composite key
        qc-reconcile compare adsl.sas7bdat qc_adsl.sas7bdat -k STUDYID -k USUBJID

    \b
        # Only compare two fields, with a relative tolerance
        qc-reconcile compare adlb.csv qc_adlb.csv -k USUBJID -k PARAMCD -k AVISITN \\
            -f AVAL -f BASE --tolerance 1e-6 --method relative
    """
    config = load_config(config_file)
    try:
        comparison_config = build_comparison_config(
            key=list(key),
            compare_fields=list(fields) if fields else None,
            tolerance=config.default_tolerance if tolerance is None else tolerance,
            tolerance_method=tolerance_method or config.tolerance_method,
            trim=trim or config.trim,
            chunk_size=config.chunk_size,
            max_workers=config.max_workers,
        )
    except ConfigurationError as e:
        raise ReconcileCommandError(str(e)) from e

    container = DependencyContainer(
        config=config,
        verbose=verbose,
        console=err_console if output_format == "json" else console,
    )
    use_case = container.create_comparison_use_case()
    response = use_case.execute(
        CompareDatasetsRequest(
            left_path=left,
            right_path=right,
            config=comparison_config,
            object_name=object_name,
            output_path=output_path,
            verbose=verbose,
        )
    )
    if not response.success or response.result is None:
        raise ReconcileCommandError(response.error or "Comparison failed")

    if output_format == "json":
        echo_json(response.result.to_dict())
    else:
        ComparisonPresenter(console).present(response.result)
        if response.output_path is not None:
            console.print(f"[bold]Result written to:[/bold] {response.output_path}")

    if response.result.status is ComparisonStatus.FAIL:
        ctx.exit(ExitCodes.DIFFERENCES)
