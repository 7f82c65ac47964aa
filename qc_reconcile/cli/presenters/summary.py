from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from ...constants import FindingKinds
from ...domain.entities.findings import (
    FieldValueDifference,
    RecordPresenceDifference,
    SchemaDifference,
)
from ...domain.entities.typed_value import describe

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from ...domain.entities.comparison import ComparisonResult, ComparisonSummary
    from ...domain.entities.findings import Finding

DEFAULT_FINDING_LIMIT = 50
STATUS_STYLES = {"Pass": "bold green", "Warning": "bold yellow", "Fail": "bold red"}
SEVERITY_STYLES = {"Info": "dim", "Warning": "yellow", "Fail": "red"}
_CATEGORY_KINDS = {
    "schema": FindingKinds.SCHEMA,
    "presence": FindingKinds.PRESENCE,
    "value": FindingKinds.VALUE,
}


def _kind_order(kind: str) -> tuple[int, int, str]:
    category, _, name = kind.partition(":")
    categories = list(_CATEGORY_KINDS)
    known = _CATEGORY_KINDS.get(category, ())
    return (
        categories.index(category) if category in categories else len(categories),
        known.index(name) if name in known else len(known),
        name,
    )


def _sides(finding: Finding) -> tuple[str, str]:
    if isinstance(finding, FieldValueDifference):
        return describe(finding.left), describe(finding.right)
    if isinstance(finding, SchemaDifference):
        return finding.left or "", finding.right or ""
    if isinstance(finding, RecordPresenceDifference):
        present = "present"
        if finding.occurrence is not None:
            present = f"occurrence {finding.occurrence}"
        return (present, "") if finding.side == "left" else ("", present)
    return "", ""


class ComparisonPresenter:
    pass

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    def present(
        self, result: ComparisonResult, *, finding_limit: int = DEFAULT_FINDING_LIMIT
    ) -> None:
        summary = result.summary
        self.console.print()
        self.console.print(self._build_summary_table(summary))
        if summary.kind_counts:
            self.console.print(self._build_kind_table(summary))
        if summary.field_statistics:
            self.console.print(self._build_field_table(summary))
        if result.findings:
            self.console.print(
                self._build_findings_table(result.findings, limit=finding_limit)
            )
            hidden = len(result.findings) - finding_limit
            if hidden > 0:
                self.console.print(
                    f"[dim]... {hidden} more finding(s); use --format json for the full list[/dim]"
                )
        self.console.print()
        self._print_status(summary)

    def _build_summary_table(self, summary: ComparisonSummary) -> Table:
        stats = summary.statistics
        table = Table(
            title=f"🔍 Comparison Summary: {escape(summary.object_name)}",
            show_header=False,
            border_style="bright_blue",
            title_style="bold magenta",
        )
        table.add_column("Item", style="cyan", no_wrap=True)
        table.add_column("Value", style="white")
        style = STATUS_STYLES.get(str(summary.status), "white")
        table.add_row("Status", f"[{style}]{summary.status}[/{style}]")
        table.add_row("Left records", f"{stats.left_records:,}")
        table.add_row("Right records", f"{stats.right_records:,}")
        table.add_row("Matched pairs", f"{stats.matched_pairs:,}")
        table.add_row(
            "Compared fields",
            escape(", ".join(stats.compared_fields)) if stats.compared_fields else "-",
        )
        table.add_row(
            "Findings",
            f"{summary.fail_count} fail, {summary.warning_count} warning, "
            + f"{summary.info_count} info",
        )
        return table

    def _build_kind_table(self, summary: ComparisonSummary) -> Table:
        table = Table(
            title="Findings by Kind",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
        )
        table.add_column("Category", style="cyan", no_wrap=True)
        table.add_column("Kind", style="white", no_wrap=True)
        table.add_column("Count", justify="right", style="yellow")
        for kind in sorted(summary.kind_counts, key=_kind_order):
            category, _, name = kind.partition(":")
            table.add_row(category, name, str(summary.kind_counts[kind]))
        return table

    def _build_field_table(self, summary: ComparisonSummary) -> Table:
        table = Table(
            title="Value Differences by Field",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
        )
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Differences", justify="right", style="yellow")
        table.add_column("Max delta", justify="right", style="white")
        for name in sorted(summary.field_statistics):
            stats = summary.field_statistics[name]
            max_delta = f"{stats.max_delta:.6g}" if stats.max_delta is not None else "-"
            table.add_row(escape(name), f"{stats.differences:,}", max_delta)
        return table

    def _build_findings_table(self, findings: Sequence[Finding], *, limit: int) -> Table:
        table = Table(
            title="Findings",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
        )
        table.add_column("Severity", no_wrap=True)
        table.add_column("Kind", style="cyan", no_wrap=True)
        table.add_column("Where", style="white", overflow="fold", ratio=2)
        table.add_column("Left", style="green", overflow="fold", ratio=1)
        table.add_column("Right", style="green", overflow="fold", ratio=1)
        table.add_column("Reason", style="dim", overflow="fold", ratio=3)
        for finding in findings[:limit]:
            severity = finding.severity.label
            style = SEVERITY_STYLES.get(severity, "white")
            left, right = _sides(finding)
            table.add_row(
                f"[{style}]{severity}[/{style}]",
                f"{finding.category}:{finding.kind}",
                escape(finding.identifier),
                escape(left),
                escape(right),
                escape(finding.reason),
            )
        return table

    def _print_status(self, summary: ComparisonSummary) -> None:
        style = STATUS_STYLES.get(str(summary.status), "white")
        if summary.passed:
            self.console.print(
                f"[{style}]✓ {escape(summary.object_name)}: artifacts match[/{style}]"
            )
        else:
            self.console.print(
                f"[{style}]✗ {escape(summary.object_name)}: {summary.status} "
                + f"({summary.total_findings} finding(s))[/{style}]"
            )
