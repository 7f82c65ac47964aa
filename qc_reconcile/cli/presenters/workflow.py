from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from ...domain.services.lifecycle import allowed_actions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from rich.console import Console

    from ...domain.entities.audit import AuditEntry
    from ...domain.entities.validation_object import ValidationObject

STATE_STYLES = {
    "registered": "white",
    "lead_produced": "cyan",
    "independent_produced": "cyan",
    "compared": "yellow",
    "discrepancy_open": "red",
    "closed": "green",
}
AUDIT_STATUS_STYLES = {
    "pass": "green",
    "warning": "yellow",
    "fail": "red",
    "overridden": "magenta",
    "error": "bold red",
}


def _when(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value is not None else "-"


class WorkflowPresenter:
    pass

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    def present_objects(self, objects: Sequence[ValidationObject]) -> None:
        table = Table(
            title="📋 Validation Objects",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta",
        )
        table.add_column("Object", style="cyan", no_wrap=True)
        table.add_column("State", no_wrap=True)
        table.add_column("Key", style="white", overflow="fold")
        table.add_column("Tolerance", justify="right")
        table.add_column("Comparisons", justify="right", style="yellow")
        table.add_column("Last result", no_wrap=True)
        table.add_column("Next actions", style="dim", overflow="fold")
        for obj in objects:
            state = str(obj.state)
            style = STATE_STYLES.get(state, "white")
            last = str(obj.last_summary.status) if obj.last_summary is not None else "-"
            table.add_row(
                escape(obj.name),
                f"[{style}]{state}[/{style}]",
                escape(", ".join(obj.key)),
                f"{obj.tolerance:g}",
                str(obj.comparison_count),
                last,
                ", ".join(str(a) for a in allowed_actions(obj.state)) or "-",
            )
        self.console.print(table)

    def present_object(self, obj: ValidationObject) -> None:
        table = Table(
            title=f"Validation Object: {escape(obj.name)}",
            show_header=False,
            border_style="bright_blue",
            title_style="bold magenta",
        )
        table.add_column("Item", style="cyan", no_wrap=True)
        table.add_column("Value", style="white", overflow="fold")
        style = STATE_STYLES.get(str(obj.state), "white")
        table.add_row("State", f"[{style}]{obj.state}[/{style}]")
        table.add_row("Key", escape(", ".join(obj.key)))
        table.add_row("Tolerance", f"{obj.tolerance:g}")
        table.add_row("Lead programmer", escape(obj.lead_programmer or "-"))
        table.add_row("Independent programmer", escape(obj.independent_programmer or "-"))
        table.add_row("Reviewer", escape(obj.reviewer or "-"))
        table.add_row("Registered", _when(obj.registered_at))
        table.add_row("Lead produced", _when(obj.lead_produced_at))
        table.add_row("Independent produced", _when(obj.independent_produced_at))
        table.add_row("Compared", _when(obj.compared_at))
        table.add_row("Discrepancy opened", _when(obj.discrepancy_opened_at))
        table.add_row("Closed", _when(obj.closed_at))
        table.add_row("Comparisons", str(obj.comparison_count))
        if obj.last_summary is not None:
            summary = obj.last_summary
            table.add_row(
                "Last result",
                f"{summary.status} ({summary.fail_count} fail, "
                + f"{summary.warning_count} warning, {summary.info_count} info)",
            )
        if obj.resolution_note:
            table.add_row(
                "Resolution",
                escape(f"{obj.resolution_note} ({obj.resolved_by or '-'})"),
            )
        if obj.override_note:
            table.add_row("Override", escape(obj.override_note))
        if obj.closed_by:
            table.add_row("Closed by", escape(obj.closed_by))
        self.console.print(table)

    def present_history(self, object_name: str, entries: Sequence[AuditEntry]) -> None:
        table = Table(
            title=f"🧾 Audit Trail: {escape(object_name)}",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta",
        )
        table.add_column("#", justify="right", style="dim", no_wrap=True)
        table.add_column("Timestamp", no_wrap=True)
        table.add_column("Action", style="cyan", no_wrap=True)
        table.add_column("Actor", style="white", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Transition", no_wrap=True)
        table.add_column("Detail", style="dim", overflow="fold", ratio=3)
        for entry in entries:
            status = str(entry.status)
            style = AUDIT_STATUS_STYLES.get(status, "white")
            if entry.is_transition:
                transition = f"{entry.from_state or '-'} → {entry.to_state}"
            else:
                transition = entry.to_state or "-"
            table.add_row(
                str(entry.sequence),
                entry.timestamp.isoformat(timespec="microseconds"),
                str(entry.action),
                escape(entry.actor),
                f"[{style}]{status}[/{style}]",
                transition,
                escape(entry.detail),
            )
        self.console.print(table)
