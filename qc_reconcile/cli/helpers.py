"""Helper functions shared by the CLI commands."""

from __future__ import annotations

from dataclasses import replace
import json
from typing import TYPE_CHECKING

import click

from ..config import ConfigLoader
from ..constants import ExitCodes
from ..domain.entities.context import RunContext

if TYPE_CHECKING:
    from pathlib import Path

    from ..config import ReconcileConfig


class ReconcileCommandError(click.ClickException):
    """A command could not run (bad configuration or unreadable input)."""

    exit_code = ExitCodes.ERROR


def load_config(
    config_file: Path | None, *, workspace: Path | None = None
) -> ReconcileConfig:
    try:
        config = ConfigLoader.load(config_file=config_file)
    except ValueError as e:
        raise ReconcileCommandError(f"Invalid configuration: {e}") from e
    if workspace is not None:
        config = replace(config, workspace_dir=workspace)
    return config


def run_context(config: ReconcileConfig, study_id: str | None) -> RunContext:
    context = RunContext.for_current_user(study_id or "")
    if config.default_actor:
        context = RunContext(
            study_id=context.study_id,
            actor=config.default_actor,
            session_id=context.session_id,
        )
    return context


def echo_json(document: object) -> None:
    click.echo(json.dumps(document, indent=2, sort_keys=True))
