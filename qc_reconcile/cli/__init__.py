import click

from .commands.audit import audit_command
from .commands.compare import compare_command
from .commands.workflow import workflow_group


@click.group()
@click.version_option(package_name="qc-reconcile")
def app() -> None:
    pass


app.add_command(compare_command, name="compare")
app.add_command(workflow_group, name="workflow")
app.add_command(audit_command, name="audit")
__all__ = ["app"]
