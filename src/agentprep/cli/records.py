"""agentprep records command - list recent preparations."""

import click
from rich.console import Console
from rich.table import Table

from agentprep.cli.context import get_store
from agentprep.config.constants import STATUS_CREATED, STATUS_ERROR, STATUS_RUNNING
from agentprep.core.errors import AgentPrepError

_STATUS_STYLE = {
    STATUS_CREATED: "yellow",
    STATUS_RUNNING: "green",
    STATUS_ERROR: "red",
}


@click.command()
@click.option("--type", "program_type", default=None, help="Only records of this type (e.g. jvm)")
@click.option(
    "--status",
    type=click.Choice([STATUS_CREATED, STATUS_RUNNING, STATUS_ERROR]),
    default=None,
    help="Only records in this status",
)
@click.option("--limit", type=click.IntRange(min=1), default=50, show_default=True)
@click.pass_context
def records_command(
    ctx: click.Context, program_type: str | None, status: str | None, limit: int
) -> None:
    """List preparation records, newest first."""
    try:
        records = get_store(ctx).list_records(program_type, status, limit)
    except AgentPrepError as e:
        raise click.ClickException(str(e)) from e

    console = Console()
    if not records:
        console.print("No preparation records.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("UID", no_wrap=True)
    table.add_column("Type")
    table.add_column("Process")
    table.add_column("PID", justify="right")
    table.add_column("Port", justify="right")
    table.add_column("Status")
    table.add_column("Error", overflow="fold")

    for record in records:
        style = _STATUS_STYLE.get(record.status, "")
        table.add_row(
            record.uid,
            record.program_type,
            record.process or "-",
            record.pid or "-",
            str(record.port),
            f"[{style}]{record.status}[/{style}]" if style else record.status,
            record.error,
        )
    console.print(table)
