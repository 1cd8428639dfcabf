"""agentprep status command - show one preparation record."""

import json

import click

from agentprep.cli.context import get_store
from agentprep.core.errors import AgentPrepError


@click.command()
@click.argument("uid")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, uid: str, as_json: bool) -> None:
    """Show the preparation record for UID."""
    try:
        record = get_store(ctx).find_record_by_uid(uid)
    except AgentPrepError as e:
        raise click.ClickException(str(e)) from e

    if record is None:
        if as_json:
            click.echo(json.dumps({"uid": uid, "found": False}))
            ctx.exit(1)
        raise click.ClickException(f"No preparation record with uid {uid}")

    if as_json:
        click.echo(json.dumps(record.to_report_dict()))
        return

    data = record.to_report_dict()
    click.echo(f"Preparation: {record.uid}")
    click.echo(f"  Type:    {record.program_type}")
    click.echo(f"  Process: {record.process or '-'} (pid {record.pid or '-'})")
    click.echo(f"  Port:    {record.port}")
    click.echo(f"  Status:  {record.status}")
    if record.error:
        click.echo(f"  Error:   {record.error}")
    click.echo(f"  Created: {data['createTime']}")
    click.echo(f"  Updated: {data['updateTime']}")
