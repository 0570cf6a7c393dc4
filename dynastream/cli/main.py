#!/usr/bin/env python3
"""
dynastream CLI - Streams and consumer groups on DynamoDB

Main entrypoint for the dynastream command-line tool. The table and endpoint
come from DYNASTREAM_* environment variables (see dynastream.config).
"""

import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..logging_config import setup_logging
from ..metrics import start_metrics_server
from .commands import group, stream

# Initialize Typer app
app = typer.Typer(
    name="dynastream",
    help="Redis-Streams-style logs and consumer groups on DynamoDB",
    add_completion=False,
)

console = Console()

app.add_typer(group.app, name="group", help="Consumer group operations")

app.command("add")(stream.add_command)
app.command("range")(stream.range_command)
app.command("read")(stream.read_command)
app.command("len")(stream.len_command)
app.command("trim")(stream.trim_command)
app.command("del")(stream.del_command)
app.command("info")(stream.info_command)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides DYNASTREAM_LOG_LEVEL"),
):
    """Configure logging and, when DYNASTREAM_METRICS_PORT is set, the metrics endpoint."""
    setup_logging(level=log_level)

    port = os.getenv("DYNASTREAM_METRICS_PORT")
    if port:
        start_metrics_server(int(port))


@app.command()
def version():
    """Show version information."""
    from .. import __version__
    from ..config import StreamConfig

    config = StreamConfig.from_env()

    table = Table(show_header=False, box=None)
    table.add_row("[bold]dynastream[/bold]", f"v{__version__}")
    table.add_row("Table", config.table)
    table.add_row("Region", config.region)
    table.add_row("Endpoint", config.endpoint_url or "AWS")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
