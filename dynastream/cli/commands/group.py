"""
Consumer group commands: create, read, ack, claim, pending
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import typer

from ...core.errors import PartialBatchFailure, StreamError
from ...streams.models import ReadMode
from ..common import (
    console,
    fail,
    get_client,
    parse_id,
    parse_time,
    print_items,
    print_json,
    print_pending,
)

app = typer.Typer()


@app.command()
def create(
    key: str = typer.Argument(..., help="Stream key"),
    group: str = typer.Argument(..., help="Group name"),
    start: str = typer.Option("-", "--start", "-s", help="Deliver items after this ID ('-' for all)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create a consumer group, or reset its cursor.

    Examples:
        dynastream group create orders billing
        dynastream group create orders billing --start 1700000000-7
    """
    xid = parse_id(start)
    try:
        get_client().xgroup(key, group, xid)
    except (StreamError, ValueError) as e:
        fail(e, json_output)

    if json_output:
        print_json({"key": key, "group": group, "start": str(xid)})
    else:
        console.print(f"[green]Group {group} on {key} delivers items after {xid}[/green]")


@app.command()
def read(
    key: str = typer.Argument(..., help="Stream key"),
    group: str = typer.Argument(..., help="Group name"),
    consumer: str = typer.Argument(..., help="Consumer name"),
    mode: ReadMode = typer.Option(ReadMode.READ_NEW, "--mode", "-m", help="Read mode"),
    count: int = typer.Option(1, "--count", "-n", min=1, help="Maximum items (PENDING mode)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Read through a consumer group.

    Examples:
        dynastream group read orders billing worker-1
        dynastream group read orders billing worker-1 --mode PENDING -n 10
        dynastream group read orders audit worker-1 --mode READ_NEW_NO_ACK --json
    """
    try:
        items = get_client().xreadgroup(key, group, consumer, mode, count)
    except PartialBatchFailure as e:
        fail(e, json_output, partial=[item.to_dict() for item in e.partial])
    except StreamError as e:
        fail(e, json_output)

    print_items(items, f"Group: {group} ({mode.value})", json_output)


@app.command()
def ack(
    key: str = typer.Argument(..., help="Stream key"),
    group: str = typer.Argument(..., help="Group name"),
    ids: List[str] = typer.Argument(..., help="IDs to acknowledge"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Acknowledge items, removing them from the pending ledger."""
    xids = [parse_id(raw) for raw in ids]
    try:
        acked = get_client().xack(key, group, *xids)
    except PartialBatchFailure as e:
        fail(e, json_output, partial=[str(x) for x in e.partial])
    except StreamError as e:
        fail(e, json_output)

    if json_output:
        print_json({"acknowledged": [str(x) for x in acked], "count": len(acked)})
    else:
        for xid in acked:
            console.print(str(xid))
        console.print(f"\n[bold]Acknowledged:[/bold] {len(acked)}")


@app.command()
def claim(
    key: str = typer.Argument(..., help="Stream key"),
    group: str = typer.Argument(..., help="Group name"),
    consumer: str = typer.Argument(..., help="Consumer taking over the entries"),
    ids: List[str] = typer.Argument(..., help="IDs to claim"),
    min_idle: int = typer.Option(60, "--min-idle", min=0, help="Only claim entries idle at least this many seconds"),
    before: Optional[str] = typer.Option(None, "--before", help="Only claim entries last delivered at or before this ISO-8601 time (overrides --min-idle)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Take over stale pending entries.

    Examples:
        dynastream group claim orders billing worker-2 1700000000-1 --min-idle 300
        dynastream group claim orders billing worker-2 1700000000-1 --before 2024-01-01T00:00:00
    """
    xids = [parse_id(raw) for raw in ids]
    if before is not None:
        threshold = parse_time(before)
    else:
        threshold = datetime.now(timezone.utc) - timedelta(seconds=min_idle)

    try:
        items = get_client().xclaim(key, group, consumer, threshold, *xids)
    except PartialBatchFailure as e:
        fail(e, json_output, partial=[item.to_dict() for item in e.partial])
    except StreamError as e:
        fail(e, json_output)

    print_items(items, f"Claimed by {consumer}", json_output)


@app.command()
def pending(
    key: str = typer.Argument(..., help="Stream key"),
    group: str = typer.Argument(..., help="Group name"),
    count: int = typer.Option(100, "--count", "-n", min=1, help="Maximum entries"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List a group's pending entries (all consumers)."""
    try:
        entries = get_client().xpending(key, group, count)
    except StreamError as e:
        fail(e, json_output)

    print_pending(entries, f"Pending: {key} / {group}", json_output)
