"""
Stream commands: add, range, read, len, trim, del, info
"""

from typing import List

import typer

from ...core.errors import PartialBatchFailure, StreamError
from ..common import (
    console,
    fail,
    get_client,
    parse_fields,
    parse_id,
    print_items,
    print_json,
)


def add_command(
    key: str = typer.Argument(..., help="Stream key"),
    fields: List[str] = typer.Argument(..., help="FIELD=VALUE pairs"),
    id: str = typer.Option("*", "--id", help="Explicit ID (default: auto-assign)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Append an item to a stream.

    Examples:
        dynastream add orders sku=A-1 qty=2
        dynastream add orders --id 1700000000-1 sku=A-1
    """
    xid = parse_id(id)
    values = parse_fields(fields)
    try:
        added = get_client().xadd(key, xid, values)
    except (StreamError, ValueError) as e:
        fail(e, json_output)

    if json_output:
        print_json({"id": str(added)})
    else:
        console.print(str(added))


def range_command(
    key: str = typer.Argument(..., help="Stream key"),
    start: str = typer.Option("-", "--start", "-s", help="Lowest ID, inclusive ('-' for the beginning)"),
    stop: str = typer.Option("+", "--stop", "-e", help="Highest ID, inclusive ('+' for the end)"),
    count: int = typer.Option(100, "--count", "-n", min=1, help="Maximum number of items"),
    reverse: bool = typer.Option(False, "--reverse", "-r", help="Newest first"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List items between two IDs.

    Examples:
        dynastream range orders
        dynastream range orders --start 1700000000-0 --count 10
        dynastream range orders --reverse -n 5 --json
    """
    lo = parse_id(start)
    hi = parse_id(stop)
    try:
        client = get_client()
        if reverse:
            items = client.xrevrange(key, hi, lo, count)
        else:
            items = client.xrange(key, lo, hi, count)
    except StreamError as e:
        fail(e, json_output)

    print_items(items, f"Stream: {key}", json_output)


def read_command(
    key: str = typer.Argument(..., help="Stream key"),
    from_id: str = typer.Option("-", "--from", help="Read items after this ID ('-' for the beginning)"),
    count: int = typer.Option(100, "--count", "-n", min=1, help="Maximum number of items"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Read items strictly after an ID.

    Examples:
        dynastream read orders
        dynastream read orders --from 1700000000-3 --json
    """
    after = parse_id(from_id)
    try:
        items = get_client().xread(key, after, count)
    except StreamError as e:
        fail(e, json_output)

    print_items(items, f"Stream: {key}", json_output)


def len_command(
    key: str = typer.Argument(..., help="Stream key"),
    start: str = typer.Option("-", "--start", "-s", help="Lowest ID, inclusive"),
    stop: str = typer.Option("+", "--stop", "-e", help="Highest ID, inclusive"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Count items in a stream (optionally within an ID window)."""
    lo = parse_id(start)
    hi = parse_id(stop)
    try:
        length = get_client().xlen(key, lo, hi)
    except StreamError as e:
        fail(e, json_output)

    if json_output:
        print_json({"key": key, "length": length})
    else:
        console.print(str(length))


def trim_command(
    key: str = typer.Argument(..., help="Stream key"),
    maxlen: int = typer.Option(..., "--maxlen", min=0, help="Number of newest items to keep"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Trim a stream to its newest items.

    Examples:
        dynastream trim orders --maxlen 1000
    """
    try:
        deleted = get_client().xtrim(key, maxlen)
    except PartialBatchFailure as e:
        fail(e, json_output, partial=e.partial)
    except StreamError as e:
        fail(e, json_output)

    if json_output:
        print_json({"key": key, "deleted": deleted})
    else:
        console.print(f"[bold]Deleted:[/bold] {deleted}")


def del_command(
    key: str = typer.Argument(..., help="Stream key"),
    ids: List[str] = typer.Argument(..., help="IDs to delete"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Delete items by ID.

    Pending entries that reference the deleted items are left in place.
    """
    xids = [parse_id(raw) for raw in ids]
    try:
        deleted = get_client().xdel(key, *xids)
    except PartialBatchFailure as e:
        fail(e, json_output, partial=[str(x) for x in e.partial])
    except StreamError as e:
        fail(e, json_output)

    if json_output:
        print_json({"deleted": [str(x) for x in deleted], "count": len(deleted)})
    else:
        for xid in deleted:
            console.print(str(xid))
        console.print(f"\n[bold]Deleted:[/bold] {len(deleted)}")


def info_command(
    key: str = typer.Argument(..., help="Stream key"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a stream's last ID, length and sequence counter."""
    try:
        info = get_client().xinfo(key)
    except StreamError as e:
        fail(e, json_output)

    if json_output:
        print_json({"key": key, **info.to_dict()})
        return

    if not info.exists:
        console.print(f"[yellow]Stream {key} has no items[/yellow]")
    console.print(f"[bold]Last ID:[/bold] {info.last_id}")
    console.print(f"[bold]Length:[/bold] {info.length}")
    console.print(f"[bold]Last sequence:[/bold] {info.last_sequence}")
