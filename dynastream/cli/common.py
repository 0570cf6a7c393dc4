"""
Shared helpers for CLI commands: client construction, argument parsing and
output rendering.
"""

import base64
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..client import StreamClient
from ..core.xid import XAUTO, XEND, XID, XSTART
from ..streams.models import PendingItem, StreamItem

console = Console()

# Redis-style shorthands
ID_ALIASES = {"-": XSTART, "+": XEND, "*": XAUTO}


def get_client() -> StreamClient:
    """Client configured from DYNASTREAM_* environment variables."""
    return StreamClient.from_config()


def parse_id(raw: str) -> XID:
    """
    Parse a command-line ID.

    Accepts "-" (start), "+" (end), "*" (auto), a canonical XID, or the short
    form "<seconds>-<sequence>".

    Raises:
        typer.BadParameter: If raw is none of those
    """
    if raw in ID_ALIASES:
        return ID_ALIASES[raw]
    try:
        return XID.parse(raw)
    except ValueError:
        pass
    parts = raw.split("-")
    if len(parts) == 2 and all(p.isdigit() for p in parts):
        try:
            return XID.from_parts(int(parts[0]), int(parts[1]))
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e
    raise typer.BadParameter(f"not a stream ID: {raw!r}")


def parse_fields(pairs: List[str]) -> Dict[str, str]:
    """
    Parse FIELD=VALUE arguments.

    Raises:
        typer.BadParameter: If a pair has no "=" or an empty field name
    """
    fields: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected FIELD=VALUE, got {pair!r}")
        fields[name] = value
    return fields


def parse_time(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError as e:
        raise typer.BadParameter(f"not an ISO-8601 timestamp: {raw!r}") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _json_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=_json_default))


def _format_time(xid: XID) -> str:
    try:
        return xid.time.strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return "-"


def _render_value(value: Any) -> str:
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return str(value)


def print_items(items: List[StreamItem], title: str, json_output: bool) -> None:
    if json_output:
        print_json({"items": [item.to_dict() for item in items], "count": len(items)})
        return

    if not items:
        console.print("[yellow]No items[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Fields", style="green")

    for item in items:
        fields = ", ".join(f"{k}={_render_value(v)}" for k, v in sorted(item.fields.items()))
        table.add_row(str(item.id), _format_time(item.id), fields)

    console.print(table)
    console.print(f"\n[bold]Total items:[/bold] {len(items)}")


def print_pending(entries: List[PendingItem], title: str, json_output: bool) -> None:
    if json_output:
        print_json({"pending": [entry.to_dict() for entry in entries], "count": len(entries)})
        return

    if not entries:
        console.print("[yellow]No pending entries[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Consumer", style="yellow")
    table.add_column("Last delivered (UTC)", style="dim")
    table.add_column("Deliveries", style="green", justify="right")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.consumer,
            entry.last_delivered.strftime("%Y-%m-%d %H:%M:%S"),
            str(entry.delivery_count),
        )

    console.print(table)
    console.print(f"\n[bold]Total pending:[/bold] {len(entries)}")


def fail(error: Exception, json_output: bool = False, partial: Optional[Any] = None) -> NoReturn:
    """Report an error and exit with status 2."""
    if json_output:
        payload: Dict[str, Any] = {"error": str(error), "type": type(error).__name__}
        if partial is not None:
            payload["partial"] = partial
        print_json(payload)
    else:
        console.print(f"[red]Error:[/red] {error}")
        if partial is not None:
            console.print(f"[yellow]Completed before the error:[/yellow] {partial}")
    raise typer.Exit(2)
