"""CLI entry point.

Provides the ``shipment`` command with:
- call: Invoke an action and stream its output
- actions: List the actions a server exposes
- version: Show the client version
"""

import asyncio
import json
from typing import Annotated, Any, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shipment_client import __version__
from shipment_client.cli.utils import console, err_console, parse_arguments
from shipment_client.client import ShipmentClient, ShipmentClientConfig
from shipment_client.exceptions import (
    ConfigurationError,
    IncompleteRunError,
    RemoteError,
    ShipmentError,
)
from shipment_client.logging_config import configure_logging
from shipment_client.protocol import LifecycleSignal, StartSignal
from shipment_client.settings import get_settings

app = typer.Typer(
    name="shipment",
    help="Invoke actions on a shipment server and follow their output",
    add_completion=False,
    no_args_is_help=True,
)

EXIT_FAILED = 1
EXIT_INCOMPLETE = 2


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING or ERROR"),
    ] = "WARNING",
) -> None:
    """Shipment server client."""
    level = log_level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise typer.BadParameter(f"unknown level {log_level!r}", param_hint="--log-level")
    configure_logging(level)  # type: ignore[arg-type]


def _build_client(endpoint: str | None) -> ShipmentClient:
    if endpoint is None:
        return ShipmentClient()
    settings = get_settings()
    return ShipmentClient(
        ShipmentClientConfig(
            endpoint=endpoint,
            timeout=settings.shipment_timeout,
            read_timeout=settings.shipment_read_timeout,
        )
    )


@app.command()
def call(
    action: Annotated[str, typer.Argument(help="Action name, e.g. 'to-upper'")],
    args_json: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--args", "-a", help="Arguments as a JSON object"),
    ] = None,
    arg: Annotated[
        Optional[list[str]],  # noqa: UP007
        typer.Option("--arg", help="Single argument as key=value (repeatable)"),
    ] = None,
    endpoint: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--endpoint", "-e", help="Server URL (defaults to SHIPMENT_ENDPOINT)"),
    ] = None,
    logs: Annotated[
        bool,
        typer.Option("--logs/--no-logs", help="Show plain log lines"),
    ] = True,
    events: Annotated[
        bool,
        typer.Option("--events", help="Show structured data events"),
    ] = False,
) -> None:
    """Invoke an action and stream its output.

    Log lines go to stderr; the captured result is printed to stdout as JSON.
    """
    arguments = parse_arguments(args_json, arg or [])
    code = asyncio.run(_run_call(action, arguments, endpoint, logs, events))
    if code:
        raise typer.Exit(code)


async def _run_call(
    action: str,
    arguments: dict[str, Any],
    endpoint: str | None,
    show_logs: bool,
    show_events: bool,
) -> int:
    """Execute one action; returns the process exit code."""

    def on_log(line: str) -> None:
        if show_logs:
            err_console.print(line, style="dim", markup=False, highlight=False)

    def on_event(record: dict[str, Any]) -> None:
        if show_events:
            err_console.print_json(json.dumps(record))

    def on_lifecycle(signal: LifecycleSignal) -> None:
        if show_logs and isinstance(signal, StartSignal):
            err_console.print(f"[cyan]▶ {escape(action)} started[/cyan] {escape(signal.payload)}", highlight=False)

    try:
        client = _build_client(endpoint)
    except ConfigurationError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        return EXIT_FAILED

    async with client:
        try:
            tracker = await client.call(
                action,
                arguments,
                receive=on_event,
                receive_log=on_log,
                on_lifecycle=on_lifecycle,
            )
            result = await tracker.wait()
        except RemoteError as e:
            console.print(f"[red]❌ {escape(action)} failed: {escape(e.message)}[/red]")
            return EXIT_FAILED
        except IncompleteRunError:
            console.print(f"[yellow]⚠ {escape(action)} ended without reporting success[/yellow]")
            return EXIT_INCOMPLETE
        except ShipmentError as e:
            console.print(f"[red]❌ {escape(str(e))}[/red]")
            return EXIT_FAILED

    if tracker.has_result:
        console.print_json(json.dumps(result))
    return 0


@app.command()
def actions(
    endpoint: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--endpoint", "-e", help="Server URL (defaults to SHIPMENT_ENDPOINT)"),
    ] = None,
    name: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--name", "-n", help="Expected app name"),
    ] = None,
) -> None:
    """List the actions exposed by the server."""
    code = asyncio.run(_list_actions(endpoint, name or get_settings().shipment_app_name))
    if code:
        raise typer.Exit(code)


async def _list_actions(endpoint: str | None, expected_name: str | None) -> int:
    try:
        client = _build_client(endpoint)
    except ConfigurationError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        return EXIT_FAILED

    async with client:
        try:
            table = await client.discover(expected_name=expected_name)
        except ShipmentError as e:
            console.print(f"[red]❌ Discovery failed: {escape(str(e))}[/red]")
            return EXIT_FAILED

    if not table:
        console.print(f"[yellow]{escape(table.app_name or '')} exposes no actions.[/yellow]")
        return 0

    output = Table(title=f"{table.app_name} ({len(table)} actions)", show_header=True)
    output.add_column("Action", style="cyan")
    output.add_column("Alias")
    output.add_column("Description")
    for action_name, action in sorted(table.items()):
        alias = action.alias if table.aliases.get(action.alias) == action_name else ""
        output.add_row(action_name, alias, action.info.description or "")
    console.print(output)
    return 0


@app.command()
def version() -> None:
    """Show the client version."""
    console.print(
        Panel(
            f"[bold]shipment-client[/bold] {__version__}\nEndpoint: {get_settings().shipment_endpoint}",
            title="📦 Shipment",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
