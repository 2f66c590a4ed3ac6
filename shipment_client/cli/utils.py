"""Shared CLI helpers."""

from typing import Any

import typer
from rich.console import Console

from shipment_client.protocol import loads_strict

console = Console()
err_console = Console(stderr=True)


def parse_arguments(args_json: str | None, pairs: list[str]) -> dict[str, Any]:
    """Merge ``--args`` JSON and repeated ``--arg key=value`` options.

    Values of ``--arg`` are decoded as JSON when possible, so ``--arg n=3``
    sends a number and ``--arg name=bob`` sends a string.
    """
    arguments: dict[str, Any] = {}
    if args_json:
        try:
            decoded = loads_strict(args_json)
        except ValueError as e:
            raise typer.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
        if not isinstance(decoded, dict):
            raise typer.BadParameter("must be a JSON object", param_hint="--args")
        arguments.update(decoded)

    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--arg")
        try:
            arguments[key] = loads_strict(raw)
        except ValueError:
            arguments[key] = raw
    return arguments
