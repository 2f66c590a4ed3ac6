"""Lifecycle line parsing.

Lines starting with ``SHIPMENT`` are transport-internal signals about the
running action and never reach the data channel::

    SHIPMENT: ok
    SHIPMENT: start: <free text>
    SHIPMENT: error: <JSON-encoded error object>

Matchers are tried in order; the exact ``ok`` match comes before the
prefix patterns. A sentinel line that matches none of them yields ``None``
so newer servers can add lifecycle messages without breaking old clients.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from shipment_client.exceptions import ProtocolDecodeError, RemoteError, ShipmentError
from shipment_client.protocol.records import loads_strict

SENTINEL = "SHIPMENT"
PREFIX = f"{SENTINEL}: "


@dataclass(frozen=True)
class StartSignal:
    """The remote action started; ``payload`` is the raw text after the verb."""

    payload: str
    kind: ClassVar[str] = "start"
    terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class SuccessSignal:
    """The remote action completed."""

    kind: ClassVar[str] = "success"
    terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class ErrorSignal:
    """The run failed: remote error, undecodable error payload or broken transport."""

    error: ShipmentError
    kind: ClassVar[str] = "error"
    terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class EndSignal:
    """The response stream ended. Emitted by the tracker, never parsed."""

    kind: ClassVar[str] = "end"
    terminal: ClassVar[bool] = False


LifecycleSignal = StartSignal | SuccessSignal | ErrorSignal | EndSignal


def is_lifecycle_line(line: str) -> bool:
    return line.startswith(SENTINEL)


def _verb_pattern(verb: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(PREFIX)}{verb}: (.*)$", re.DOTALL)


_START = _verb_pattern("start")
_ERROR = _verb_pattern("error")


def _match_ok(line: str, action: str | None) -> SuccessSignal | None:
    if line == f"{PREFIX}ok":
        return SuccessSignal()
    return None


def _match_start(line: str, action: str | None) -> StartSignal | None:
    match = _START.match(line)
    if match:
        return StartSignal(match.group(1))
    return None


def _match_error(line: str, action: str | None) -> ErrorSignal | None:
    match = _ERROR.match(line)
    if not match:
        return None
    raw = match.group(1)
    try:
        payload = loads_strict(raw)
    except ValueError as e:
        raise ProtocolDecodeError(
            f"Undecodable lifecycle error payload: {e}",
            raw=raw,
        ) from e
    return ErrorSignal(RemoteError.from_payload(payload, action=action))


_MATCHERS: tuple[Callable[[str, str | None], LifecycleSignal | None], ...] = (
    _match_ok,
    _match_start,
    _match_error,
)


def parse_lifecycle_line(line: str, *, action: str | None = None) -> LifecycleSignal | None:
    """Classify a sentinel-prefixed line.

    Args:
        line: A line for which :func:`is_lifecycle_line` is true.
        action: Action name attached to any :class:`RemoteError` produced.

    Returns:
        The recognised signal, or None for an unrecognised sentinel line.

    Raises:
        ProtocolDecodeError: If an error payload is not standard JSON.
    """
    for matcher in _MATCHERS:
        signal = matcher(line, action)
        if signal is not None:
            return signal
    return None
