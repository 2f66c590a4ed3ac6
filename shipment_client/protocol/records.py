"""Data/log classification for non-lifecycle lines.

A line is a data record only if it parses as a JSON object *and* carries
the context field. Programs print JSON-looking output all the time, so
valid syntax alone is not enough.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

CONTEXT_FIELD = "c"
ROOT_CONTEXT = "0"
RESULT_FIELD = "result"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def loads_strict(text: str) -> Any:
    """Decode standard JSON only.

    ``NaN`` and ``Infinity`` are rejected, and input nested too deeply for
    the decoder is reported like any other syntax error.

    Raises:
        ValueError: If ``text`` is not a standard JSON document.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e


@dataclass(frozen=True)
class DataRecord:
    """A structured event emitted by the running action."""

    data: dict[str, Any]

    @property
    def context(self) -> Any:
        return self.data[CONTEXT_FIELD]

    @property
    def is_root(self) -> bool:
        return self.context == ROOT_CONTEXT

    @property
    def has_result(self) -> bool:
        return RESULT_FIELD in self.data

    @property
    def result(self) -> Any:
        return self.data.get(RESULT_FIELD)


@dataclass(frozen=True)
class LogLine:
    """Opaque output, kept exactly as received."""

    text: str


def classify_record(line: str) -> DataRecord | LogLine:
    """Split a non-lifecycle line into a data record or a log line.

    Args:
        line: Raw line as received from the stream.

    Returns:
        DataRecord for a context-bearing JSON object, LogLine otherwise.
    """
    try:
        obj = loads_strict(line)
    except ValueError:
        return LogLine(line)

    # Valid JSON without a context marker is ordinary program output
    if not isinstance(obj, dict) or not obj.get(CONTEXT_FIELD):
        return LogLine(line)

    return DataRecord(obj)
