"""Per-invocation line demultiplexer.

A :class:`Tracker` owns the response stream of exactly one action call. It
feeds every line through the lifecycle parser or the record classifier and
hands the outcome to one of three channels supplied at construction:

* ``on_lifecycle(signal)`` for start / success / error / end;
* ``receive(record)`` for context-bearing JSON records;
* ``receive_log(text)`` for everything else.

Lines are handled strictly one at a time in arrival order; a slow
receiver holds back the next read from the stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from shipment_client.exceptions import (
    IncompleteRunError,
    ProtocolDecodeError,
    StreamClosedError,
    TransportError,
)
from shipment_client.protocol import (
    EndSignal,
    ErrorSignal,
    LifecycleSignal,
    LogLine,
    StartSignal,
    SuccessSignal,
    classify_record,
    is_lifecycle_line,
    parse_lifecycle_line,
)
from shipment_client.transport import LineStream

logger = logging.getLogger(__name__)

Receiver = Callable[[dict[str, Any]], None]
LogReceiver = Callable[[str], None]
LifecycleListener = Callable[[LifecycleSignal], None]


def _noop(*args: Any) -> None:
    pass


class Tracker:
    """Tracks one running action and exposes its lifecycle, data and log channels.

    Usage::

        tracker = await client.call("build", {"ref": "main"}, receive_log=print)
        result = await tracker.wait()

    A tracker can also be driven by hand, which is how tests replay
    recorded streams::

        tracker = Tracker(receive=events.append)
        for line in lines:
            tracker.receive_line(line)
        tracker.on_stream_end()
    """

    def __init__(
        self,
        stream: LineStream | None = None,
        *,
        action: str | None = None,
        capture_result: bool = True,
        receive: Receiver | None = None,
        receive_log: LogReceiver | None = None,
        on_lifecycle: LifecycleListener | None = None,
    ) -> None:
        self.action = action
        self.capture_result = capture_result
        self._receive = receive or _noop
        self._receive_log = receive_log or _noop
        self._on_lifecycle = on_lifecycle or _noop

        self._result: Any = None
        self._has_result = False
        self._ended = False
        self._started = False
        self._started_payload: str | None = None
        self._terminal: SuccessSignal | ErrorSignal | None = None
        self._signals: list[LifecycleSignal] = []
        self._stats = {"lines": 0, "lifecycle": 0, "ignored": 0, "data": 0, "log": 0}

        self._done = asyncio.Event()
        self._stream: LineStream | None = None
        self._stream_closed = False
        self._task: asyncio.Task[None] | None = None
        if stream is not None:
            self.start(stream)

    # ─── Line handling ───────────────────────────────────────────────────

    def receive_line(self, line: str) -> None:
        """Classify one line and deliver it to exactly one channel.

        Raises:
            StreamClosedError: If the stream has already ended.
        """
        if self._ended:
            raise StreamClosedError(f"Line received after end of stream: {line[:200]!r}")

        self._stats["lines"] += 1

        # Lifecycle lines are consumed here and never reach the receivers
        if is_lifecycle_line(line):
            self._receive_lifecycle_line(line)
            return

        outcome = classify_record(line)
        if isinstance(outcome, LogLine):
            self._stats["log"] += 1
            self._receive_log(outcome.text)
            return

        self._stats["data"] += 1
        if self.capture_result and outcome.is_root and outcome.has_result:
            # Last write wins
            self._result = outcome.result
            self._has_result = True
        self._receive(outcome.data)

    def _receive_lifecycle_line(self, line: str) -> None:
        signal: LifecycleSignal | None
        try:
            signal = parse_lifecycle_line(line, action=self.action)
        except ProtocolDecodeError as e:
            logger.warning("Undecodable lifecycle line for %s: %s", self.action, line[:200])
            signal = ErrorSignal(e)

        if signal is None:
            self._stats["ignored"] += 1
            logger.debug("Ignoring unrecognised lifecycle line: %s", line[:200])
            return

        if self._emit(signal):
            self._stats["lifecycle"] += 1
        else:
            self._stats["ignored"] += 1

    def _emit(self, signal: StartSignal | SuccessSignal | ErrorSignal) -> bool:
        """Emit a parsed signal unless it breaks ``start? -> (success | error)?``."""
        if self._terminal is not None:
            logger.warning(
                "Dropping %s signal for %s after %s",
                signal.kind,
                self.action,
                self._terminal.kind,
            )
            return False

        if isinstance(signal, StartSignal):
            if self._started:
                logger.warning("Dropping duplicate start signal for %s", self.action)
                return False
            self._started = True
            self._started_payload = signal.payload
        else:
            self._terminal = signal

        self._signals.append(signal)
        self._on_lifecycle(signal)
        return True

    def on_stream_end(self) -> None:
        """Mark the stream as ended and emit the end signal exactly once."""
        if self._ended:
            return
        self._ended = True
        signal = EndSignal()
        self._signals.append(signal)
        self._done.set()
        self._on_lifecycle(signal)

    # ─── Stream pumping ──────────────────────────────────────────────────

    def start(self, stream: LineStream) -> asyncio.Task[None]:
        """Start consuming ``stream`` in a background task.

        Must be called from a running event loop.
        """
        if self._task is not None:
            raise RuntimeError("Tracker is already attached to a stream")
        self._stream = stream
        self._task = asyncio.create_task(
            self._pump(stream),
            name=f"shipment-tracker:{self.action or 'action'}",
        )
        return self._task

    async def _pump(self, stream: LineStream) -> None:
        try:
            async for line in stream:
                if self._ended:
                    break
                try:
                    self.receive_line(line)
                except Exception:
                    logger.exception("Error processing line for %s", self.action)
        except TransportError as e:
            logger.warning("Stream for %s failed: %s", self.action, e)
            self._emit(ErrorSignal(e))
        finally:
            try:
                await self._close_stream()
            finally:
                self.on_stream_end()

    async def _close_stream(self) -> None:
        if self._stream is None or self._stream_closed:
            return
        self._stream_closed = True
        try:
            await self._stream.aclose()
        except Exception:
            logger.warning("Failed to close stream for %s", self.action, exc_info=True)

    async def cancel(self) -> None:
        """Abort the stream.

        Once this returns no receiver fires again. A run cancelled before
        its terminal signal ends with only the end signal.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            logger.info("Cancelled %s", self.action)
        # The pump may have been cancelled before it ever ran
        await self._close_stream()
        self.on_stream_end()

    async def wait(self) -> Any:
        """Wait for the stream to end and return the captured result.

        Returns:
            The last root ``result`` value (None if nothing was captured).

        Raises:
            RemoteError: If the action reported an error.
            ProtocolDecodeError: If the error payload could not be decoded.
            TransportError: If the stream broke before a terminal signal.
            IncompleteRunError: If the stream ended without success or error.
        """
        if self._task is not None:
            await asyncio.wait({self._task})
            if self._task.cancelled():
                self.on_stream_end()
            elif self._task.exception() is not None:
                raise self._task.exception()
        await self._done.wait()

        if isinstance(self._terminal, ErrorSignal):
            raise self._terminal.error
        if isinstance(self._terminal, SuccessSignal):
            return self._result
        raise IncompleteRunError(
            f"Stream for {self.action or 'action'} ended without a success or error signal",
            action=self.action,
        )

    # ─── State ───────────────────────────────────────────────────────────

    @property
    def result(self) -> Any:
        """Current captured result; may still change until the stream ends."""
        return self._result

    @property
    def has_result(self) -> bool:
        return self._has_result

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def started(self) -> bool:
        return self._started

    @property
    def started_payload(self) -> str | None:
        return self._started_payload

    @property
    def succeeded(self) -> bool:
        return isinstance(self._terminal, SuccessSignal)

    @property
    def completed(self) -> bool:
        """True once a success or error signal was seen."""
        return self._terminal is not None

    @property
    def error(self) -> Exception | None:
        if isinstance(self._terminal, ErrorSignal):
            return self._terminal.error
        return None

    @property
    def signals(self) -> tuple[LifecycleSignal, ...]:
        return tuple(self._signals)

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)


__all__ = ["LifecycleListener", "LogReceiver", "Receiver", "Tracker"]
