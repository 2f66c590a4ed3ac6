"""Shipment client exception hierarchy.

Every error raised or emitted by the client carries a correlation ID so a
failed invocation can be followed across log lines.

Usage:
    from shipment_client.exceptions import RemoteError, TransportError

    try:
        result = await client.run("to-upper", {"message": "hi"})
    except RemoteError as e:
        logger.error("Action failed: %s (%s)", e.message, e.correlation_id)
"""

import uuid
from typing import Any


class ShipmentError(Exception):
    """Base exception for all shipment client errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ConfigurationError(ShipmentError):
    """Errors from client configuration."""

    pass


class TransportError(ShipmentError):
    """The HTTP connection could not be established or broke mid-stream."""

    def __init__(self, message: str, *, url: str | None = None, **kwargs):
        self.url = url
        super().__init__(message, **kwargs)


class RemoteStatusError(ShipmentError):
    """The server answered with a non-success HTTP status.

    Distinct from :class:`RemoteError`, which is reported inside a
    successfully opened stream.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        url: str | None = None,
        body: str = "",
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(message, correlation_id=correlation_id)


class RemoteError(ShipmentError):
    """The remote action reported a failure through a lifecycle line.

    ``details`` holds every field of the remote error object other than
    ``message``.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        action: str | None = None,
        correlation_id: str | None = None,
    ):
        self.message = message
        self.details = details or {}
        self.action = action
        super().__init__(message, correlation_id=correlation_id)

    @classmethod
    def from_payload(cls, payload: Any, *, action: str | None = None) -> "RemoteError":
        """Build a RemoteError from a decoded ``SHIPMENT: error:`` payload."""
        if isinstance(payload, dict):
            details = {k: v for k, v in payload.items() if k != "message"}
            message = payload.get("message")
            if not isinstance(message, str) or not message:
                message = "Remote action failed"
            return cls(message, details, action=action)
        if isinstance(payload, str) and payload:
            return cls(payload, action=action)
        return cls("Remote action failed", {"payload": payload}, action=action)


class ProtocolError(ShipmentError):
    """The server broke the line protocol."""

    pass


class ProtocolDecodeError(ProtocolError):
    """A load-bearing record could not be decoded as JSON."""

    def __init__(self, message: str, *, raw: str = "", **kwargs):
        self.raw = raw
        super().__init__(message, **kwargs)


class StreamClosedError(ProtocolError):
    """A line arrived after the stream had already ended."""

    pass


class IncompleteRunError(ShipmentError):
    """The stream ended without a success or error signal.

    Raised for cancelled runs and for servers that hang up early.
    """

    def __init__(self, message: str, *, action: str | None = None, **kwargs):
        self.action = action
        super().__init__(message, **kwargs)


class UnknownActionError(ShipmentError, KeyError):
    """An action name is not part of the discovered action table."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(f"Unknown action: {name!r}", **kwargs)

    def __str__(self) -> str:
        return self.args[0]


class AppNameMismatchError(ConfigurationError):
    """The discovered app name does not match the expected one."""

    def __init__(self, expected: str, actual: str, **kwargs):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'App name "{actual}" does not match expected name "{expected}"',
            **kwargs,
        )
