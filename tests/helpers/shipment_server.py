"""In-memory shipment server for client tests.

Serves the manifest on ``GET /`` and scripted line streams on
``POST /<action>`` through ``httpx.MockTransport``, recording every request
so tests can assert on URL, headers and body.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

import httpx

from shipment_client.client import ShipmentClient, ShipmentClientConfig

ENDPOINT = "http://shipment.test:6565"

Script = Callable[[dict[str, Any]], httpx.Response]


def shipment_body(lines: Iterable[str]) -> bytes:
    return "".join(f"{line}\n" for line in lines).encode("utf-8")


def shipment_response(*lines: str, status_code: int = 200) -> httpx.Response:
    """A response whose body is ``lines`` joined by newlines."""
    return httpx.Response(status_code, content=shipment_body(lines))


def chunked_response(*chunks: bytes, error: Exception | None = None) -> httpx.Response:
    """A response streamed in the given chunks, optionally failing afterwards."""

    async def _stream() -> AsyncIterator[bytes]:
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    return httpx.Response(200, content=_stream())


class FakeShipmentServer:
    """Records requests and answers them from per-action scripts."""

    def __init__(self, app_name: str = "test-app") -> None:
        self.app_name = app_name
        self.requests: list[httpx.Request] = []
        self.scripts: dict[str, Script] = {}
        self.descriptions: dict[str, str] = {}
        self.manifest_response: httpx.Response | None = None

    def action(self, name: str, *lines: str, description: str = "") -> None:
        """Serve a fixed line stream for ``name``."""
        self.scripts[name] = lambda args: shipment_response(*lines)
        self.descriptions[name] = description

    def script(self, name: str, script: Script, description: str = "") -> None:
        """Serve ``script(args)`` for ``name``."""
        self.scripts[name] = script
        self.descriptions[name] = description

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            if self.manifest_response is not None:
                return self.manifest_response
            return httpx.Response(
                200,
                json={
                    "app": {
                        "name": self.app_name,
                        "actions": {
                            name: {"description": description}
                            for name, description in self.descriptions.items()
                        },
                    }
                },
            )

        name = request.url.path.lstrip("/")
        if name not in self.scripts:
            return httpx.Response(404, text=f"No action {name}")
        args = json.loads(request.content or b"{}")
        return self.scripts[name](args)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def client(self, endpoint: str = ENDPOINT) -> ShipmentClient:
        return ShipmentClient(
            ShipmentClientConfig(endpoint=endpoint),
            http_client=self.http_client(),
        )


def to_upper(args: dict[str, Any]) -> httpx.Response:
    """The classic demo action: upper-cases ``message``."""
    message = str(args.get("message", ""))
    return shipment_response(
        "SHIPMENT: start: to-upper",
        "converting message",
        json.dumps({"c": "0", "progress": 0.5}),
        json.dumps({"c": "0", "result": {"data": message.upper()}}),
        "SHIPMENT: ok",
    )
