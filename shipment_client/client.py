"""HTTP client for shipment servers.

Dispatches actions as ``POST <endpoint>/<action>`` with a JSON body and
wires the streamed response to a :class:`~shipment_client.tracker.Tracker`.
Failures to reach the server are raised from :meth:`ShipmentClient.call`
itself; everything after the response headers arrive is reported through
the tracker.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field, ValidationError

from shipment_client import __version__
from shipment_client.actions import ActionTable
from shipment_client.exceptions import (
    AppNameMismatchError,
    ConfigurationError,
    ProtocolDecodeError,
    RemoteStatusError,
    TransportError,
)
from shipment_client.settings import get_settings
from shipment_client.tracker import LifecycleListener, LogReceiver, Receiver, Tracker
from shipment_client.transport import ResponseLineStream

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}
_BODY_EXCERPT = 500


class ShipmentClientConfig(BaseModel):
    """Configuration for the shipment client."""

    endpoint: str = Field(..., description="Base URL of the shipment server")
    timeout: float = Field(default=10.0, gt=0, description="Connect/write/pool timeout in seconds")
    read_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the next line (None = no limit)",
    )
    user_agent: str = Field(default=f"shipment-client/{__version__}")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")


class ActionInfo(BaseModel):
    """One action entry of the server manifest."""

    model_config = {"extra": "allow"}

    description: str | None = None


class AppManifest(BaseModel):
    """The ``app`` object returned by ``GET <endpoint>``."""

    name: str
    actions: dict[str, ActionInfo] = Field(default_factory=dict)


def build_action_url(endpoint: str, action: str) -> str:
    """Join endpoint and action with exactly one slash."""
    return f"{endpoint.rstrip('/')}/{action.lstrip('/')}"


class ShipmentClient:
    """Client for invoking actions on a shipment server.

    Usage::

        async with ShipmentClient(ShipmentClientConfig(endpoint="http://localhost:6565")) as client:
            tracker = await client.call("to-upper", {"message": "hi!"}, receive_log=print)
            result = await tracker.wait()

            # or, request/response style
            result = await client.run("to-upper", {"message": "hi!"})
    """

    def __init__(
        self,
        config: ShipmentClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            config: Optional configuration (uses settings if not provided)
            http_client: Optional pre-built httpx client (e.g. with a mock transport)
        """
        if config is None:
            config = self._resolve_config()
        scheme = urlparse(config.endpoint).scheme
        if scheme not in _ALLOWED_SCHEMES:
            msg = f"Invalid endpoint scheme '{scheme}'. Only {sorted(_ALLOWED_SCHEMES)} allowed."
            raise ConfigurationError(msg)
        self.config = config
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self.actions: ActionTable | None = None

    @staticmethod
    def _resolve_config() -> ShipmentClientConfig:
        settings = get_settings()
        return ShipmentClientConfig(
            endpoint=settings.shipment_endpoint,
            timeout=settings.shipment_timeout,
            read_timeout=settings.shipment_read_timeout,
        )

    @classmethod
    async def create(
        cls,
        endpoint: str,
        name: str | None = None,
        **kwargs: Any,
    ) -> ShipmentClient:
        """Build a client and discover the server's actions in one step.

        Args:
            endpoint: Base URL of the shipment server.
            name: Expected app name, verified against the manifest.
            **kwargs: Extra ``ShipmentClientConfig`` fields.

        Returns:
            A client whose ``actions`` table is populated.
        """
        client = cls(ShipmentClientConfig(endpoint=endpoint, **kwargs))
        try:
            await client.discover(expected_name=name)
        except Exception:
            await client.close()
            raise
        return client

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared httpx.AsyncClient.

        Created lazily on first use and reused across calls; each call
        still gets its own response stream.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout, read=self.config.read_timeout),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client if this client created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> ShipmentClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
            **self.config.headers,
        }

    async def _open(self, method: str, url: str, body: bytes | None = None) -> httpx.Response:
        """Send a request and return the response with its body still unread.

        Raises:
            TransportError: If the server cannot be reached.
            RemoteStatusError: If the server answers with a non-2xx status.
        """
        client = self._get_http_client()
        request = client.build_request(method, url, content=body, headers=self._headers())
        try:
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout connecting to {url}", url=url) from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection to {url} failed: {type(e).__name__}", url=url) from e

        if not response.is_success:
            try:
                await response.aread()
                text = response.text[:_BODY_EXCERPT]
            except httpx.HTTPError:
                text = ""
            finally:
                await response.aclose()
            raise RemoteStatusError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                url=url,
                body=text,
            )
        return response

    async def call(
        self,
        action: str,
        args: dict[str, Any] | None = None,
        *,
        capture_result: bool = True,
        receive: Receiver | None = None,
        receive_log: LogReceiver | None = None,
        on_lifecycle: LifecycleListener | None = None,
    ) -> Tracker:
        """Invoke an action and return the tracker observing it.

        Returns as soon as the response headers arrive; the body is
        consumed in the background by the tracker.

        Args:
            action: Remote action name.
            args: JSON-serialisable argument object.
            capture_result: Keep the last root ``result`` value.
            receive: Called with every data record.
            receive_log: Called with every plain log line.
            on_lifecycle: Called with every lifecycle signal.

        Returns:
            Tracker bound to the response stream.

        Raises:
            TransportError: If the server cannot be reached.
            RemoteStatusError: If the server answers with a non-2xx status.
        """
        url = build_action_url(self.endpoint, action)
        body = json.dumps(args if args is not None else {}).encode("utf-8")

        logger.info("Calling %s", url)
        response = await self._open("POST", url, body)

        return Tracker(
            ResponseLineStream(response),
            action=action,
            capture_result=capture_result,
            receive=receive,
            receive_log=receive_log,
            on_lifecycle=on_lifecycle,
        )

    async def run(
        self,
        action: str,
        args: dict[str, Any] | None = None,
        **hooks: Any,
    ) -> Any:
        """Invoke an action and wait for its result.

        Raises:
            RemoteError: If the action reports a failure.
            IncompleteRunError: If the stream ends without a terminal signal.
        """
        tracker = await self.call(action, args, **hooks)
        return await tracker.wait()

    async def fetch_manifest(self) -> AppManifest:
        """Fetch the ``app`` description from ``GET <endpoint>``.

        Raises:
            ProtocolDecodeError: If the body is not a valid manifest.
        """
        url = self.endpoint
        response = await self._open("GET", url)
        try:
            await response.aread()
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to read manifest from {url}", url=url) from e
        finally:
            await response.aclose()

        try:
            body = response.json()
            return AppManifest.model_validate(body["app"])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise ProtocolDecodeError(
                f"Invalid manifest from {url}: {e}",
                raw=response.text[:_BODY_EXCERPT],
            ) from e

    async def discover(self, expected_name: str | None = None) -> ActionTable:
        """Build the action table from the server manifest.

        Args:
            expected_name: If given, must equal the manifest's app name.

        Raises:
            AppNameMismatchError: If the app name differs.
        """
        manifest = await self.fetch_manifest()
        if expected_name and expected_name != manifest.name:
            raise AppNameMismatchError(expected_name, manifest.name)

        table = ActionTable.from_manifest(self, manifest)
        self.actions = table
        logger.info("Discovered %d actions on %s (%s)", len(table), self.endpoint, manifest.name)
        return table


__all__ = [
    "ActionInfo",
    "AppManifest",
    "ShipmentClient",
    "ShipmentClientConfig",
    "build_action_url",
]
