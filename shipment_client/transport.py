"""Line streams over an HTTP response body.

The tracker only needs an ordered, lazy sequence of text lines that can be
closed. :class:`ResponseLineStream` provides that on top of a streaming
``httpx.Response`` and turns httpx failures into :class:`TransportError`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

import httpx

from shipment_client.exceptions import TransportError


@runtime_checkable
class LineStream(Protocol):
    """Anything the tracker can pump: async-iterable lines plus ``aclose()``."""

    def __aiter__(self) -> AsyncIterator[str]: ...

    async def aclose(self) -> None: ...


class ResponseLineStream:
    """Newline-split view of a streaming ``httpx.Response`` body.

    Usage::

        response = await client.send(request, stream=True)
        async for line in ResponseLineStream(response):
            ...
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def url(self) -> str:
        return str(self._response.request.url)

    async def __aiter__(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                yield line
        except httpx.TransportError as e:
            raise TransportError(
                f"Stream interrupted: {type(e).__name__}: {e}",
                url=self.url,
            ) from e
        except httpx.StreamError as e:
            raise TransportError(f"Stream unreadable: {e}", url=self.url) from e

    async def aclose(self) -> None:
        await self._response.aclose()
