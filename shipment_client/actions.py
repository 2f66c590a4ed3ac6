"""Action table built from server introspection.

The server manifest is turned once into an immutable mapping from action
name to a bound :class:`Action`. Names can be looked up as the server
spells them or by their snake_case alias::

    table = await client.discover()
    result = await table["to_upper"].run({"message": "hi!"})
    result = await table.run("to-upper", {"message": "hi!"})
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from shipment_client.exceptions import UnknownActionError

if TYPE_CHECKING:
    from shipment_client.client import ActionInfo, AppManifest, ShipmentClient
    from shipment_client.tracker import Tracker

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[^0-9a-zA-Z]+")


def snake_case(name: str) -> str:
    """``toUpper`` / ``to-upper`` / ``To Upper`` -> ``to_upper``."""
    name = _CAMEL_BOUNDARY.sub("_", name)
    return _SEPARATORS.sub("_", name).strip("_").lower()


@dataclass(frozen=True)
class Action:
    """One remote action bound to the client that discovered it."""

    name: str
    info: ActionInfo
    client: ShipmentClient = field(repr=False, compare=False)

    @property
    def alias(self) -> str:
        return snake_case(self.name)

    async def call(self, args: dict[str, Any] | None = None, **hooks: Any) -> Tracker:
        return await self.client.call(self.name, args, **hooks)

    async def run(self, args: dict[str, Any] | None = None, **hooks: Any) -> Any:
        return await self.client.run(self.name, args, **hooks)


class ActionTable(Mapping[str, Action]):
    """Immutable mapping of discovered actions."""

    def __init__(self, actions: Mapping[str, Action], *, app_name: str | None = None) -> None:
        self.app_name = app_name
        self._actions = MappingProxyType(dict(actions))

        candidates: dict[str, list[str]] = {}
        for name, action in self._actions.items():
            alias = action.alias
            if alias != name and alias not in self._actions:
                candidates.setdefault(alias, []).append(name)

        aliases: dict[str, str] = {}
        for alias, names in candidates.items():
            if len(names) > 1:
                logger.warning("Alias %r is ambiguous (%s); use the full action name", alias, ", ".join(names))
                continue
            aliases[alias] = names[0]
        self._aliases = MappingProxyType(aliases)

    @classmethod
    def from_manifest(cls, client: ShipmentClient, manifest: AppManifest) -> ActionTable:
        actions = {
            name: Action(name=name, info=info, client=client)
            for name, info in manifest.actions.items()
        }
        return cls(actions, app_name=manifest.name)

    def resolve(self, name: str) -> str:
        """Return the server-side action name for ``name`` or its alias.

        Raises:
            UnknownActionError: If no action matches.
        """
        if name in self._actions:
            return name
        if name in self._aliases:
            return self._aliases[name]
        raise UnknownActionError(name)

    def __getitem__(self, name: str) -> Action:
        return self._actions[self.resolve(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ActionTable(app_name={self.app_name!r}, actions={list(self._actions)!r})"

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    async def call(self, name: str, args: dict[str, Any] | None = None, **hooks: Any) -> Tracker:
        return await self[name].call(args, **hooks)

    async def run(self, name: str, args: dict[str, Any] | None = None, **hooks: Any) -> Any:
        return await self[name].run(args, **hooks)


__all__ = ["Action", "ActionTable", "snake_case"]
