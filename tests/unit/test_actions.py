"""Unit tests for the discovered action table."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shipment_client.actions import Action, ActionTable, snake_case
from shipment_client.client import ActionInfo, AppManifest
from shipment_client.exceptions import UnknownActionError


def _table(*names: str) -> tuple[ActionTable, MagicMock]:
    client = MagicMock()
    client.call = AsyncMock(return_value="tracker")
    client.run = AsyncMock(return_value={"data": "HI!"})
    manifest = AppManifest(name="demo", actions={n: ActionInfo() for n in names})
    return ActionTable.from_manifest(client, manifest), client


class TestSnakeCase:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("to-upper", "to_upper"),
            ("toUpper", "to_upper"),
            ("To Upper", "to_upper"),
            ("build", "build"),
            ("deploy.v2", "deploy_v2"),
            ("--weird--", "weird"),
        ],
    )
    def test_conversion(self, name, expected):
        assert snake_case(name) == expected


class TestActionTable:
    def test_mapping_interface(self):
        table, _ = _table("to-upper", "build")
        assert len(table) == 2
        assert set(table) == {"to-upper", "build"}
        assert "to-upper" in table
        assert "to_upper" in table
        assert "missing" not in table
        assert table.app_name == "demo"

    def test_lookup_by_alias(self):
        table, _ = _table("to-upper")
        assert table["to_upper"] is table["to-upper"]
        assert table.resolve("to_upper") == "to-upper"

    def test_unknown_action(self):
        table, _ = _table("to-upper")
        with pytest.raises(UnknownActionError) as exc_info:
            table["nope"]
        assert exc_info.value.name == "nope"
        assert table.get("nope") is None

    def test_unknown_action_is_key_error(self):
        table, _ = _table()
        with pytest.raises(KeyError):
            table["nope"]

    def test_ambiguous_alias_dropped(self, caplog):
        table, _ = _table("to-upper", "toUpper")
        assert "to_upper" not in table.aliases
        assert "ambiguous" in caplog.text
        assert table["toUpper"].name == "toUpper"

    def test_real_name_beats_alias(self):
        table, _ = _table("to_upper", "to-upper")
        assert table["to_upper"].name == "to_upper"

    def test_is_read_only(self):
        table, _ = _table("build")
        with pytest.raises(TypeError):
            table._actions["x"] = None  # type: ignore[index]

    @pytest.mark.asyncio()
    async def test_call_and_run_dispatch_to_client(self):
        table, client = _table("to-upper")

        assert await table.call("to_upper", {"message": "hi!"}) == "tracker"
        client.call.assert_awaited_once_with("to-upper", {"message": "hi!"})

        receive = MagicMock()
        assert await table.run("to-upper", {"message": "hi!"}, receive=receive) == {"data": "HI!"}
        client.run.assert_awaited_once_with("to-upper", {"message": "hi!"}, receive=receive)


class TestAction:
    def test_alias(self):
        action = Action(name="toUpper", info=ActionInfo(), client=MagicMock())
        assert action.alias == "to_upper"

    def test_extra_manifest_fields_kept(self):
        info = ActionInfo.model_validate({"description": "d", "args": ["message"]})
        assert info.description == "d"
        assert info.model_extra == {"args": ["message"]}
