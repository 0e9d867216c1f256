"""Tests for tool registration and routing in the MCP server.

Handler behavior is tested in tests/test_mcp/tools/test_dictionary.py;
this file only tests the server routing layer, the ping tool and the
argument parser.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import mcp.types as types
import pytest

from dictionary_sync import __version__
from dictionary_sync.logger import DEFAULT_MCP_LOG_FILE
from dictionary_sync.mcp import server
from dictionary_sync.mcp.server import (
    PING_SPEC,
    build_parser,
    get_orchestrator,
    get_registry,
    handle_call_tool,
    handle_list_tools,
    set_orchestrator,
    set_registry,
)
from dictionary_sync.mcp.tools import ALL_SPECS
from dictionary_sync.mcp.tools.registry import ToolRegistry


@pytest.fixture
def wired(make_orchestrator):
    orchestrator = make_orchestrator()
    set_registry(ToolRegistry([PING_SPEC] + ALL_SPECS))
    set_orchestrator(orchestrator)
    yield orchestrator
    set_registry(None)
    set_orchestrator(None)


class TestAccessors:
    def test_uninitialized_raise(self):
        set_registry(None)
        set_orchestrator(None)
        with pytest.raises(RuntimeError, match="not initialized"):
            get_registry()
        with pytest.raises(RuntimeError, match="lifespan not started"):
            get_orchestrator()


class TestRouting:
    async def test_list_tools(self, wired):
        names = {tool.name for tool in await handle_list_tools()}
        assert names == {
            "ping",
            "dictionary_add_selection",
            "dictionary_remove_word",
            "dictionary_list",
            "dictionary_sync",
            "dictionary_status",
        }

    async def test_ping(self, wired):
        await wired.add_word("fox")
        result = await handle_call_tool("ping", None)
        text = result.content[0].text
        assert f"version {__version__}" in text
        assert "1 words, phase: idle." in text

    async def test_routes_to_handler(self, wired):
        result = await handle_call_tool(
            "dictionary_add_selection", {"text": "fox"}
        )
        assert not result.isError
        assert wired.words == ["fox"]

    async def test_unknown_tool(self, wired):
        result = await handle_call_tool("ticket_create", {})
        assert isinstance(result, types.CallToolResult)
        assert result.isError
        assert "unknown_tool" in result.content[0].text
        assert "Use list_tools" in result.content[0].text


class TestMain:
    async def test_read_only_registry_and_cleanup(self, capsys):
        orchestrator = MagicMock()
        seen = {}

        class _Lifespan:
            def __init__(self, config_overrides):
                seen["overrides"] = config_overrides

            async def __aenter__(self):
                return {"orchestrator": orchestrator}

            async def __aexit__(self, *exc):
                return False

        stdio = MagicMock()
        stdio.return_value.__aenter__ = AsyncMock(
            return_value=(MagicMock(), MagicMock())
        )
        stdio.return_value.__aexit__ = AsyncMock(return_value=False)

        async def _run(*args):
            seen["registry"] = get_registry()
            seen["orchestrator"] = get_orchestrator()

        with (
            patch("dictionary_sync.mcp.server.setup_logging") as mock_logging,
            patch("dictionary_sync.mcp.server.server_lifespan", _Lifespan),
            patch("mcp.server.stdio.stdio_server", stdio),
            patch.object(server.server, "run", side_effect=_run),
        ):
            await server.main(
                {"read_only": True, "log_file": "/tmp/x.log", "store": "memory"}
            )

        mock_logging.assert_called_once_with(
            mode="mcp", debug=False, log_file="/tmp/x.log"
        )
        assert seen["overrides"] == {"store": "memory"}
        assert seen["orchestrator"] is orchestrator
        names = {t.name for t in seen["registry"].list_tools()}
        assert names == {"ping", "dictionary_list", "dictionary_status"}
        assert "Read-only mode (3 of 6 tools enabled)" in capsys.readouterr().err
        with pytest.raises(RuntimeError):
            get_registry()


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.log_file == DEFAULT_MCP_LOG_FILE
        assert args.read_only is False
        assert args.store is None

    def test_flags(self):
        args = build_parser().parse_args(
            ["--store", "aspell", "--store-path", "~/.aspell.en.pws", "--read-only"]
        )
        assert args.store == "aspell"
        assert args.store_path == "~/.aspell.en.pws"
        assert args.read_only is True

    def test_run_exits_1_on_startup_error(self):
        with patch(
            "dictionary_sync.mcp.server.main",
            side_effect=RuntimeError("Configuration error: bad"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                server.run(["--store", "memory"])
        assert exc_info.value.code == 1
