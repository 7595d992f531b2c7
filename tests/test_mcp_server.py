# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the MCP Server Protocol Layer."""

import os
from pathlib import Path

import pytest

# Skip tests if mcp package not available (requires Python 3.10+)
pytest.importorskip("mcp", reason="MCP package requires Python 3.10+")

from agents_md_injector.client import BufferedHostClient  # noqa: E402
from agents_md_injector.config import Config  # noqa: E402
from agents_md_injector.mcp_server import (  # noqa: E402
    SERVER_NAME,
    AgentsMdInjectorMCPServer,
    parse_args,
)


def _make_server(tmp_path: Path, project_root: Path, config_text: str = "") -> AgentsMdInjectorMCPServer:
    config_path = tmp_path / "config.yml"
    config_path.write_text(config_text)
    return AgentsMdInjectorMCPServer(
        project_root=project_root,
        config=Config(config_path=config_path),
        data_root=tmp_path / "data",
        run_id="test-run",
    )


class TestAgentsMdInjectorMCPServer:
    def test_server_initialization(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root)

        assert server.mcp.name == SERVER_NAME
        assert server.injector.project_root == str(project_root)
        assert (tmp_path / "data" / "injections").is_dir()
        assert server.injection_logger is not None
        server.shutdown()

    def test_injection_logging_can_be_disabled(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root, "enable_injection_logging: false\n")

        assert server.injection_logger is None
        assert server.get_injection_statistics()["total_injections"] == 0
        server.shutdown()

    @pytest.mark.asyncio
    async def test_tools_are_registered(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root)

        tools = await server.mcp.list_tools()

        assert {tool.name for tool in tools} == {
            "begin_read",
            "complete_read",
            "read_with_agents_md",
            "get_injection_statistics",
            "get_recent_injections",
        }
        server.shutdown()

    @pytest.mark.asyncio
    async def test_begin_and_complete_read(self, tmp_path, project_root, caplog):
        (project_root / "src" / "AGENTS.md").write_text("src agents")
        server = _make_server(tmp_path, project_root)

        begin = await server.handle_begin_read("call-1", "src/file.ts")
        with caplog.at_level("INFO", logger="agents_md_injector.client"):
            result = await server.handle_complete_read("call-1", "session-1")

        assert begin == {"call_id": "call-1", "recorded": True}
        assert result["session_id"] == "session-1"
        assert result["messages"] == [
            {
                "session_id": "session-1",
                "text": f'<agents-md path="{os.path.join("src", "AGENTS.md")}">\n'
                "src agents\n</agents-md>",
                "no_reply": True,
            }
        ]
        assert f"Toast [info]: Injected {os.path.join('src', 'AGENTS.md')}" in caplog.text
        assert server.get_injection_statistics()["total_injections"] == 1
        server.shutdown()

    @pytest.mark.asyncio
    async def test_read_with_agents_md(self, tmp_path, project_root):
        (project_root / "src" / "AGENTS.md").write_text("src agents")
        (project_root / "src" / "main.py").write_text("print('hi')\n")
        server = _make_server(tmp_path, project_root)

        first = await server.handle_read_with_agents_md("src/main.py", "session-1")
        second = await server.handle_read_with_agents_md(
            str(project_root / "src" / "main.py"), "session-1"
        )

        assert first["content"] == "print('hi')\n"
        assert len(first["messages"]) == 1
        assert second["messages"] == []
        server.shutdown()

    @pytest.mark.asyncio
    async def test_read_with_agents_md_missing_file(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root)

        with pytest.raises(FileNotFoundError):
            await server.handle_read_with_agents_md("src/missing.py", "session-1")
        server.shutdown()

    @pytest.mark.asyncio
    async def test_begin_read_when_injection_disabled(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root, "enable_injection: false\n")

        begin = await server.handle_begin_read("call-1", "src/file.ts")

        assert begin["recorded"] is False
        server.shutdown()

    @pytest.mark.asyncio
    async def test_get_recent_injections(self, tmp_path, project_root):
        (project_root / "src" / "AGENTS.md").write_text("src agents")
        (project_root / "lib" / "AGENTS.md").write_text("lib agents")
        server = _make_server(tmp_path, project_root)

        await server.handle_begin_read("call-1", "src/a.py")
        await server.handle_complete_read("call-1", "session-1")
        await server.handle_begin_read("call-2", "lib/b.py")
        await server.handle_complete_read("call-2", "session-1")
        await server.handle_begin_read("call-3", "src/c.py")
        await server.handle_complete_read("call-3", "session-2")

        recent = server.get_recent_injections(session_id="session-1")
        assert [event["relative_path"] for event in recent] == [
            os.path.join("lib", "AGENTS.md"),
            os.path.join("src", "AGENTS.md"),
        ]
        assert recent[0]["event_type"] == "agents_md_injection"
        assert len(server.get_recent_injections(limit=2)) == 2
        assert len(server.get_recent_injections()) == 3
        server.shutdown()

    def test_get_recent_injections_when_logging_disabled(self, tmp_path, project_root):
        server = _make_server(tmp_path, project_root, "enable_injection_logging: false\n")

        assert server.get_recent_injections() == []
        server.shutdown()


class TestBufferedHostClient:
    @pytest.mark.asyncio
    async def test_buffers_messages_per_session(self):
        client = BufferedHostClient()

        await client.prompt("s1", "one")
        await client.prompt("s2", "two")
        await client.prompt("s1", "three")

        assert [m.text for m in client.drain("s1")] == ["one", "three"]
        assert client.drain("s1") == []
        assert [m.text for m in client.drain("s2")] == ["two"]

    @pytest.mark.asyncio
    async def test_log_forwards_to_python_logger(self, caplog):
        client = BufferedHostClient()

        with caplog.at_level("DEBUG", logger="opencode-agents-md-injector"):
            await client.log("opencode-agents-md-injector", "debug", "Injecting src/AGENTS.md")

        assert [(r.name, r.levelname, r.getMessage()) for r in caplog.records] == [
            ("opencode-agents-md-injector", "DEBUG", "Injecting src/AGENTS.md")
        ]

    @pytest.mark.asyncio
    async def test_log_and_toast_keep_no_history(self, caplog):
        client = BufferedHostClient()

        with caplog.at_level("DEBUG"):
            for i in range(100):
                await client.log("opencode-agents-md-injector", "debug", f"Injecting {i}")
                await client.show_toast(f"Injected {i}", "info")
                await client.prompt(f"session-{i}", f"message {i}")
                client.drain(f"session-{i}")

        assert vars(client) == {"_pending_messages": {}}
        assert "Toast [info]: Injected 99" in caplog.text


def test_parse_args_defaults():
    args = parse_args([])

    assert args.project_root is None
    assert args.transport == "stdio"
    assert args.log_level == "INFO"


def test_parse_args_values(tmp_path):
    args = parse_args(
        ["--project-root", str(tmp_path), "--transport", "sse", "--config", "cfg.yml"]
    )

    assert args.project_root == tmp_path
    assert args.transport == "sse"
    assert args.config == Path("cfg.yml")
