# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""MCP Server Protocol Layer for the AGENTS.md injector.

This module contains no injection logic. Tools translate MCP requests into
AgentsMdInjector calls and return what was delivered to the session.
"""

import argparse
import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession

from agents_md_injector.client import BufferedHostClient
from agents_md_injector.config import Config
from agents_md_injector.hooks import create_hooks
from agents_md_injector.injection_logger import (
    InjectionLogger,
    InjectionStatistics,
    get_recent_injections,
)
from agents_md_injector.log_config import (
    ensure_log_directories,
    get_default_data_root,
    get_logs_dir,
)
from agents_md_injector.logging_setup import setup_logging

logger = logging.getLogger(__name__)

SERVER_NAME = "agents-md-injector"


class AgentsMdInjectorMCPServer:
    """MCP Protocol Layer for the AGENTS.md injector.

    Responsibilities:
    - Initialize the injector and register MCP tools
    - Translate tool invocations into begin/complete read calls
    - Return the session messages produced by each completed read
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        config: Optional[Config] = None,
        data_root: Optional[Path] = None,
        run_id: Optional[str] = None,
    ):
        """Initialize MCP server.

        Args:
            project_root: Worktree whose AGENTS.md files are injected. Default: cwd.
            config: Configuration object. If None, loads from default location.
            data_root: Root directory for log files. If None, uses ~/.agents_md_injector/
            run_id: ID used in log filenames. If None, generates a UUID.
        """
        self.config = config if config is not None else Config()
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.data_root = data_root or get_default_data_root()
        self.run_id = run_id or str(uuid.uuid4())

        self.injection_logger: Optional[InjectionLogger] = None
        if self.config.enable_injection_logging:
            ensure_log_directories(self.data_root)
            self.injection_logger = InjectionLogger(run_id=self.run_id, data_root=self.data_root)

        self.client = BufferedHostClient()
        self.hooks = create_hooks(
            self.client,
            str(self.project_root),
            config=self.config,
            injection_logger=self.injection_logger,
        )
        self.injector = self.hooks.injector

        self.mcp = FastMCP(name=SERVER_NAME)
        self._register_tools()

        logger.info("AgentsMdInjectorMCPServer initialized")

    async def handle_begin_read(self, call_id: str, file_path: str) -> Dict[str, Any]:
        await self.hooks.before_tool_execute(
            "read", session_id="", call_id=call_id, args={"filePath": file_path}
        )
        return {"call_id": call_id, "recorded": self.injector.has_pending_read(call_id)}

    async def handle_complete_read(self, call_id: str, session_id: str) -> Dict[str, Any]:
        await self.hooks.after_tool_execute("read", session_id=session_id, call_id=call_id)
        messages = self.client.drain(session_id)
        return {
            "call_id": call_id,
            "session_id": session_id,
            "messages": [message.to_dict() for message in messages],
        }

    async def handle_read_with_agents_md(self, file_path: str, session_id: str) -> Dict[str, Any]:
        """Read a file and return it with the AGENTS.md messages it triggered.

        Raises:
            FileNotFoundError: If the file doesn't exist
            PermissionError: If the file can't be read
        """
        absolute_path = Path(self.injector.project_root) / file_path
        content = await asyncio.to_thread(absolute_path.read_text, encoding="utf-8")

        call_id = str(uuid.uuid4())
        await self.handle_begin_read(call_id, file_path)
        result = await self.handle_complete_read(call_id, session_id)
        messages: List[Dict[str, Any]] = result["messages"]

        return {
            "file_path": file_path,
            "content": content,
            "messages": messages,
        }

    def get_injection_statistics(self) -> Dict[str, Any]:
        if self.injection_logger is None:
            return InjectionStatistics().to_dict()
        return self.injection_logger.get_statistics().to_dict()

    def get_recent_injections(
        self, session_id: Optional[str] = None, limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Return the most recent injection events of this run, newest first.

        Returns an empty list when injection logging is disabled.
        """
        if self.injection_logger is None:
            return []
        events = get_recent_injections(
            self.injection_logger.get_log_path(), session_id=session_id, limit=limit
        )
        return [event.to_dict() for event in events]

    def _register_tools(self) -> None:
        """Register MCP tools with the server.

        Registers:
        - begin_read: Record the path of a read that is starting
        - complete_read: Finish a read and return injected AGENTS.md messages
        - read_with_agents_md: Read a file and inject its AGENTS.md files in one call
        - get_injection_statistics: Injection counts for this run
        - get_recent_injections: Latest injection events from the JSONL log
        """

        @self.mcp.tool()
        async def begin_read(
            call_id: str,
            file_path: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Record that a file read is starting.

            Args:
                call_id: Unique ID of the read; pass the same ID to complete_read
                file_path: Absolute path, or path relative to the project root
                ctx: MCP context for logging
            """
            await ctx.debug(f"Recording read {call_id}: {file_path}")
            return await self.handle_begin_read(call_id, file_path)

        @self.mcp.tool()
        async def complete_read(
            call_id: str,
            session_id: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Finish a file read and return AGENTS.md content not yet seen by the session.

            Args:
                call_id: ID passed to begin_read
                session_id: Conversation session performing the read
                ctx: MCP context for logging

            Returns:
                Dictionary with call_id, session_id and messages, where each
                message holds the wrapped AGENTS.md text.
            """
            result = await self.handle_complete_read(call_id, session_id)
            for message in result["messages"]:
                await ctx.info(message["text"].split("\n", 1)[0])
            return result

        @self.mcp.tool()
        async def read_with_agents_md(
            file_path: str,
            session_id: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Read a file together with the AGENTS.md files of its directories.

            Args:
                file_path: Absolute path, or path relative to the project root
                session_id: Conversation session performing the read
                ctx: MCP context for logging

            Returns:
                Dictionary with file_path, content and messages.
            """
            try:
                return await self.handle_read_with_agents_md(file_path, session_id)
            except FileNotFoundError:
                await ctx.error(f"File not found: {file_path}")
                raise
            except PermissionError:
                await ctx.error(f"Permission denied: {file_path}")
                raise

        @self.mcp.tool()
        async def get_injection_statistics(
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Return injection counts for this server run."""
            return self.get_injection_statistics()

        @self.mcp.tool()
        async def get_recent_injections(
            ctx: Context[ServerSession, None],
            session_id: Optional[str] = None,
            limit: int = 10,
        ) -> List[Dict[str, Any]]:
            """Return recent AGENTS.md injection events from this run's log.

            Args:
                ctx: MCP context for logging
                session_id: Only return events for this session (optional)
                limit: Maximum number of events to return (default: 10)
            """
            return self.get_recent_injections(session_id=session_id, limit=limit)

        logger.info(
            "MCP tools registered: begin_read, complete_read, read_with_agents_md, "
            "get_injection_statistics, get_recent_injections"
        )

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: "stdio" (default), "streamable-http" or "sse".
        """
        logger.info(f"Starting MCP server with {transport} transport")
        self.mcp.run(transport=transport)  # type: ignore[arg-type]

    def shutdown(self) -> None:
        logger.info("Shutting down MCP server")
        if self.injection_logger is not None:
            self.injection_logger.close()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="AGENTS.md injector MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Worktree whose AGENTS.md files are injected. Default: current directory",
    )
    parser.add_argument(
        "--data-root",
        type=Path,
        default=None,
        help=f"Root directory for log files. Default: {get_default_data_root()}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the YAML configuration file. Default: ./.agents_md_injector.yml",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the MCP server."""
    args = parse_args(argv)
    data_root = args.data_root or get_default_data_root()

    setup_logging(log_dir=get_logs_dir(data_root), log_level=getattr(logging, args.log_level))

    server = AgentsMdInjectorMCPServer(
        project_root=args.project_root,
        config=Config(config_path=args.config),
        data_root=data_root,
    )
    logger.info(
        f"Starting MCP server for {server.project_root} with data_root={server.data_root}, "
        f"run_id={server.run_id}"
    )
    try:
        server.run(transport=args.transport)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
