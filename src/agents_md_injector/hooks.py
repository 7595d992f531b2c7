# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tool-execution hook adapter.

Hosts that run tools with before/after callbacks call these handlers for
every tool invocation. Only read tools are of interest: the "before" handler
records the target path and the "after" handler triggers injection.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from agents_md_injector.client import HostClient
from agents_md_injector.config import Config
from agents_md_injector.injection_logger import InjectionLogger
from agents_md_injector.injector import AgentsMdInjector

logger = logging.getLogger(__name__)

BEFORE_HOOK = "tool.execute.before"
AFTER_HOOK = "tool.execute.after"

# Argument carrying the path in read tool calls
FILE_PATH_ARG = "filePath"


class AgentsMdInjectorHooks:
    """Routes host tool hooks to an AgentsMdInjector."""

    def __init__(self, injector: AgentsMdInjector, config: Optional[Config] = None):
        self.injector = injector
        self.config = config

    def _is_read_tool(self, tool: str) -> bool:
        read_tool_names = self.config.read_tool_names if self.config is not None else ["read"]
        return tool in read_tool_names

    def _injection_enabled(self) -> bool:
        return self.config is None or self.config.enable_injection

    async def before_tool_execute(
        self,
        tool: str,
        session_id: str,
        call_id: str,
        args: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Record the path of a read tool call that is about to run."""
        if not self._is_read_tool(tool) or not self._injection_enabled():
            return

        file_path = (args or {}).get(FILE_PATH_ARG)
        if not isinstance(file_path, str):
            logger.debug(f"Read call {call_id} has no string {FILE_PATH_ARG}, ignoring")
            return

        self.injector.record_pending_read(call_id, file_path)

    async def after_tool_execute(self, tool: str, session_id: str, call_id: str) -> None:
        """Inject AGENTS.md files for a read tool call that has finished."""
        if not self._is_read_tool(tool):
            return

        await self.injector.complete_read(call_id, session_id)

    def as_dict(self) -> Dict[str, Callable[..., Awaitable[None]]]:
        """Handlers keyed by the host's hook names."""
        return {
            BEFORE_HOOK: self.before_tool_execute,
            AFTER_HOOK: self.after_tool_execute,
        }


def create_hooks(
    client: HostClient,
    worktree: str,
    config: Optional[Config] = None,
    injection_logger: Optional[InjectionLogger] = None,
) -> AgentsMdInjectorHooks:
    """Build an injector for a worktree and wrap it in hook handlers."""
    injector = AgentsMdInjector(
        client,
        worktree,
        config=config,
        injection_logger=injection_logger,
    )
    logger.info(f"AGENTS.md injector ready for {injector.project_root}")
    return AgentsMdInjectorHooks(injector, config=config)
