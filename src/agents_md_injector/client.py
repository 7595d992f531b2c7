# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Host client interface for the AGENTS.md injector.

The injector talks to its host through three calls: a structured log call,
a toast notification and a session prompt. HostClient is the abstract
interface; BufferedHostClient is the implementation used by the MCP server,
which has no live session channel and instead hands delivered messages back
as tool results.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List

from agents_md_injector.models import SessionMessage

logger = logging.getLogger(__name__)

_PYTHON_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class HostClient(ABC):
    """Abstract interface to the agent host."""

    @abstractmethod
    async def log(self, service: str, level: str, message: str) -> None:
        """Write a structured log entry to the host log."""
        pass

    @abstractmethod
    async def show_toast(self, message: str, variant: str) -> None:
        """Show a user-visible notification."""
        pass

    @abstractmethod
    async def prompt(self, session_id: str, text: str, no_reply: bool = True) -> None:
        """Deliver a text message into a conversation session.

        Args:
            session_id: Target session.
            text: Message body.
            no_reply: When True the message does not trigger an agent reply.
        """
        pass


class BufferedHostClient(HostClient):
    """Host client that buffers deliveries per session.

    Log entries are forwarded to the Python logger named after the service,
    and toasts to this module's logger. Only session messages are buffered,
    until the caller drains them.
    """

    def __init__(self) -> None:
        self._pending_messages: Dict[str, List[SessionMessage]] = defaultdict(list)

    async def log(self, service: str, level: str, message: str) -> None:
        logging.getLogger(service).log(_PYTHON_LEVELS.get(level, logging.INFO), message)

    async def show_toast(self, message: str, variant: str) -> None:
        logger.info(f"Toast [{variant}]: {message}")

    async def prompt(self, session_id: str, text: str, no_reply: bool = True) -> None:
        self._pending_messages[session_id].append(
            SessionMessage(session_id=session_id, text=text, no_reply=no_reply)
        )

    def drain(self, session_id: str) -> List[SessionMessage]:
        """Remove and return all buffered messages for a session."""
        return self._pending_messages.pop(session_id, [])
