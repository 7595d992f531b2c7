# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the AGENTS.md injector.

- MarkerReadResult: Outcome of reading a marker file (content or failure)
- SessionMessage: A message delivered into a conversation session
- ToastVariant / LogLevel: JSON-compatible constants for host calls

All models use JSON-compatible primitives for serialization.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Marker files are matched by this exact name only
MARKER_FILENAME = "AGENTS.md"

# Service name attached to every host log call
LOG_SERVICE_NAME = "opencode-agents-md-injector"


class ToastVariant:
    """Toast notification variants understood by the host.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogLevel:
    """Log levels understood by the host log call."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass
class MarkerReadResult:
    """Outcome of reading a marker file from storage.

    Exactly one of ``content`` and ``error`` is set. Reads never raise; a
    failed read is a value the caller branches on.
    """

    path: str
    content: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None

    @classmethod
    def success(cls, path: str, content: str) -> "MarkerReadResult":
        return cls(path=path, content=content)

    @classmethod
    def failure(cls, path: str, error: str) -> "MarkerReadResult":
        return cls(path=path, error=error)


@dataclass
class SessionMessage:
    """A message delivered into a conversation session."""

    session_id: str
    text: str
    no_reply: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "text": self.text,
            "no_reply": self.no_reply,
        }


def format_agents_md_block(relative_path: str, content: str) -> str:
    """Wrap marker content in the tag the agent recognises.

    The content is embedded unmodified between the opening and closing tags.
    """
    return f'<agents-md path="{relative_path}">\n{content}\n</agents-md>'
