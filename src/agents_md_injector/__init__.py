# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""AGENTS.md injector: surfaces directory-scoped instructions as files are read."""

from .client import BufferedHostClient, HostClient
from .config import Config
from .hooks import AgentsMdInjectorHooks, create_hooks
from .injection_logger import InjectionEvent, InjectionLogger, InjectionStatistics
from .injector import AgentsMdInjector
from .models import MARKER_FILENAME, MarkerReadResult, SessionMessage, format_agents_md_block
from .path_resolver import PathResolver
from .storage import FileSystemStorage, MarkerStorage

__version__ = "0.1.0"

__all__ = [
    "AgentsMdInjector",
    "AgentsMdInjectorHooks",
    "create_hooks",
    "PathResolver",
    "HostClient",
    "BufferedHostClient",
    "MarkerStorage",
    "FileSystemStorage",
    "MarkerReadResult",
    "SessionMessage",
    "MARKER_FILENAME",
    "format_agents_md_block",
    "Config",
    "InjectionEvent",
    "InjectionLogger",
    "InjectionStatistics",
]

# MCP server requires the mcp package
try:
    from .mcp_server import AgentsMdInjectorMCPServer

    __all__.append("AgentsMdInjectorMCPServer")
except ImportError:
    pass
