# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Storage abstraction for marker file access.

Components:
- MarkerStorage: Abstract interface for existence checks and reads
- FileSystemStorage: Implementation backed by the local filesystem
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod

from agents_md_injector.models import MarkerReadResult

logger = logging.getLogger(__name__)


class MarkerStorage(ABC):
    """Abstract storage interface used by the resolver and the injector."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a filesystem entry exists at path."""
        pass

    @abstractmethod
    async def read_text(self, path: str) -> MarkerReadResult:
        """Read the full text content of path.

        Implementations must not raise: failures are returned as
        ``MarkerReadResult.failure``.
        """
        pass


class FileSystemStorage(MarkerStorage):
    """Local filesystem storage.

    Reads run in a worker thread so the event loop keeps serving other
    in-flight reads while this one waits on disk.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def _read_sync(self, path: str) -> str:
        with open(path, encoding=self._encoding) as f:
            return f.read()

    async def read_text(self, path: str) -> MarkerReadResult:
        try:
            content = await asyncio.to_thread(self._read_sync, path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Failed to read {path}: {e}")
            return MarkerReadResult.failure(path, str(e))
        return MarkerReadResult.success(path, content)
