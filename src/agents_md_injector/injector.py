# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""AgentsMdInjector - delivers directory-scoped AGENTS.md files into sessions.

A file read is observed in two phases. When the read starts the target path
is recorded against the call ID; when it completes the injector resolves the
ancestor AGENTS.md files of that path and delivers each one the session has
not seen yet.

Injection Workflow (per completed read):
1. Pop the recorded path for the call ID (unknown IDs are ignored)
2. Resolve it against the project root
3. Find ancestor AGENTS.md files, shallowest first
4. Drop markers already delivered to this session
5. For each remaining marker, in order: read, log, toast, deliver, mark

Nothing raised while injecting reaches the caller. A marker that cannot be
read or delivered is skipped and stays eligible for later reads.
"""

import logging
from typing import Dict, List, Optional, Set

from agents_md_injector.client import HostClient
from agents_md_injector.config import Config
from agents_md_injector.injection_logger import InjectionEvent, InjectionLogger
from agents_md_injector.models import (
    LOG_SERVICE_NAME,
    LogLevel,
    ToastVariant,
    format_agents_md_block,
)
from agents_md_injector.path_resolver import PathResolver
from agents_md_injector.storage import FileSystemStorage, MarkerStorage

logger = logging.getLogger(__name__)


class AgentsMdInjector:
    """Per-session AGENTS.md injection coordinator.

    Owns two state tables:
    - pending reads: call ID -> raw file path, consumed on completion
    - injected markers: session ID -> absolute marker paths already delivered

    A marker being delivered is also held in a per-session in-flight set
    until its delivery finishes, so two reads completing concurrently in one
    session cannot both deliver it. Sessions are never purged; the
    injected-marker table lives as long as the injector.
    """

    def __init__(
        self,
        client: HostClient,
        project_root: str,
        config: Optional[Config] = None,
        storage: Optional[MarkerStorage] = None,
        injection_logger: Optional[InjectionLogger] = None,
    ):
        """Initialize the injector.

        Args:
            client: Host client used for log, toast and session delivery calls.
            project_root: Project root directory (the worktree).
            config: Configuration object (default: defaults, no config file read).
            storage: Marker storage (default: local filesystem).
            injection_logger: Optional JSONL event logger for delivered markers.
        """
        self._client = client
        self.config = config
        self._storage = storage if storage is not None else FileSystemStorage()
        self._resolver = PathResolver(project_root, storage=self._storage)
        self._injection_logger = injection_logger

        self._pending_file_path_by_call_id: Dict[str, str] = {}
        self._injected_paths_by_session: Dict[str, Set[str]] = {}
        self._in_flight_paths_by_session: Dict[str, Set[str]] = {}

    @property
    def project_root(self) -> str:
        return self._resolver.project_root

    def record_pending_read(self, call_id: str, file_path: str) -> None:
        """Remember the path a read call is about to read.

        A second record for the same call ID replaces the first. The path is
        not validated until the read completes.
        """
        self._pending_file_path_by_call_id[call_id] = file_path

    def has_pending_read(self, call_id: str) -> bool:
        return call_id in self._pending_file_path_by_call_id

    def get_injected_paths(self, session_id: str) -> Set[str]:
        """Return a copy of the marker paths already delivered to a session."""
        return set(self._injected_paths_by_session.get(session_id, ()))

    def get_in_flight_paths(self, session_id: str) -> Set[str]:
        """Return a copy of the marker paths currently being delivered to a session."""
        return set(self._in_flight_paths_by_session.get(session_id, ()))

    async def complete_read(self, call_id: str, session_id: str) -> List[str]:
        """Inject the AGENTS.md files relevant to a finished read.

        Args:
            call_id: Call ID passed to record_pending_read.
            session_id: Session that performed the read.

        Returns:
            Absolute paths of the markers delivered by this call, in order.
        """
        file_path = self._pending_file_path_by_call_id.pop(call_id, None)
        if file_path is None:
            return []

        absolute_file_path = self._resolver.resolve_to_absolute(file_path)
        marker_paths = self._resolver.find_ancestor_markers(absolute_file_path)
        new_marker_paths = self._filter_already_injected(marker_paths, session_id)

        # Claimed before the first await so a concurrent read in the same
        # session filters them out
        self._claim_in_flight(session_id, new_marker_paths)
        remaining = list(new_marker_paths)
        injected: List[str] = []
        try:
            # Sequential awaits keep root-to-leaf delivery order
            while remaining:
                marker_path = remaining.pop(0)
                try:
                    if await self._inject_marker(marker_path, session_id, absolute_file_path):
                        injected.append(marker_path)
                finally:
                    self._release_in_flight(session_id, [marker_path])
        finally:
            # Markers never reached if the loop was interrupted
            self._release_in_flight(session_id, remaining)

        return injected

    def _filter_already_injected(self, marker_paths: List[str], session_id: str) -> List[str]:
        injected_paths = self._injected_paths_by_session.get(session_id, set())
        in_flight_paths = self._in_flight_paths_by_session.get(session_id, set())
        return [
            path
            for path in marker_paths
            if path not in injected_paths and path not in in_flight_paths
        ]

    def _claim_in_flight(self, session_id: str, marker_paths: List[str]) -> None:
        if marker_paths:
            self._in_flight_paths_by_session.setdefault(session_id, set()).update(marker_paths)

    def _release_in_flight(self, session_id: str, marker_paths: List[str]) -> None:
        in_flight_paths = self._in_flight_paths_by_session.get(session_id)
        if in_flight_paths is None:
            return
        in_flight_paths.difference_update(marker_paths)
        if not in_flight_paths:
            del self._in_flight_paths_by_session[session_id]

    def _mark_injected(self, session_id: str, marker_path: str) -> None:
        self._injected_paths_by_session.setdefault(session_id, set()).add(marker_path)

    async def _inject_marker(self, marker_path: str, session_id: str, target_file: str) -> bool:
        """Read, announce and deliver one marker.

        Returns:
            True if the marker was delivered and marked as injected.
        """
        result = await self._storage.read_text(marker_path)
        if not result.ok or result.content is None:
            # Removed or unreadable since discovery
            logger.debug(f"Skipping {marker_path}: {result.error}")
            return False

        relative_marker_path = self._resolver.relative_to_root(marker_path) or marker_path

        await self._log_injection(relative_marker_path)
        await self._show_injection_toast(relative_marker_path)

        try:
            await self._client.prompt(
                session_id,
                format_agents_md_block(relative_marker_path, result.content),
                no_reply=True,
            )
        except Exception as e:
            logger.warning(f"Failed to deliver {relative_marker_path} to session {session_id}: {e}")
            return False

        self._mark_injected(session_id, marker_path)
        self._record_event(session_id, marker_path, relative_marker_path, target_file, result.content)
        return True

    async def _log_injection(self, relative_marker_path: str) -> None:
        try:
            await self._client.log(
                service=LOG_SERVICE_NAME,
                level=LogLevel.DEBUG,
                message=f"Injecting {relative_marker_path}",
            )
        except Exception as e:
            logger.warning(f"Host log call failed for {relative_marker_path}: {e}")

    async def _show_injection_toast(self, relative_marker_path: str) -> None:
        if self.config is not None and not self.config.show_toasts:
            return
        try:
            await self._client.show_toast(
                message=f"Injected {relative_marker_path}",
                variant=ToastVariant.INFO,
            )
        except Exception as e:
            logger.warning(f"Toast failed for {relative_marker_path}: {e}")

    def _record_event(
        self,
        session_id: str,
        marker_path: str,
        relative_marker_path: str,
        target_file: str,
        content: str,
    ) -> None:
        if self._injection_logger is None:
            return
        try:
            self._injection_logger.log_injection(
                InjectionEvent.create(
                    session_id=session_id,
                    marker_path=marker_path,
                    relative_path=relative_marker_path,
                    target_file=target_file,
                    content=content,
                )
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to write injection event for {relative_marker_path}: {e}")
