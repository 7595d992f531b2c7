# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Injection event logging module for JSONL output.

Every AGENTS.md delivered into a session is recorded as one JSON line:
- JSONL format (one JSON object per line)
- Real-time logging with immediate flush
- Date-based file rotation
- Injection statistics (per session, per marker, token totals)
- Query API for recent injections

Log Location: ~/.agents_md_injector/injections/<DATE>-<RUN-ID>.jsonl
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

import tiktoken

from agents_md_injector.log_config import (
    build_log_filename,
    get_current_utc_date,
    get_injections_dir,
)

logger = logging.getLogger(__name__)

EVENT_TYPE = "agents_md_injection"

# Used when no run_id is given
DEFAULT_INJECTION_LOG_FILE = "injections.jsonl"

_token_encoder: Optional[tiktoken.Encoding] = None
_token_encoder_failed = False


def count_tokens(text: str) -> int:
    """Count tokens in text using tiktoken's cl100k_base encoding.

    Falls back to a whitespace word count if the encoding cannot be loaded
    (tiktoken fetches it on first use).
    """
    global _token_encoder, _token_encoder_failed

    if _token_encoder is None and not _token_encoder_failed:
        try:
            _token_encoder = tiktoken.get_encoding("cl100k_base")
        except Exception as e:
            _token_encoder_failed = True
            logger.warning(f"Failed to initialize tiktoken encoder: {e}")

    if _token_encoder is not None:
        return len(_token_encoder.encode(text, disallowed_special=()))
    return len(text.split())


@dataclass
class InjectionEvent:
    """A single AGENTS.md injection.

    Attributes:
        timestamp: ISO 8601 timestamp of the injection.
        event_type: Always "agents_md_injection" for filtering.
        session_id: Conversation session that received the content.
        marker_path: Absolute path of the AGENTS.md file.
        relative_path: Marker path relative to the project root.
        target_file: File whose read triggered the injection.
        content_bytes: Size of the injected content in UTF-8 bytes.
        token_count: Approximate token count of the injected content.
    """

    timestamp: str
    event_type: str
    session_id: str
    marker_path: str
    relative_path: str
    target_file: str
    content_bytes: int
    token_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "event_type": self.event_type,
            "session_id": self.session_id,
            "marker_path": self.marker_path,
            "relative_path": self.relative_path,
            "target_file": self.target_file,
            "content_bytes": self.content_bytes,
            "token_count": self.token_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InjectionEvent":
        return cls(
            timestamp=data["timestamp"],
            event_type=data["event_type"],
            session_id=data["session_id"],
            marker_path=data["marker_path"],
            relative_path=data["relative_path"],
            target_file=data["target_file"],
            content_bytes=data["content_bytes"],
            token_count=data["token_count"],
        )

    @classmethod
    def create(
        cls,
        session_id: str,
        marker_path: str,
        relative_path: str,
        target_file: str,
        content: str,
    ) -> "InjectionEvent":
        """Build an event for injected content with a current timestamp and token count."""
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            event_type=EVENT_TYPE,
            session_id=session_id,
            marker_path=marker_path,
            relative_path=relative_path,
            target_file=target_file,
            content_bytes=len(content.encode("utf-8")),
            token_count=count_tokens(content),
        )


@dataclass
class InjectionStatistics:
    """Aggregated injection data for the current run.

    Attributes:
        total_injections: Total number of injection events logged.
        by_session: Count of injections per session.
        by_marker: Count of injections per relative marker path.
        total_tokens_injected: Total token count across all injections.
    """

    total_injections: int = 0
    by_session: Dict[str, int] = field(default_factory=dict)
    by_marker: Dict[str, int] = field(default_factory=dict)
    total_tokens_injected: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_injections": self.total_injections,
            "by_session": self.by_session,
            "by_marker": self.by_marker,
            "total_tokens_injected": self.total_tokens_injected,
        }


class InjectionLogger:
    """Logger for writing injection events to a JSONL file.

    Events are flushed immediately so they survive an abrupt shutdown.

    Usage:
        with InjectionLogger(run_id="abc-123", data_root=Path("/tmp/data")) as log:
            log.log_injection(event)
            stats = log.get_statistics()
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        data_root: Optional[Path] = None,
        log_dir: Optional[Path] = None,
        max_unique_markers_tracked: int = 10000,
    ) -> None:
        """Initialize the injection logger.

        Args:
            run_id: Server run identifier used in the date-rotated filename.
                   If None, writes to the static injections.jsonl.
            data_root: Root directory for logs; events go to {data_root}/injections/.
            log_dir: Explicit log directory, overrides data_root.
            max_unique_markers_tracked: Cap on distinct markers counted in
                                        statistics, to bound memory.
        """
        if log_dir is not None:
            self._log_dir = Path(log_dir)
        else:
            self._log_dir = get_injections_dir(data_root)

        self._run_id = run_id
        if run_id is not None:
            self._log_file = build_log_filename(run_id)
            self._use_date_rotation = True
        else:
            self._log_file = DEFAULT_INJECTION_LOG_FILE
            self._use_date_rotation = False

        self._max_unique_markers_tracked = max_unique_markers_tracked
        self._current_date = get_current_utc_date()

        self._injection_count = 0
        self._by_session: Counter[str] = Counter()
        self._by_marker: Counter[str] = Counter()
        self._total_tokens = 0

        self._file_handle: Optional[TextIO] = None

    def _get_log_path(self) -> Path:
        return self._log_dir / self._log_file

    def _check_date_rotation(self) -> None:
        """Switch to a new file when the UTC date changes."""
        if not self._use_date_rotation:
            return

        current_date = get_current_utc_date()
        if current_date != self._current_date:
            if self._file_handle is not None:
                self._file_handle.close()
                self._file_handle = None
                logger.debug(f"Rotated injection log: {self._current_date} -> {current_date}")
            self._current_date = current_date
            self._log_file = build_log_filename(self._run_id)  # type: ignore[arg-type]

    def _open_file(self) -> TextIO:
        self._check_date_rotation()

        if self._file_handle is None:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            log_path = self._get_log_path()
            # Handle lifetime is managed by close()
            self._file_handle = open(log_path, "a", encoding="utf-8")  # noqa: SIM115
            logger.debug(f"Opened injection log file: {log_path}")
        return self._file_handle

    def log_injection(self, event: InjectionEvent) -> None:
        """Append one event to the log and flush it."""
        file_handle = self._open_file()
        file_handle.write(json.dumps(event.to_dict(), separators=(",", ":")) + "\n")
        file_handle.flush()

        self._injection_count += 1
        self._by_session[event.session_id] += 1
        self._total_tokens += event.token_count

        if (
            len(self._by_marker) < self._max_unique_markers_tracked
            or event.relative_path in self._by_marker
        ):
            self._by_marker[event.relative_path] += 1

    def get_statistics(self, top_markers_count: int = 5) -> InjectionStatistics:
        """Get injection statistics.

        Args:
            top_markers_count: Number of most-injected markers to include.
        """
        return InjectionStatistics(
            total_injections=self._injection_count,
            by_session=dict(self._by_session),
            by_marker=dict(self._by_marker.most_common(top_markers_count)),
            total_tokens_injected=self._total_tokens,
        )

    def get_log_path(self) -> Path:
        return self._get_log_path()

    def close(self) -> None:
        if self._file_handle is not None:
            self._file_handle.close()
            self._file_handle = None
            logger.debug(f"Closed injection log file: {self._get_log_path()}")

    def __enter__(self) -> "InjectionLogger":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def get_recent_injections(
    log_path: Path,
    session_id: Optional[str] = None,
    limit: int = 10,
) -> List[InjectionEvent]:
    """Get recent injection events from the log file.

    Malformed lines are skipped with a warning.

    Args:
        log_path: Path to the injections JSONL file.
        session_id: If provided, only return events for this session.
        limit: Maximum number of events to return.

    Returns:
        List of InjectionEvent objects, most recent first. Empty if the
        log file doesn't exist.
    """
    if not log_path.exists():
        return []

    matching: List[InjectionEvent] = []

    with open(log_path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue

            try:
                event = InjectionEvent.from_dict(json.loads(line))
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Skipping malformed log entry: {e}")
                continue

            if session_id is None or event.session_id == session_id:
                matching.append(event)

    events = matching[-limit:] if len(matching) > limit else matching
    events.reverse()
    return events
