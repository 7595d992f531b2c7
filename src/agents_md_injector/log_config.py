# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared logging locations for the AGENTS.md injector.

- Configurable data root directory (default: ~/.agents_md_injector/)
- Date-run filename pattern (YYYY-MM-DD-<RUN-ID>.jsonl)
- Subdirectory structure: injections/, logs/
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Default data root directory (user home)
DEFAULT_DATA_ROOT = Path.home() / ".agents_md_injector"

INJECTIONS_SUBDIR = "injections"
LOGS_SUBDIR = "logs"


def get_default_data_root() -> Path:
    """Get the default data root directory.

    Returns:
        Path to ~/.agents_md_injector/
    """
    return DEFAULT_DATA_ROOT


def get_current_utc_date() -> str:
    """Get the current UTC date in YYYY-MM-DD format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def validate_filename_component(value: str, name: str = "value") -> None:
    """Validate a string for safe use in filenames.

    Args:
        value: The string to validate.
        name: Name of the parameter for error messages.

    Raises:
        ValueError: If value contains path separators, parent references,
                   or null bytes.
    """
    if "\0" in value:
        raise ValueError(f"{name} contains null bytes: {value}")
    if "/" in value or "\\" in value or ":" in value:
        raise ValueError(f"{name} must not contain path separators: {value}")
    if ".." in value:
        raise ValueError(f"{name} must not contain parent references: {value}")


def build_log_filename(run_id: str, extension: str = "jsonl") -> str:
    """Build a log filename with date and run ID.

    Args:
        run_id: Identifier of the server process run.
        extension: File extension without dot. Default is "jsonl".

    Returns:
        Filename like "2025-12-11-abc123-def456.jsonl"

    Raises:
        ValueError: If run_id contains path separators or invalid chars.
    """
    validate_filename_component(run_id, "run_id")
    return f"{get_current_utc_date()}-{run_id}.{extension}"


def get_injections_dir(data_root: Optional[Path] = None) -> Path:
    """Get the injections log directory ({data_root}/injections/)."""
    root = data_root or DEFAULT_DATA_ROOT
    return root / INJECTIONS_SUBDIR


def get_logs_dir(data_root: Optional[Path] = None) -> Path:
    """Get the application log directory ({data_root}/logs/)."""
    root = data_root or DEFAULT_DATA_ROOT
    return root / LOGS_SUBDIR


def ensure_log_directories(data_root: Optional[Path] = None) -> None:
    """Create all log subdirectories if they don't exist."""
    root = data_root or DEFAULT_DATA_ROOT
    root.mkdir(parents=True, exist_ok=True)
    (root / INJECTIONS_SUBDIR).mkdir(exist_ok=True)
    (root / LOGS_SUBDIR).mkdir(exist_ok=True)
