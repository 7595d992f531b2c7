# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for injector tests."""

from pathlib import Path
from typing import Any, Dict, List

import pytest

from agents_md_injector import injection_logger as injection_logger_module
from agents_md_injector.client import HostClient


class RecordingHostClient(HostClient):
    """Host client double that records every call."""

    def __init__(self) -> None:
        self.log_calls: List[Dict[str, Any]] = []
        self.toast_calls: List[Dict[str, Any]] = []
        self.prompt_calls: List[Dict[str, Any]] = []

    async def log(self, service: str, level: str, message: str) -> None:
        self.log_calls.append({"service": service, "level": level, "message": message})

    async def show_toast(self, message: str, variant: str) -> None:
        self.toast_calls.append({"message": message, "variant": variant})

    async def prompt(self, session_id: str, text: str, no_reply: bool = True) -> None:
        self.prompt_calls.append({"session_id": session_id, "text": text, "no_reply": no_reply})


@pytest.fixture(autouse=True)
def offline_token_counting(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep token counting on the word-count fallback so tests never fetch encodings."""
    monkeypatch.setattr(injection_logger_module, "_token_encoder", None)
    monkeypatch.setattr(injection_logger_module, "_token_encoder_failed", True)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a worktree with src/, src/components/ and lib/ directories.

    No AGENTS.md files are created; tests add the ones they need.
    """
    root = tmp_path / "worktree"
    (root / "src" / "components").mkdir(parents=True)
    (root / "lib").mkdir()
    return root


@pytest.fixture
def host_client() -> RecordingHostClient:
    return RecordingHostClient()
