# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for filesystem marker storage."""

import pytest

from agents_md_injector.storage import FileSystemStorage


class TestFileSystemStorage:
    def test_exists(self, tmp_path):
        storage = FileSystemStorage()
        (tmp_path / "AGENTS.md").write_text("rules")

        assert storage.exists(str(tmp_path / "AGENTS.md"))
        assert not storage.exists(str(tmp_path / "missing.md"))

    @pytest.mark.asyncio
    async def test_read_success(self, tmp_path):
        storage = FileSystemStorage()
        path = tmp_path / "AGENTS.md"
        path.write_text("line one\nline two\n", encoding="utf-8")

        result = await storage.read_text(str(path))

        assert result.ok
        assert result.content == "line one\nline two\n"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_read_missing_file_returns_failure(self, tmp_path):
        storage = FileSystemStorage()

        result = await storage.read_text(str(tmp_path / "gone.md"))

        assert not result.ok
        assert result.content is None
        assert result.error

    @pytest.mark.asyncio
    async def test_read_directory_returns_failure(self, tmp_path):
        storage = FileSystemStorage()

        result = await storage.read_text(str(tmp_path))

        assert not result.ok

    @pytest.mark.asyncio
    async def test_undecodable_content_returns_failure(self, tmp_path):
        storage = FileSystemStorage()
        path = tmp_path / "AGENTS.md"
        path.write_bytes(b"\xff\xfe\xfa")

        result = await storage.read_text(str(path))

        assert not result.ok

    @pytest.mark.asyncio
    async def test_empty_file_is_a_successful_read(self, tmp_path):
        storage = FileSystemStorage()
        path = tmp_path / "AGENTS.md"
        path.write_text("")

        result = await storage.read_text(str(path))

        assert result.ok
        assert result.content == ""
