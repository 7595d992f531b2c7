# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for data models."""

from agents_md_injector.models import MarkerReadResult, SessionMessage, format_agents_md_block


def test_format_agents_md_block():
    assert format_agents_md_block("src/AGENTS.md", "# Rules\n- be nice") == (
        '<agents-md path="src/AGENTS.md">\n# Rules\n- be nice\n</agents-md>'
    )


def test_format_agents_md_block_keeps_trailing_newlines():
    assert format_agents_md_block("a/AGENTS.md", "text\n") == (
        '<agents-md path="a/AGENTS.md">\ntext\n\n</agents-md>'
    )


def test_format_agents_md_block_empty_content():
    assert format_agents_md_block("a/AGENTS.md", "") == '<agents-md path="a/AGENTS.md">\n\n</agents-md>'


def test_marker_read_result():
    success = MarkerReadResult.success("/p/AGENTS.md", "")
    failure = MarkerReadResult.failure("/p/AGENTS.md", "gone")

    assert success.ok
    assert not failure.ok
    assert failure.error == "gone"


def test_session_message_to_dict():
    message = SessionMessage(session_id="s1", text="hello")

    assert message.to_dict() == {"session_id": "s1", "text": "hello", "no_reply": True}
