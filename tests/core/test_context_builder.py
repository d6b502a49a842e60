"""Tests for context assembly: status notices never reach the model."""

from __future__ import annotations

from core.orchestrator.context_builder import SYSTEM_PROMPT, ContextBuilder, strip_status
from shared.schemas.messages import Message, Role

HISTORY = [
    Message(role=Role.ASSISTANT, text="Hello! How can I help?"),
    Message(role=Role.USER, text="List my projects"),
    Message(role=Role.STATUS, text="Fetching data for get_projects from TestRail..."),
    Message(role=Role.ASSISTANT, text="You have 2 projects."),
]


class TestStripStatus:
    def test_removes_only_status(self):
        assert [m.role for m in strip_status(HISTORY)] == [
            Role.ASSISTANT,
            Role.USER,
            Role.ASSISTANT,
        ]

    def test_is_idempotent(self):
        once = strip_status(HISTORY)
        assert strip_status(once) == once


class TestContextBuilder:
    def test_layout(self):
        context = ContextBuilder().build(HISTORY, "Which runs failed?")

        assert context[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert context[1:] == [
            {"role": "assistant", "content": "Hello! How can I help?"},
            {"role": "user", "content": "List my projects"},
            {"role": "assistant", "content": "You have 2 projects."},
            {"role": "user", "content": "Which runs failed?"},
        ]

    def test_empty_history(self):
        context = ContextBuilder(system_prompt="Be brief.").build([], "Hi")
        assert context == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]

    def test_system_prompt_lists_status_ids(self):
        assert "5=failed" in SYSTEM_PROMPT
        assert "1=passed" in SYSTEM_PROMPT
