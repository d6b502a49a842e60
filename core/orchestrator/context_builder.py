"""Context builder - assembles the model context for each chat turn."""

from __future__ import annotations

from collections.abc import Iterable

from shared.schemas.messages import Message, Role

SYSTEM_PROMPT = (
    "You are an expert on TestRail. You will answer questions about projects, "
    "test runs, test cases, results and milestones, and you can record results "
    "and manage test runs when asked to. When a user asks for information, you "
    "must use the available tools to fetch live data. After receiving the data "
    "from the tool, present it to the user in a clear and readable format.\n\n"
    "TestRail result statuses use these IDs: 1=passed, 2=blocked, 3=untested, "
    "4=retest, 5=failed. Use them when filtering by status or recording a result."
)


def strip_status(history: Iterable[Message]) -> list[Message]:
    """Drop ephemeral status notices; they never reach the model."""
    return [m for m in history if m.role != Role.STATUS]


class ContextBuilder:
    """Turns the client transcript into provider messages."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT):
        self.system_prompt = system_prompt

    def build(self, history: Iterable[Message], message: str) -> list[dict]:
        """Return [system, *history without status messages, new user message]."""
        context: list[dict] = [{"role": "system", "content": self.system_prompt}]
        for m in strip_status(history):
            context.append({"role": m.role.value, "content": m.text})
        context.append({"role": "user", "content": message})
        return context
