"""Client-side conversation log, updated by a reducer keyed on turn index.

Streamed events are merged into the entries of the turn they belong to, found
by ``(turn, role)`` rather than by position. Every update returns a new
``ChatLog``; nothing is mutated in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType

from shared.schemas.messages import Message, Role

GREETING = (
    "Hello! I'm your expert assistant for TestRail. "
    "Please provide your TestRail credentials in the settings to get started."
)
CANCELLED_TEXT = "Request cancelled by user."


class TurnStatus(str, Enum):
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class LogEntry:
    turn: int
    role: Role
    text: str = ""

    def to_message(self) -> Message:
        return Message(role=self.role, text=self.text)


def _frozen(statuses: dict[int, TurnStatus]) -> Mapping[int, TurnStatus]:
    return MappingProxyType(dict(statuses))


@dataclass(frozen=True)
class ChatLog:
    """Ordered, immutable transcript of what the user sees."""

    entries: tuple[LogEntry, ...] = ()
    statuses: Mapping[int, TurnStatus] = field(default_factory=lambda: _frozen({}))

    @classmethod
    def initial(cls, greeting: str | None = GREETING) -> ChatLog:
        """A log opened by an assistant greeting as turn 0."""
        if not greeting:
            return cls()
        return cls(
            entries=(LogEntry(0, Role.ASSISTANT, greeting),),
            statuses=_frozen({0: TurnStatus.DONE}),
        )

    # -- queries ----------------------------------------------------------

    @property
    def next_turn(self) -> int:
        return max(self.statuses, default=-1) + 1

    def status(self, turn: int) -> TurnStatus | None:
        return self.statuses.get(turn)

    def messages(self) -> list[Message]:
        return [e.to_message() for e in self.entries]

    def turn_entries(self, turn: int) -> list[LogEntry]:
        return [e for e in self.entries if e.turn == turn]

    def history(self) -> list[Message]:
        """User and assistant messages of settled turns, for the next request."""
        return [
            e.to_message()
            for e in self.entries
            if e.role != Role.STATUS
            and e.text
            and self.statuses.get(e.turn) != TurnStatus.STREAMING
        ]

    # -- reducer ----------------------------------------------------------

    def begin_turn(self, text: str) -> tuple[ChatLog, int]:
        """Append the user's message and an empty assistant placeholder."""
        turn = self.next_turn
        log = replace(
            self,
            entries=self.entries + (
                LogEntry(turn, Role.USER, text),
                LogEntry(turn, Role.ASSISTANT, ""),
            ),
            statuses=self._with_status(turn, TurnStatus.STREAMING),
        )
        return log, turn

    def apply(self, turn: int, message: Message) -> ChatLog:
        """Merge one streamed event into its turn.

        Events for a turn that is no longer streaming are ignored.
        """
        if self.statuses.get(turn) != TurnStatus.STREAMING:
            return self
        if message.role == Role.STATUS:
            return self._set_status_notice(turn, message.text)
        if message.role == Role.ASSISTANT:
            idx = self._index(turn, Role.ASSISTANT)
            entry = self.entries[idx]
            return self._replace_at(idx, replace(entry, text=entry.text + message.text))
        return self

    def complete_turn(self, turn: int) -> ChatLog:
        if self.statuses.get(turn) != TurnStatus.STREAMING:
            return self
        log = self._drop_status_notices(turn)
        return replace(log, statuses=log._with_status(turn, TurnStatus.DONE))

    def fail_turn(self, turn: int, error: str) -> ChatLog:
        if self.statuses.get(turn) != TurnStatus.STREAMING:
            return self
        log = self._drop_status_notices(turn)._settle_assistant(
            turn, f"Sorry, I've run into an issue: {error}"
        )
        return replace(log, statuses=log._with_status(turn, TurnStatus.FAILED))

    def cancel_turn(self, turn: int) -> ChatLog:
        """End a turn on user request; the log then ends with a cancellation notice."""
        if self.statuses.get(turn) != TurnStatus.STREAMING:
            return self
        log = self._drop_status_notices(turn)._settle_assistant(turn, CANCELLED_TEXT)
        return replace(log, statuses=log._with_status(turn, TurnStatus.CANCELLED))

    # -- helpers ----------------------------------------------------------

    def _with_status(self, turn: int, status: TurnStatus) -> Mapping[int, TurnStatus]:
        return _frozen({**self.statuses, turn: status})

    def _find(self, turn: int, role: Role) -> int | None:
        for i, entry in enumerate(self.entries):
            if entry.turn == turn and entry.role == role:
                return i
        return None

    def _index(self, turn: int, role: Role) -> int:
        idx = self._find(turn, role)
        if idx is None:
            raise KeyError(f"No {role.value} entry for turn {turn}")
        return idx

    def _replace_at(self, idx: int, entry: LogEntry) -> ChatLog:
        entries = self.entries[:idx] + (entry,) + self.entries[idx + 1:]
        return replace(self, entries=entries)

    def _set_status_notice(self, turn: int, text: str) -> ChatLog:
        notice = LogEntry(turn, Role.STATUS, text)
        existing = self._find(turn, Role.STATUS)
        if existing is not None:
            return self._replace_at(existing, notice)
        # Shown just before the turn's assistant reply
        idx = self._index(turn, Role.ASSISTANT)
        return replace(self, entries=self.entries[:idx] + (notice,) + self.entries[idx:])

    def _drop_status_notices(self, turn: int) -> ChatLog:
        return replace(
            self,
            entries=tuple(
                e for e in self.entries if not (e.turn == turn and e.role == Role.STATUS)
            ),
        )

    def _settle_assistant(self, turn: int, text: str) -> ChatLog:
        """Fill an empty assistant placeholder, or add a new entry after partial text."""
        idx = self._index(turn, Role.ASSISTANT)
        if not self.entries[idx].text:
            return self._replace_at(idx, LogEntry(turn, Role.ASSISTANT, text))
        last = max(i for i, e in enumerate(self.entries) if e.turn == turn)
        entries = (
            self.entries[: last + 1]
            + (LogEntry(turn, Role.ASSISTANT, text),)
            + self.entries[last + 1:]
        )
        return replace(self, entries=entries)
