from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum


class PromptKind(str, Enum):
    RETOUCH = "retouch"
    ADJUST = "adjust"
    FILTER = "filter"


@dataclass(frozen=True)
class PromptHistoryEntry:
    kind: PromptKind
    text: str
    created_at: datetime | None = None


class PromptLedger:
    """Append-only record of the instructions that produced committed versions."""

    def __init__(self) -> None:
        self._entries: list[PromptHistoryEntry] = []

    def append(self, kind: PromptKind, text: str) -> PromptHistoryEntry:
        entry = PromptHistoryEntry(kind=PromptKind(kind), text=text, created_at=datetime.now(UTC))
        self._entries.append(entry)
        return entry

    def get(self, index: int) -> PromptHistoryEntry:
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"No prompt history entry at index {index}")
        return self._entries[index]

    @property
    def entries(self) -> tuple[PromptHistoryEntry, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        # only a new upload wipes the ledger
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))
