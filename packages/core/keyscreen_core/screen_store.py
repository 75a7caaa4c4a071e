"""Fixed-size store of screen texts shared by producers and the delivery scheduler."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class ScreenSlot:
    index: int
    text: str


class ScreenStore:
    """One slot per screen index; each slot is owned by a single producer.

    Writers replace a whole slot under a lock; readers get an immutable snapshot.
    """

    def __init__(self, size: int = 4) -> None:
        if size < 1:
            raise ValueError("ScreenStore needs at least one slot")
        self._slots: tuple[str, ...] = ("",) * size
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> str:
        return self._slots[index]

    def set(self, index: int, text: str) -> None:
        if not 0 <= index < len(self._slots):
            raise IndexError(f"screen index {index} out of range")
        with self._lock:
            slots = list(self._slots)
            slots[index] = text
            self._slots = tuple(slots)

    def get(self, index: int) -> str:
        slots = self._slots
        if not 0 <= index < len(slots):
            return ""
        return slots[index]

    def snapshot(self) -> tuple[str, ...]:
        return self._slots

    def slots(self) -> list[ScreenSlot]:
        return [ScreenSlot(index=i, text=text) for i, text in enumerate(self._slots)]
