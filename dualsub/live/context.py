from __future__ import annotations

from collections import deque
from typing import Deque, List


class ContextBuffer:
    """Recently committed captions, oldest first, handed to providers as context."""

    def __init__(self, max_size: int = 5):
        self.max_size = max(1, int(max_size))
        self._items: Deque[str] = deque(maxlen=self.max_size)

    def append(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        if self._items and self._items[-1] == text:
            return
        self._items.append(text)

    def snapshot(self) -> List[str]:
        return list(self._items)

    def joined(self, exclude: str = "") -> str:
        # The caption being translated must not be its own context.
        return " ".join(item for item in self._items if not exclude or item != exclude)

    def reset(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
