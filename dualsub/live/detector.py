from __future__ import annotations

import html
import logging
import re
from typing import Iterable, List, Union

from dualsub.caption.surface import DEFAULT_CONTAINER_ID, CaptionSurface
from dualsub.contracts import CaptionSnapshot, Signal

log = logging.getLogger(__name__)

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")

Observation = Union[CaptionSnapshot, Signal]


def extract_lines(blocks: Iterable[str]) -> List[str]:
    """Split caption blocks into trimmed, non-empty text lines, keeping order."""
    lines: List[str] = []
    for block in blocks:
        for part in _BR.split(block or ""):
            text = html.unescape(_TAG.sub("", part))
            for ln in text.splitlines():
                ln = ln.strip()
                if ln:
                    lines.append(ln)
    return lines


class ChangeDetector:
    """
    Turns raw caption-surface reads into genuine changes.

    observe() returns HIDE when no caption is on screen, NO_CHANGE when the
    text equals the last one seen (or nothing usable could be read), and a
    CaptionSnapshot otherwise.
    """

    def __init__(self, surface: CaptionSurface, container_id: str = DEFAULT_CONTAINER_ID):
        self.surface = surface
        self.container_id = container_id
        self._last_text = ""

    @property
    def last_text(self) -> str:
        return self._last_text

    def reset(self) -> None:
        self._last_text = ""

    def observe(self) -> Observation:
        container = self.surface.query(self.container_id)
        if container is None or not container.blocks:
            self.reset()
            return Signal.HIDE

        lines = extract_lines(container.blocks)
        if not lines:
            # Blocks present but nothing readable: keep whatever is displayed.
            log.debug("caption_blocks_without_text", extra={"blocks": len(container.blocks)})
            return Signal.NO_CHANGE

        snapshot = CaptionSnapshot(lines=tuple(lines))
        if snapshot.text == self._last_text:
            return Signal.NO_CHANGE

        self._last_text = snapshot.text
        log.info("snapshot_detected", extra={"lines": len(lines), "chars": len(snapshot.text)})
        return snapshot
