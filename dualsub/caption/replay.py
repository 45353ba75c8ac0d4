from __future__ import annotations

import asyncio
import html
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pysrt

from dualsub.caption.surface import DEFAULT_CONTAINER_ID, InMemoryCaptionSurface

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cue:
    start: float
    end: float
    lines: tuple[str, ...]


def _cues_from(items: Iterable[pysrt.SubRipItem]) -> List[Cue]:
    cues: List[Cue] = []
    for item in items:
        start = item.start.ordinal / 1000.0
        end = item.end.ordinal / 1000.0
        lines = tuple(ln.strip() for ln in item.text.splitlines() if ln.strip())
        if lines and end > start:
            cues.append(Cue(start=start, end=end, lines=lines))
    cues.sort(key=lambda c: c.start)
    return cues


def parse_srt(text: str) -> List[Cue]:
    return _cues_from(pysrt.from_string(text))


def load_srt(path: str | Path) -> List[Cue]:
    # Accept UTF-8 with or without BOM, like the config loader.
    return _cues_from(pysrt.open(str(path), encoding="utf-8-sig"))


def cue_blocks(cue: Cue) -> tuple[str, ...]:
    """Render a cue the way the player does: one text block, lines separated by <br>."""
    inner = "<br>".join(f"<span>{html.escape(ln)}</span>" for ln in cue.lines)
    return (inner,)


async def replay_cues(
    surface: InMemoryCaptionSurface,
    cues: Sequence[Cue],
    *,
    speed: float = 1.0,
    container_id: str = DEFAULT_CONTAINER_ID,
    stop: Optional[asyncio.Event] = None,
) -> int:
    """
    Drive the surface through the cues in wall time; returns cues shown.

    The container is emptied at each cue end and removed after the last one.
    """
    if not cues:
        return 0
    speed = max(float(speed), 1e-6)
    base_t = cues[0].start
    start = time.perf_counter()

    async def wait_until(media_time: float) -> bool:
        target = (media_time - base_t) / speed
        delay = target - (time.perf_counter() - start)
        if delay <= 0:
            return stop is None or not stop.is_set()
        if stop is None:
            await asyncio.sleep(delay)
            return True
        try:
            await asyncio.wait_for(stop.wait(), timeout=delay)
            return False
        except asyncio.TimeoutError:
            return True

    shown = 0
    for i, cue in enumerate(cues):
        if not await wait_until(cue.start):
            break
        surface.set_blocks(cue_blocks(cue), container_id)
        # Players restyle the block right after inserting it.
        surface.touch()
        shown += 1
        next_start = cues[i + 1].start if i + 1 < len(cues) else None
        if next_start is not None and next_start <= cue.end:
            continue
        if not await wait_until(cue.end):
            break
        surface.clear(container_id)

    surface.remove(container_id)
    log.info("replay_finished", extra={"cues": len(cues), "shown": shown})
    return shown
