from __future__ import annotations

import asyncio
from pathlib import Path

from dualsub.caption.replay import Cue, cue_blocks, load_srt, parse_srt, replay_cues
from dualsub.caption.surface import InMemoryCaptionSurface
from dualsub.live.detector import extract_lines

SRT = """1
00:00:01,000 --> 00:00:02,000
Hello there

2
00:00:02,000 --> 00:00:03,500
Two lines
<i>second</i> & more

3
00:00:05,000 --> 00:00:04,000
Backwards, dropped
"""


def test_parse_srt_reads_timing_and_lines() -> None:
    cues = parse_srt(SRT)
    assert cues == [
        Cue(start=1.0, end=2.0, lines=("Hello there",)),
        Cue(start=2.0, end=3.5, lines=("Two lines", "<i>second</i> & more")),
    ]


def test_load_srt_accepts_bom(tmp_path: Path) -> None:
    path = tmp_path / "talk.srt"
    path.write_text("\ufeff" + SRT.replace("\n", "\r\n"), encoding="utf-8")
    assert len(load_srt(path)) == 2


def test_cue_blocks_round_trip_through_extraction() -> None:
    cue = Cue(start=0.0, end=1.0, lines=("a < b", "c & d"))
    blocks = cue_blocks(cue)
    assert len(blocks) == 1
    assert extract_lines(blocks) == ["a < b", "c & d"]


def test_replay_cues_drives_the_surface() -> None:
    surface = InMemoryCaptionSurface()
    seen: list[tuple[str, ...]] = []

    def _listener() -> None:
        container = surface.query("player-timedtext")
        seen.append(tuple(extract_lines(container.blocks)) if container is not None else ("<gone>",))

    surface.subscribe(_listener)
    shown = asyncio.run(replay_cues(surface, parse_srt(SRT), speed=50.0))

    assert shown == 2
    assert ("Hello there",) in seen
    assert ("Two lines", "<i>second</i> & more") in seen
    assert seen[-1] == ("<gone>",)
    assert surface.query("player-timedtext") is None


def test_replay_cues_stops_early() -> None:
    async def scenario() -> int:
        stop = asyncio.Event()
        stop.set()
        return await replay_cues(InMemoryCaptionSurface(), parse_srt(SRT), speed=1.0, stop=stop)

    assert asyncio.run(scenario()) == 0


def test_parse_srt_converts_hours_and_milliseconds() -> None:
    cues = parse_srt("7\n01:02:03,450 --> 01:02:05,005\nLate line\n")
    assert cues == [Cue(start=3723.45, end=3725.005, lines=("Late line",))]
