from __future__ import annotations

import asyncio
import logging
import threading
import time
from pathlib import Path
from typing import Any, Sequence

from dualsub.app.services import WatchServices, build_watch_services
from dualsub.caption.replay import Cue, load_srt, replay_cues
from dualsub.contracts import PresentationSink
from dualsub.ui.bridge import SubtitleBus


def _drain_subtitle_bus(bus: SubtitleBus, overlay: Any, max_items: int) -> int:
    drained = 0
    while drained < max_items:
        cmd = bus.pop()
        if cmd is None:
            break
        overlay.apply_command(cmd)
        drained += 1
    return drained


def _log_event(logger: logging.Logger | None, level: int, event: str, **fields: Any) -> None:
    if logger is None:
        return
    logger.log(level, event, extra=fields)


async def run_watch(
    services: WatchServices,
    cues: Sequence[Cue],
    *,
    speed: float = 1.0,
    url: str = "replay://",
    stop_event: threading.Event | None = None,
) -> int:
    """Replay cues into the session's surface until done or stop_event is set."""
    session = services.session
    stop = asyncio.Event()

    async def _follow_stop_event() -> None:
        while not stop.is_set():
            if stop_event is not None and stop_event.is_set():
                stop.set()
                return
            await asyncio.sleep(0.1)

    session.navigate(url)
    poller = asyncio.create_task(session.run(stop), name="dualsub-poll")
    follower = asyncio.create_task(_follow_stop_event(), name="dualsub-stop-follower")
    try:
        shown = await replay_cues(
            services.surface,
            cues,
            speed=speed,
            container_id=session.settings.container_id,
            stop=stop,
        )
        # The container removal after the last cue may still sit in the throttle window.
        session.flush()
        await session.drain()
    finally:
        stop.set()
        await asyncio.gather(poller, follower, return_exceptions=True)
        await session.close()
    return shown


def _run_worker(
    args: Any,
    sink: PresentationSink,
    stop_event: threading.Event,
    logger: logging.Logger | None = None,
) -> None:
    cues = load_srt(args.replay)
    services = build_watch_services(args, sink)
    settings = services.store.get_all()
    _log_event(
        logger,
        logging.INFO,
        "worker_start",
        replay=str(args.replay),
        cues=len(cues),
        translation_service=settings.translation_service,
        target_language=settings.target_language,
        speed=float(args.replay_speed),
    )
    t0 = time.perf_counter()
    shown = 0
    try:
        shown = asyncio.run(
            run_watch(
                services,
                cues,
                speed=float(args.replay_speed),
                url=f"replay://{Path(args.replay).name}",
                stop_event=stop_event,
            )
        )
    except KeyboardInterrupt:
        _log_event(logger, logging.INFO, "worker_keyboard_interrupt")
    finally:
        stop_event.set()
        orchestrator = services.session.orchestrator
        _log_event(
            logger,
            logging.INFO,
            "worker_stop",
            cues_shown=shown,
            line_cache=len(orchestrator.line_cache),
            snapshot_cache=len(orchestrator.snapshot_cache),
            context=len(orchestrator.context),
            seconds=round(time.perf_counter() - t0, 2),
        )
