from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Set

from dualsub.app.config import Settings
from dualsub.caption.surface import CaptionSurface
from dualsub.contracts import CaptionSnapshot, PresentationSink, Signal
from dualsub.live.context import ContextBuffer
from dualsub.live.detector import ChangeDetector
from dualsub.live.pipeline import TranslationOrchestrator
from dualsub.live.provider_client import ProviderAdapter, build_provider_client
from dualsub.live.throttle import TrailingThrottle

log = logging.getLogger(__name__)

ProviderFactory = Callable[[Settings], ProviderAdapter]


class WatchSession:
    """
    Everything that lives for one watched video.

    Surface mutations and the periodic poll both go through trigger(), which
    throttles detection; detected snapshots are translated in background
    tasks on the running loop. Settings pushes and navigation reset state
    here instead of in module globals.
    """

    def __init__(
        self,
        *,
        surface: CaptionSurface,
        sink: PresentationSink,
        settings: Settings,
        provider_factory: ProviderFactory = build_provider_client,
        on_poll: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.surface = surface
        self.settings = settings
        self.provider_factory = provider_factory
        self.on_poll = on_poll
        self.detector = ChangeDetector(surface, settings.container_id)
        self.orchestrator = TranslationOrchestrator(
            sink=sink,
            provider=provider_factory(settings),
            target_lang=settings.target_language,
            context=ContextBuffer(settings.history_size),
            line_cache_size=settings.line_cache_size,
            snapshot_cache_size=settings.snapshot_cache_size,
        )
        self._throttle = TrailingThrottle(self.process, settings.throttle_ms / 1000.0)
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._url: Optional[str] = None
        self._unsubscribe = surface.subscribe(self.trigger)

    def trigger(self) -> None:
        if not self.settings.enabled:
            return
        self._throttle()

    def process(self) -> None:
        """Read the surface once and act on what changed."""
        observed = self.detector.observe()
        if observed is Signal.NO_CHANGE:
            return
        if observed is Signal.HIDE:
            self.orchestrator.hide()
            return
        self._spawn(observed)

    def apply_settings(self, settings: Settings) -> None:
        self.settings = settings
        self.detector.container_id = settings.container_id
        self.detector.reset()
        self._throttle.interval = settings.throttle_ms / 1000.0
        self.orchestrator.configure(self.provider_factory(settings), settings.target_language)
        log.info(
            "settings_applied",
            extra={
                "translation_service": settings.translation_service,
                "target_language": settings.target_language,
                "enabled": settings.enabled,
            },
        )
        if not settings.enabled:
            self._throttle.cancel()
            self.orchestrator.hide()
            return
        # Forget the last caption so the one on screen is translated again.
        self.process()

    def navigate(self, url: str) -> bool:
        """Record the page URL; a change means a new video and resets the session state."""
        previous, self._url = self._url, url
        if previous is None or previous == url:
            return False
        log.info("navigation_reset", extra={"url": url})
        self._throttle.cancel()
        self.detector.reset()
        self.orchestrator.reset()
        return True

    async def run(self, stop: asyncio.Event) -> None:
        """Backstop poll until stop is set, catching changes no mutation reported."""
        log.info("session_started", extra={"poll_sec": self.settings.poll_sec})
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=max(0.01, float(self.settings.poll_sec)))
                break
            except asyncio.TimeoutError:
                pass
            if self.on_poll is not None:
                self.on_poll()
            self.trigger()
        log.info("session_stopped")

    def flush(self) -> None:
        """Act on a surface change still held back by the throttle window."""
        self._throttle.flush()

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._unsubscribe()
        self._throttle.cancel()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

    def _spawn(self, snapshot: CaptionSnapshot) -> None:
        task = asyncio.get_running_loop().create_task(self._translate(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _translate(self, snapshot: CaptionSnapshot) -> None:
        try:
            await self.orchestrator.translate_and_display(snapshot)
        except Exception:
            log.exception("translation_failed", extra={"lines": len(snapshot.lines)})
            if self.orchestrator.current is snapshot:
                self.detector.reset()
                self.orchestrator.hide()
