# dualsub/live/pipeline.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from dualsub.contracts import CaptionSnapshot, PresentationSink
from dualsub.live.cache import TranslationCache
from dualsub.live.context import ContextBuffer
from dualsub.live.provider_client import ProviderAdapter
from dualsub.nlp.translator.base import ConfigurationError

log = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    TRANSLATING = "translating"
    COMMITTED = "committed"


@dataclass(eq=False)
class PendingTranslation:
    """Cancellation token shared by every line task of one snapshot."""
    snapshot: CaptionSnapshot
    created_at: float = field(default_factory=time.monotonic)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(frozen=True)
class _LineOutcome:
    text: str
    error: Optional[Exception] = None


class TranslationOrchestrator:
    """
    Translates detected snapshots and decides what reaches the sink.

    Only the newest snapshot may be committed: each new snapshot or hide
    cancels the live PendingTranslation, and results are checked against
    their token before they touch the display or the context buffer.
    """

    def __init__(
        self,
        *,
        sink: PresentationSink,
        provider: ProviderAdapter,
        target_lang: str,
        context: Optional[ContextBuffer] = None,
        line_cache_size: int = 500,
        snapshot_cache_size: int = 500,
    ) -> None:
        self.sink = sink
        self.provider = provider
        self.target_lang = target_lang
        self.context = context if context is not None else ContextBuffer()
        self.line_cache = TranslationCache(max_size=line_cache_size, name="line")
        self.snapshot_cache = TranslationCache(max_size=snapshot_cache_size, name="snapshot")
        self.state = PipelineState.IDLE
        self.current: Optional[CaptionSnapshot] = None
        self._live: Optional[PendingTranslation] = None

    @property
    def live(self) -> Optional[PendingTranslation]:
        return self._live

    def configure(self, provider: ProviderAdapter, target_lang: str) -> None:
        """Switch provider/language; everything cached for the old configuration is dropped."""
        self._cancel_live()
        self.provider = provider
        self.target_lang = target_lang
        self.line_cache.clear()
        self.snapshot_cache.clear()
        if self.state == PipelineState.TRANSLATING:
            self.state = PipelineState.IDLE
            self.current = None

    def hide(self) -> None:
        self._cancel_live()
        if self.state != PipelineState.IDLE:
            log.info("overlay_hidden", extra={"from_state": self.state.value})
        self.state = PipelineState.IDLE
        self.current = None
        self.sink.hide()

    def reset(self) -> None:
        """New video: forget context as well as the display."""
        self.hide()
        self.context.reset()

    async def translate_and_display(self, snapshot: CaptionSnapshot) -> bool:
        """Translate one snapshot; returns True when its translation was committed."""
        if not snapshot:
            self.hide()
            return False

        self._cancel_live()
        provider = self.provider
        service = provider.service
        lang = self.target_lang

        cached = self.snapshot_cache.get(service, lang, snapshot.text)
        if cached is not None:
            log.info("snapshot_cache_hit", extra={"service": service, "target_lang": lang})
            self._commit(snapshot, cached)
            return True

        token = PendingTranslation(snapshot)
        self._live = token
        self.state = PipelineState.TRANSLATING
        self.current = snapshot
        context = self.context.joined(exclude=snapshot.joined)

        unique = list(dict.fromkeys(snapshot.lines))
        outcomes = await asyncio.gather(
            *(self._translate_line(line, context, token, provider, lang) for line in unique)
        )
        by_line: Dict[str, _LineOutcome] = dict(zip(unique, outcomes))

        if token.cancelled:
            log.info(
                "translation_discarded",
                extra={"age_ms": round((time.monotonic() - token.created_at) * 1000.0, 2)},
            )
            return False

        self._log_failures(service, [(ln, by_line[ln]) for ln in unique])
        translation = "\n".join(by_line[ln].text for ln in snapshot.lines)
        self.snapshot_cache.put(service, lang, snapshot.text, translation)
        self._live = None
        self._commit(snapshot, translation)
        log.info(
            "translation_committed",
            extra={
                "service": service,
                "target_lang": lang,
                "lines": len(snapshot.lines),
                "ms": round((time.monotonic() - token.created_at) * 1000.0, 2),
            },
        )
        return True

    async def _translate_line(
        self,
        line: str,
        context: str,
        token: PendingTranslation,
        provider: ProviderAdapter,
        lang: str,
    ) -> _LineOutcome:
        cached = self.line_cache.get(provider.service, lang, line)
        if cached is not None:
            return _LineOutcome(cached)
        try:
            translated = await provider.translate(line, lang, context)
        except Exception as e:
            return _LineOutcome(line, error=e)
        if token.cancelled:
            return _LineOutcome(line)
        self.line_cache.put(provider.service, lang, line, translated)
        return _LineOutcome(translated)

    def _commit(self, snapshot: CaptionSnapshot, translation: str) -> None:
        self.state = PipelineState.COMMITTED
        self.current = snapshot
        self.context.append(snapshot.joined)
        self.sink.show(translation)

    def _cancel_live(self) -> None:
        if self._live is not None:
            self._live.cancel()
            self._live = None

    @staticmethod
    def _log_failures(service: str, outcomes: List[Tuple[str, _LineOutcome]]) -> None:
        config_errors = [o.error for _, o in outcomes if isinstance(o.error, ConfigurationError)]
        if config_errors:
            log.error(
                "provider_configuration_error",
                extra={"service": service, "detail": str(config_errors[0]), "lines": len(outcomes)},
            )
            return
        for line, outcome in outcomes:
            if outcome.error is None:
                continue
            log.warning(
                "line_fallback",
                extra={
                    "service": service,
                    "chars": len(line),
                    "error": type(outcome.error).__name__,
                    "detail": str(outcome.error),
                },
            )
