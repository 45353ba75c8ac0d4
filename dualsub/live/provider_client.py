from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from dualsub.contracts import TranslationRequest
from dualsub.live.cache import TranslationCache
from dualsub.nlp.translator.base import ConfigurationError, ProviderError, Translator
from dualsub.nlp.translator.factory import get_translator

log = logging.getLogger(__name__)


class ProviderAdapter(Protocol):
    service: str

    async def translate(self, text: str, target_lang: str, context: str = "") -> str:
        ...


class ProviderClient:
    """
    Async front for a blocking Translator.

    Calls run in a worker thread so the event loop keeps detecting captions
    while a provider is slow. Keeps its own cache, independent from the
    orchestrator's, keyed the same way.
    """

    def __init__(
        self,
        translator: Translator,
        *,
        cache_size: int = 1000,
        timeout_sec: float = 0.0,
    ) -> None:
        self.translator = translator
        self.service = translator.name
        self.timeout_sec = max(0.0, float(timeout_sec))
        self.cache = TranslationCache(max_size=cache_size, name="provider")

    async def translate(self, text: str, target_lang: str, context: str = "") -> str:
        cached = self.cache.get(self.service, target_lang, text)
        if cached is not None:
            return cached

        req = TranslationRequest(text=text, context=context, target_lang=target_lang)
        call = asyncio.to_thread(self.translator.translate, req)
        try:
            if self.timeout_sec > 0:
                res = await asyncio.wait_for(call, timeout=self.timeout_sec)
            else:
                res = await call
        except (ProviderError, ConfigurationError):
            raise
        except asyncio.TimeoutError as e:
            raise ProviderError(f"{self.service} timed out after {self.timeout_sec:.1f}s") from e
        except Exception as e:
            raise ProviderError(f"{self.service} failed: {e}") from e

        translated = str(getattr(res, "translated_text", "") or "").strip()
        if not translated:
            raise ProviderError(f"{self.service} returned an empty translation")

        self.cache.put(self.service, target_lang, text, translated)
        log.debug(
            "provider_translated",
            extra={"service": self.service, "target_lang": target_lang, "chars": len(text)},
        )
        return translated


class MisconfiguredProvider:
    """Stands in for a provider the current settings cannot build; every call fails."""

    def __init__(self, service: str, error: ConfigurationError) -> None:
        self.service = service
        self.error = error

    async def translate(self, text: str, target_lang: str, context: str = "") -> str:
        raise self.error


def build_provider_client(settings: Any) -> ProviderAdapter:
    service = str(getattr(settings, "translation_service", "") or "")
    try:
        translator = get_translator(service, str(getattr(settings, "api_key", "") or ""))
    except ConfigurationError as e:
        log.error("provider_misconfigured", extra={"service": service, "detail": str(e)})
        return MisconfiguredProvider(service, e)
    timeout: Optional[float] = getattr(settings, "translate_timeout_sec", 0.0)
    return ProviderClient(
        translator,
        cache_size=int(getattr(settings, "provider_cache_size", 1000)),
        timeout_sec=float(timeout or 0.0),
    )
