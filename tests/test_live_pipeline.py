from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

from dualsub.contracts import CaptionSnapshot
from dualsub.live.pipeline import PipelineState, TranslationOrchestrator
from dualsub.live.provider_client import MisconfiguredProvider
from dualsub.nlp.translator.base import ConfigurationError, ProviderError


# --- fakes ---

class RecordingSink:
    def __init__(self) -> None:
        self.shown: List[str] = []
        self.hides = 0

    def show(self, text: str) -> None:
        self.shown.append(text)

    def hide(self) -> None:
        self.hides += 1


class FakeProvider:
    def __init__(
        self,
        service: str = "fake",
        table: Optional[Dict[str, str]] = None,
        fail: Iterable[str] = (),
        gates: Optional[Dict[str, asyncio.Event]] = None,
    ) -> None:
        self.service = service
        self.table = table or {}
        self.fail = set(fail)
        self.gates = gates or {}
        self.calls: List[tuple[str, str, str]] = []

    async def translate(self, text: str, target_lang: str, context: str = "") -> str:
        self.calls.append((text, target_lang, context))
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if text in self.fail:
            raise ProviderError(f"boom: {text}")
        return self.table.get(text, f"{target_lang}:{text}")


def snap(*lines: str) -> CaptionSnapshot:
    return CaptionSnapshot(lines=tuple(lines))


def make(provider, lang: str = "fr"):
    sink = RecordingSink()
    orch = TranslationOrchestrator(sink=sink, provider=provider, target_lang=lang)
    return orch, sink


def test_two_snapshots_reuse_line_cache_and_pass_context() -> None:
    provider = FakeProvider(table={"Hello there": "Bonjour", "How are you?": "Comment ça va ?"})
    orch, sink = make(provider)

    async def scenario() -> None:
        assert await orch.translate_and_display(snap("Hello there"))
        assert sink.shown == ["Bonjour"]
        assert orch.context.snapshot() == ["Hello there"]
        assert orch.state == PipelineState.COMMITTED

        provider.calls.clear()
        assert await orch.translate_and_display(snap("Hello there", "How are you?"))
        assert provider.calls == [("How are you?", "fr", "Hello there")]
        assert sink.shown[-1] == "Bonjour\nComment ça va ?"
        assert orch.context.snapshot() == ["Hello there", "Hello there How are you?"]

    asyncio.run(scenario())


def test_late_result_for_superseded_snapshot_is_never_rendered() -> None:
    async def scenario() -> None:
        slow = asyncio.Event()
        provider = FakeProvider(gates={"first caption": slow})
        orch, sink = make(provider)

        t1 = asyncio.create_task(orch.translate_and_display(snap("first caption")))
        await asyncio.sleep(0.01)
        assert orch.state == PipelineState.TRANSLATING

        assert await orch.translate_and_display(snap("second caption"))
        slow.set()
        assert await t1 is False

        assert sink.shown == ["fr:second caption"]
        assert orch.context.snapshot() == ["second caption"]
        assert orch.current == snap("second caption")
        assert orch.line_cache.get("fake", "fr", "first caption") is None

    asyncio.run(scenario())


def test_failed_line_falls_back_to_original_text() -> None:
    provider = FakeProvider(fail={"Line two"})
    orch, sink = make(provider)

    asyncio.run(orch.translate_and_display(snap("Line one", "Line two", "Line three")))

    assert sink.shown == ["fr:Line one\nLine two\nfr:Line three"]
    assert len(orch.line_cache) == 2
    assert orch.snapshot_cache.get("fake", "fr", "Line one\nLine two\nLine three") == sink.shown[0]


def test_caption_with_failed_line_is_redisplayed_from_cache() -> None:
    provider = FakeProvider(fail={"B"})
    orch, sink = make(provider)

    async def scenario() -> None:
        await orch.translate_and_display(snap("A", "B"))
        orch.hide()
        await orch.translate_and_display(snap("A", "B"))

    asyncio.run(scenario())
    assert [c[0] for c in provider.calls] == ["A", "B"]
    assert sink.shown == ["fr:A\nB", "fr:A\nB"]


def test_repeated_snapshot_is_served_from_cache() -> None:
    provider = FakeProvider()
    orch, sink = make(provider)

    async def scenario() -> None:
        await orch.translate_and_display(snap("Again"))
        orch.hide()
        await orch.translate_and_display(snap("Again"))

    asyncio.run(scenario())
    assert len(provider.calls) == 1
    assert sink.shown == ["fr:Again", "fr:Again"]
    assert orch.context.snapshot() == ["Again"]


def test_configuration_change_invalidates_caches() -> None:
    old = FakeProvider(service="old")
    new = FakeProvider(service="new")
    orch, sink = make(old)

    async def scenario() -> None:
        await orch.translate_and_display(snap("Hi"))
        orch.configure(new, "de")
        assert len(orch.line_cache) == 0
        assert len(orch.snapshot_cache) == 0
        await orch.translate_and_display(snap("Hi"))

    asyncio.run(scenario())
    assert old.calls == [("Hi", "fr", "")]
    assert new.calls == [("Hi", "de", "")]
    assert sink.shown == ["fr:Hi", "de:Hi"]


def test_context_is_capped_and_never_contains_current_caption() -> None:
    provider = FakeProvider()
    orch, _ = make(provider)

    async def scenario() -> None:
        for i in range(7):
            await orch.translate_and_display(snap(f"c{i}"))
        await orch.translate_and_display(snap("c7"))
        assert provider.calls[-1] == ("c7", "fr", "c2 c3 c4 c5 c6")

        # Same caption again after caches were dropped: it is already the newest context entry.
        orch.configure(provider, "fr")
        await orch.translate_and_display(snap("c7"))
        assert provider.calls[-1] == ("c7", "fr", "c3 c4 c5 c6")

    asyncio.run(scenario())


def test_configuration_error_shows_originals_for_every_line() -> None:
    provider = MisconfiguredProvider("deepl", ConfigurationError("deepl requires an API key"))
    orch, sink = make(provider)

    assert asyncio.run(orch.translate_and_display(snap("One", "Two")))
    assert sink.shown == ["One\nTwo"]
    assert len(orch.line_cache) == 0
    assert len(orch.snapshot_cache) == 1


def test_hide_cancels_inflight_translation() -> None:
    async def scenario() -> None:
        gate = asyncio.Event()
        provider = FakeProvider(gates={"pending": gate})
        orch, sink = make(provider)

        task = asyncio.create_task(orch.translate_and_display(snap("pending")))
        await asyncio.sleep(0.01)
        orch.hide()
        gate.set()

        assert await task is False
        assert sink.shown == []
        assert sink.hides == 1
        assert orch.state == PipelineState.IDLE
        assert orch.context.snapshot() == []

    asyncio.run(scenario())


def test_duplicate_lines_are_translated_once() -> None:
    provider = FakeProvider()
    orch, sink = make(provider)
    asyncio.run(orch.translate_and_display(snap("Hey!", "Hey!")))
    assert len(provider.calls) == 1
    assert sink.shown == ["fr:Hey!\nfr:Hey!"]


def test_reset_clears_context_and_hides() -> None:
    provider = FakeProvider()
    orch, sink = make(provider)
    asyncio.run(orch.translate_and_display(snap("Hello")))
    orch.reset()
    assert orch.context.snapshot() == []
    assert sink.hides == 1
    assert orch.current is None
