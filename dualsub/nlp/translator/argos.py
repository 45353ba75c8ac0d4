from __future__ import annotations
import threading
from typing import Set, Tuple
from .base import ProviderError, Translator
from dualsub.contracts import TranslationRequest, TranslationResult

LanguagePair = Tuple[str, str]


class ArgosTranslator(Translator):
    """
    Offline translation through Argos Translate packages.

    Argos has no language detection, so an "auto" source falls back to
    default_source. Missing pairs are downloaded on first use unless
    auto_install is off.
    """

    def __init__(self, default_source: str = "en", auto_install: bool = True):
        self.default_source = default_source
        self.auto_install = auto_install
        self._ready: Set[LanguagePair] = set()
        # Line translations run on worker threads; one install per pair.
        self._install_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "argos"

    def _pair(self, req: TranslationRequest) -> LanguagePair:
        src = (req.source_lang or "auto").lower()
        if src == "auto":
            src = self.default_source
        return src, req.target_lang.lower()

    def _ensure_ready(self, pair: LanguagePair) -> None:
        if pair in self._ready:
            return
        with self._install_lock:
            if pair not in self._ready:
                self._install(pair)
                self._ready.add(pair)

    def _install(self, pair: LanguagePair) -> None:
        import argostranslate.package
        import argostranslate.translate

        src, dst = pair
        codes = {lang.code for lang in argostranslate.translate.get_installed_languages()}
        if src not in codes or dst not in codes:
            if not self.auto_install:
                raise ProviderError(f"Argos package {src}->{dst} not installed and auto_install=False")
            argostranslate.package.update_package_index()
            pkg = next(
                (p for p in argostranslate.package.get_available_packages() if (p.from_code, p.to_code) == pair),
                None,
            )
            if pkg is None:
                raise ProviderError(f"No Argos package found for {src}->{dst}")
            argostranslate.package.install_from_path(pkg.download())

    def translate(self, req: TranslationRequest) -> TranslationResult:
        pair = self._pair(req)
        if pair[0] == pair[1]:
            return TranslationResult(source_text=req.text, translated_text=req.text, provider=self.name)
        self._ensure_ready(pair)
        import argostranslate.translate
        out = argostranslate.translate.translate(req.text, pair[0], pair[1])
        return TranslationResult(source_text=req.text, translated_text=out, provider=self.name)
