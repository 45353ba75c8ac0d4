from __future__ import annotations
from abc import ABC, abstractmethod
from dualsub.contracts import TranslationRequest, TranslationResult


class ProviderError(RuntimeError):
    """Network failure, non-success response or malformed payload from a provider."""


class ConfigurationError(ValueError):
    """Provider cannot be used with the current settings (unknown service, missing credential)."""


class Translator(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult: ...
