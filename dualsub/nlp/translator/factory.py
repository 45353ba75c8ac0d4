from __future__ import annotations
from typing import Callable, Dict
from .base import ConfigurationError, Translator
from .argos import ArgosTranslator
from .stub import StubTranslator

TranslatorFactory = Callable[[str], Translator]

_REGISTRY: Dict[str, tuple[TranslatorFactory, bool]] = {}


def register_translator(service: str, factory: TranslatorFactory, *, requires_credentials: bool = False) -> None:
    """Bind a service identifier to a factory taking the configured credential."""
    _REGISTRY[service.lower().strip()] = (factory, requires_credentials)


def available_services() -> list[str]:
    return sorted(_REGISTRY)


def get_translator(service: str, credentials: str = "") -> Translator:
    key = (service or "").lower().strip()
    if key not in _REGISTRY:
        raise ConfigurationError(f"Unknown translation service: {service}")
    factory, requires_credentials = _REGISTRY[key]
    if requires_credentials and not (credentials or "").strip():
        raise ConfigurationError(f"{key} requires an API key")
    return factory(credentials)


register_translator("argos", lambda credentials: ArgosTranslator())
register_translator("stub", lambda credentials: StubTranslator())
