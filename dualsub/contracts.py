from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Tuple

@dataclass(frozen=True)
class TranslationRequest:
    text: str
    # Prior confirmed captions joined with spaces (never the caption itself)
    context: str = ""
    source_lang: str = "auto"
    target_lang: str = "tr"

@dataclass(frozen=True)
class TranslationResult:
    source_text: str
    translated_text: str
    provider: str

@dataclass(frozen=True)
class CaptionSnapshot:
    """
    Caption lines visible at one observation instant.
    Lines are trimmed and non-empty; an empty tuple means no caption is shown.
    """
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def joined(self) -> str:
        return " ".join(self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)


class Signal(str, Enum):
    NO_CHANGE = "no_change"
    HIDE = "hide"


class PresentationSink(Protocol):
    def show(self, text: str) -> None:
        ...

    def hide(self) -> None:
        ...
