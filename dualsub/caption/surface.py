from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

log = logging.getLogger(__name__)

DEFAULT_CONTAINER_ID = "player-timedtext"

MutationListener = Callable[[], None]


@dataclass(frozen=True)
class CaptionContainer:
    """
    Caption region as rendered by the player.
    blocks: inner markup of each caption text block (one per speaker/line group).
    """
    container_id: str
    blocks: Tuple[str, ...] = ()


class CaptionSurface(Protocol):
    def query(self, container_id: str) -> Optional[CaptionContainer]:
        ...

    def subscribe(self, listener: MutationListener) -> Callable[[], None]:
        ...


class InMemoryCaptionSurface:
    """
    Mutable stand-in for the player's caption DOM.

    Every write notifies listeners, including writes that leave the text
    unchanged (the player re-renders styles far more often than it changes
    captions).
    """

    def __init__(self) -> None:
        self._containers: Dict[str, CaptionContainer] = {}
        self._listeners: List[MutationListener] = []

    def query(self, container_id: str) -> Optional[CaptionContainer]:
        return self._containers.get(container_id)

    def subscribe(self, listener: MutationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_blocks(self, blocks: Sequence[str], container_id: str = DEFAULT_CONTAINER_ID) -> None:
        self._containers[container_id] = CaptionContainer(container_id=container_id, blocks=tuple(blocks))
        self._notify()

    def clear(self, container_id: str = DEFAULT_CONTAINER_ID) -> None:
        self.set_blocks((), container_id)

    def remove(self, container_id: str = DEFAULT_CONTAINER_ID) -> None:
        self._containers.pop(container_id, None)
        self._notify()

    def touch(self) -> None:
        """Fire a mutation without changing any text."""
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                log.exception("surface_listener_failed")
