from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dualsub.contracts import PresentationSink
from dualsub.ui.style import OverlayStyle, overlay_style


@dataclass(frozen=True)
class OverlayCommand:
    kind: str  # "show" | "hide" | "style"
    text: str = ""
    style: Optional[OverlayStyle] = None


class SubtitleBus:
    """
    Thread-safe handoff from worker thread -> UI thread.
    Worker puts OverlayCommand. UI polls (non-blocking).
    """
    def __init__(self, maxsize: int = 100):
        self.q: "queue.Queue[OverlayCommand]" = queue.Queue(maxsize=maxsize)

    def push(self, cmd: OverlayCommand) -> None:
        try:
            self.q.put_nowait(cmd)
        except queue.Full:
            # drop oldest to keep UI responsive
            try:
                _ = self.q.get_nowait()
            except queue.Empty:
                return
            try:
                self.q.put_nowait(cmd)
            except queue.Full:
                return

    def pop(self) -> Optional[OverlayCommand]:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return None


class BusSink:
    """Presentation sink that forwards to the UI thread through a SubtitleBus."""

    def __init__(self, bus: SubtitleBus):
        self.bus = bus

    def show(self, text: str) -> None:
        self.bus.push(OverlayCommand(kind="show", text=text))

    def hide(self) -> None:
        self.bus.push(OverlayCommand(kind="hide"))

    def restyle(self, settings: Any) -> None:
        self.bus.push(OverlayCommand(kind="style", style=overlay_style(settings)))


class ConsoleSink:
    """Prints committed translations; a hide is printed only after something was shown."""

    def __init__(self, write: Callable[[str], None] = print):
        self.write = write
        self.visible = False

    def show(self, text: str) -> None:
        self.visible = True
        for ln in text.splitlines():
            self.write(f">> {ln}")

    def hide(self) -> None:
        if self.visible:
            self.write("--")
        self.visible = False


class FanoutSink:
    def __init__(self, *sinks: PresentationSink):
        self.sinks = sinks

    def show(self, text: str) -> None:
        for sink in self.sinks:
            sink.show(text)

    def hide(self) -> None:
        for sink in self.sinks:
            sink.hide()

    def restyle(self, settings: Any) -> None:
        for sink in self.sinks:
            restyle = getattr(sink, "restyle", None)
            if restyle is not None:
                restyle(settings)
