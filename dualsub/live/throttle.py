from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional


class TrailingThrottle:
    """
    Rate-limit a callback to once per window, keeping the trailing call.

    The first call runs immediately and opens a window. Calls arriving inside
    the window are collapsed: only the most recent arguments are kept and run
    once when the window closes, so a burst ending in a caption removal is
    never lost. Must be called from inside a running event loop.
    """

    def __init__(self, func: Callable[..., Any], interval: float):
        self.func = func
        self.interval = max(0.0, float(interval))
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[tuple[Any, ...]] = None

    @property
    def in_window(self) -> bool:
        return self._timer is not None

    def __call__(self, *args: Any) -> None:
        if self._timer is None:
            self.func(*args)
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.interval, self._close_window)
        else:
            self._pending = args

    def _close_window(self) -> None:
        self._timer = None
        pending, self._pending = self._pending, None
        if pending is not None:
            self.func(*pending)

    def flush(self) -> None:
        """Close the window now, running the pending trailing call if there is one."""
        if self._timer is not None:
            self._timer.cancel()
            self._close_window()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None
