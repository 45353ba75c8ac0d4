from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dualsub.app.config import SettingsStore, app_paths, settings_from_args
from dualsub.caption.surface import InMemoryCaptionSurface
from dualsub.contracts import PresentationSink
from dualsub.live.provider_client import build_provider_client
from dualsub.live.session import WatchSession


@dataclass(frozen=True)
class WatchServices:
    surface: InMemoryCaptionSurface
    store: SettingsStore
    session: WatchSession


def build_watch_services(args: Any, sink: PresentationSink) -> WatchServices:
    config_path = Path(args.config) if getattr(args, "config", None) else app_paths().config_path
    store = SettingsStore(settings_from_args(args), path=config_path)
    surface = InMemoryCaptionSurface()
    session = WatchSession(
        surface=surface,
        sink=sink,
        settings=store.get_all(),
        provider_factory=build_provider_client,
        on_poll=store.reload_if_changed,
    )
    store.subscribe(session.apply_settings)
    restyle = getattr(sink, "restyle", None)
    if restyle is not None:
        store.subscribe(restyle)
    return WatchServices(surface=surface, store=store, session=session)
