from __future__ import annotations

import argparse
import copy
import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, List

from platformdirs import user_config_dir

log = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "enabled": True,
    "target_language": "tr",
    "translation_service": "argos",
    "api_key": "",
    "position": "bottom",
    "translated_size": 18,
    "translated_color": "#ffff00",
    "show_background": True,
    "bg_opacity": 80,
    "text_opacity": 100,
    "container_id": "player-timedtext",
    "throttle_ms": 100,
    "poll_sec": 2.0,
    "history_size": 5,
    "line_cache_size": 500,
    "snapshot_cache_size": 500,
    "provider_cache_size": 1000,
    "translate_timeout_sec": 0.0,
    "poll_ms": 60,
    "queue_maxsize": 100,
    "max_updates_per_tick": 20,
    "print_console": True,
    "replay_speed": 1.0,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())


@dataclass(frozen=True)
class Settings:
    enabled: bool = True
    target_language: str = "tr"
    translation_service: str = "argos"
    api_key: str = ""
    position: str = "bottom"
    translated_size: int = 18
    translated_color: str = "#ffff00"
    show_background: bool = True
    bg_opacity: int = 80
    text_opacity: int = 100
    container_id: str = "player-timedtext"
    throttle_ms: int = 100
    poll_sec: float = 2.0
    history_size: int = 5
    line_cache_size: int = 500
    snapshot_cache_size: int = 500
    provider_cache_size: int = 1000
    translate_timeout_sec: float = 0.0
    poll_ms: int = 60
    queue_maxsize: int = 100
    max_updates_per_tick: int = 20
    print_console: bool = True
    replay_speed: float = 1.0

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "Settings":
        # Total replacement: anything missing falls back to defaults, not to a previous value.
        merged = copy.deepcopy(DEFAULTS)
        merged.update(_known_only(values))
        if merged["position"] not in ("top", "bottom"):
            merged["position"] = "bottom"
        return cls(**{f.name: merged[f.name] for f in fields(cls)})

    def to_values(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("DualSub", "DualSub"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in CONFIG_KEYS:
        if key in payload:
            out[key] = payload[key]
    return out


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists()
    merged = copy.deepcopy(DEFAULTS)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def save_user_config(values: dict[str, Any], config_path: str | None = None) -> Path:
    path = Path(config_path) if config_path else ensure_user_config_exists()
    existing = _known_only(_load_json_dict(path)) if path.exists() else {}
    merged = copy.deepcopy(DEFAULTS)
    merged.update(existing)
    merged.update(_known_only(values))
    _write_json_dict(path, merged)
    return path


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or copy.deepcopy(DEFAULTS))
    return paths.config_path


SettingsListener = Callable[[Settings], None]


class SettingsStore:
    """
    Read side of the settings collaborator.

    get_all() returns the current Settings; replace() pushes a complete new
    settings object to every subscriber. reload_if_changed() turns edits of
    the config file into such pushes.
    """

    def __init__(self, values: dict[str, Any] | None = None, path: Path | None = None):
        self.path = path
        self._settings = Settings.from_values(values or {})
        self._listeners: List[SettingsListener] = []
        self._mtime = self._stat_mtime()

    @classmethod
    def from_file(cls, config_path: str | None = None) -> "SettingsStore":
        values, path = load_user_config(config_path)
        return cls(values, path=path)

    def get_all(self) -> Settings:
        return self._settings

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def replace(self, values: dict[str, Any]) -> Settings:
        self._settings = Settings.from_values(values)
        log.info(
            "settings_updated",
            extra={
                "translation_service": self._settings.translation_service,
                "target_language": self._settings.target_language,
                "api_key_set": bool(self._settings.api_key),
                "enabled": self._settings.enabled,
            },
        )
        for listener in list(self._listeners):
            listener(self._settings)
        return self._settings

    def reload_if_changed(self) -> bool:
        mtime = self._stat_mtime()
        if self.path is None or mtime is None or mtime == self._mtime:
            return False
        self._mtime = mtime
        try:
            values = _load_json_dict(self.path)
        except (OSError, ValueError):
            log.exception("settings_reload_failed", extra={"config_path": str(self.path)})
            return False
        self.replace(values)
        return True

    def _stat_mtime(self) -> float | None:
        if self.path is None:
            return None
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None


def resolve_defaults(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    return load_user_config(config_path=config_path)


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dualsub")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--replay", default=None, help="SRT file replayed into the caption surface")
    p.add_argument("--console", action="store_true", help="print translations instead of the Qt overlay")
    p.add_argument(
        "--enabled",
        action=argparse.BooleanOptionalAction,
        default=defaults["enabled"],
        help="enable/disable the translated track",
    )
    p.add_argument("--target-language", default=defaults["target_language"], help="ISO target language code")
    p.add_argument(
        "--translation-service",
        default=defaults["translation_service"],
        help="translation service identifier (argos|stub or a registered binding)",
    )
    p.add_argument("--api-key", default=defaults["api_key"], help="credential for services that need one")
    p.add_argument("--position", default=defaults["position"], choices=["top", "bottom"], help="overlay position")
    p.add_argument("--translated-size", type=int, default=defaults["translated_size"], help="font size (px)")
    p.add_argument("--translated-color", default=defaults["translated_color"], help="text colour")
    p.add_argument(
        "--show-background",
        action=argparse.BooleanOptionalAction,
        default=defaults["show_background"],
        help="draw a dark panel behind the translation",
    )
    p.add_argument("--bg-opacity", type=int, default=defaults["bg_opacity"], help="background opacity (0-100)")
    p.add_argument("--text-opacity", type=int, default=defaults["text_opacity"], help="text opacity (0-100)")
    p.add_argument("--container-id", default=defaults["container_id"], help="caption container identifier")
    p.add_argument("--throttle-ms", type=int, default=defaults["throttle_ms"], help="detection throttle window")
    p.add_argument("--poll-sec", type=float, default=defaults["poll_sec"], help="backstop poll interval")
    p.add_argument("--history-size", type=int, default=defaults["history_size"], help="context captions kept")
    p.add_argument("--line-cache-size", type=int, default=defaults["line_cache_size"], help="line cache capacity")
    p.add_argument(
        "--snapshot-cache-size",
        type=int,
        default=defaults["snapshot_cache_size"],
        help="whole-caption cache capacity",
    )
    p.add_argument(
        "--provider-cache-size",
        type=int,
        default=defaults["provider_cache_size"],
        help="provider-layer cache capacity",
    )
    p.add_argument(
        "--translate-timeout-sec",
        type=float,
        default=defaults["translate_timeout_sec"],
        help="give up on a provider call after this long (0 = wait)",
    )
    p.add_argument("--poll-ms", type=int, default=defaults["poll_ms"], help="UI queue poll interval (ms)")
    p.add_argument(
        "--queue-maxsize",
        type=int,
        default=defaults["queue_maxsize"],
        help="max overlay commands queued between worker and UI",
    )
    p.add_argument(
        "--max-updates-per-tick",
        type=int,
        default=defaults["max_updates_per_tick"],
        help="max overlay commands applied per UI timer tick",
    )
    p.add_argument(
        "--print-console",
        action=argparse.BooleanOptionalAction,
        default=defaults["print_console"],
        help="print committed translations to console",
    )
    p.add_argument("--replay-speed", type=float, default=defaults["replay_speed"], help="1.0 = realtime")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = resolve_defaults(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {key: getattr(args, key) for key in CONFIG_KEYS if hasattr(args, key)}
