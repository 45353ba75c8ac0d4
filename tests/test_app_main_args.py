from __future__ import annotations

import json
from pathlib import Path

from dualsub.app.config import resolve_args, settings_from_args


def test_app_resolve_args_cli_overrides_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(
        json.dumps(
            {
                "translation_service": "stub",
                "target_language": "fr",
                "poll_ms": 60,
            }
        ),
        encoding="utf-8",
    )
    args = resolve_args(
        [
            "--config",
            str(cfg_path),
            "--translation-service",
            "argos",
            "--poll-ms",
            "30",
        ]
    )
    assert args.translation_service == "argos"
    assert args.target_language == "fr"
    assert args.poll_ms == 30


def test_app_resolve_args_overlay_controls(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(
        json.dumps({"bg_opacity": 40, "position": "bottom", "show_background": True}),
        encoding="utf-8",
    )
    args = resolve_args(
        [
            "--config",
            str(cfg_path),
            "--bg-opacity",
            "75",
            "--position",
            "top",
            "--no-show-background",
        ]
    )
    assert args.bg_opacity == 75
    assert args.position == "top"
    assert args.show_background is False


def test_app_resolve_args_enabled_toggle(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps({"enabled": False}), encoding="utf-8")
    assert resolve_args(["--config", str(cfg_path)]).enabled is False
    assert resolve_args(["--config", str(cfg_path), "--enabled"]).enabled is True


def test_app_resolve_args_replay_and_console(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text("{}", encoding="utf-8")
    args = resolve_args(
        ["--config", str(cfg_path), "--replay", "talk.srt", "--console", "--replay-speed", "4"]
    )
    assert args.replay == "talk.srt"
    assert args.console is True
    assert args.replay_speed == 4.0


def test_settings_from_args_only_carries_config_keys(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps({"api_key": "secret"}), encoding="utf-8")
    values = settings_from_args(resolve_args(["--config", str(cfg_path), "--throttle-ms", "250"]))
    assert values["api_key"] == "secret"
    assert values["throttle_ms"] == 250
    assert "config" not in values
    assert "replay" not in values
