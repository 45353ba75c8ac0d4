from __future__ import annotations

import queue
import signal
import sys
import threading
import traceback

from dualsub.app.config import Settings, resolve_args, settings_from_args
from dualsub.app.logging_setup import setup_app_logger
from dualsub.app.runtime import _drain_subtitle_bus, _run_worker
from dualsub.ui.bridge import BusSink, ConsoleSink, FanoutSink, SubtitleBus
from dualsub.ui.style import overlay_style


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, log_dir, log_path = setup_app_logger()
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    if not args.replay:
        print("Nothing to watch: pass --replay FILE.srt")
        return 2

    if args.console:
        try:
            _run_worker(args, ConsoleSink(), threading.Event(), logger=logger)
        except Exception:
            logger.exception("worker_crash")
            print(traceback.format_exc())
            return 1
        print(f"Logs: {log_path}")
        return 0

    from PyQt6 import QtCore, QtWidgets
    from dualsub.ui.overlay_qt import SubtitleOverlay

    app = QtWidgets.QApplication(sys.argv)
    overlay = SubtitleOverlay(overlay_style(Settings.from_values(settings_from_args(args))))
    overlay.hide()

    bus = SubtitleBus(maxsize=max(1, int(args.queue_maxsize)))
    bus_sink = BusSink(bus)
    sink = FanoutSink(bus_sink, ConsoleSink()) if args.print_console else bus_sink
    err_q: "queue.Queue[str]" = queue.Queue(maxsize=8)
    stop_event = threading.Event()

    def _worker_entry() -> None:
        try:
            _run_worker(args, sink, stop_event, logger=logger)
        except Exception:
            logger.exception("worker_crash")
            try:
                err_q.put_nowait(traceback.format_exc())
            except queue.Full:
                pass

    worker_thread = threading.Thread(target=_worker_entry, name="dualsub-watch-worker", daemon=True)

    timer = QtCore.QTimer()

    def _on_tick() -> None:
        _drain_subtitle_bus(bus, overlay, max(1, int(args.max_updates_per_tick)))
        try:
            err = err_q.get_nowait()
        except queue.Empty:
            err = None
        if err is not None:
            print("Watch worker crashed:")
            print(err)
            app.quit()
            return
        if not worker_thread.is_alive() and bus.q.empty():
            app.quit()

    timer.timeout.connect(_on_tick)
    timer.start(max(10, int(args.poll_ms)))

    def _on_about_to_quit() -> None:
        logger.info("app_quit")
        stop_event.set()

    overlay.escape_requested.connect(app.quit)
    app.aboutToQuit.connect(_on_about_to_quit)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    worker_thread.start()
    print(f"DualSub overlay running. Logs: {log_path}")
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
