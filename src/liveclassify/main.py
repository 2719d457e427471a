#!/usr/bin/env python3
from __future__ import annotations
import logging
import signal
import sys
import threading

from .common.logging_config import setup_logging
from .config import Settings
from .errors import LiveClassifyError
from .pipeline.context import ClassifierContext
from .pipeline.sources import CaptureSource, CaptureThread
from .pipeline.types import ClassificationResult

log = logging.getLogger("liveclassify")


def run_headless(context: ClassifierContext, settings: Settings) -> int:
    source = CaptureSource(settings.camera_device, settings.camera_width, settings.camera_height,
                           settings.camera_fps, settings.video_path)
    try:
        source.open()
    except RuntimeError as e:
        log.error("%s", e)
        return 1

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    capture = CaptureThread(source, context, on_finished=stop.set)
    capture.start()

    last = [None]

    def show(result: ClassificationResult):
        if result.text != last[0]:
            log.info("%s", result.text)
            last[0] = result.text

    try:
        context.results.consume(show, stop)
    finally:
        capture.stop()
    return 0


def run_gui(context: ClassifierContext, settings: Settings) -> int:
    from PyQt5 import QtCore, QtWidgets
    from .gui import MainWindow

    app = QtWidgets.QApplication(sys.argv)
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # lets the interpreter see SIGINT while Qt spins
    ping = QtCore.QTimer(); ping.start(100); ping.timeout.connect(lambda: None)

    w = MainWindow(context, settings)
    w.show()
    try:
        return app.exec_()
    finally:
        w.close()


def main() -> int:
    setup_logging()
    try:
        settings = Settings.from_env()
        context = ClassifierContext(settings).start()
    except LiveClassifyError as e:
        log.error("Startup failed: %s", e)
        return 2

    try:
        if settings.headless:
            return run_headless(context, settings)
        return run_gui(context, settings)
    finally:
        context.shutdown()


if __name__ == "__main__":
    sys.exit(main())
