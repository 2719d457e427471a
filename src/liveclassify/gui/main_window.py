from __future__ import annotations
import logging
from typing import Optional
from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import Settings
from ..pipeline.context import ClassifierContext
from ..pipeline.sources import CaptureSource, CaptureThread
from ..pipeline.types import ClassificationResult, ResultKind
from .theme import apply_viewer_theme, result_style
from .widgets import ImagePane, bgr_to_qimage

log = logging.getLogger("gui")


class CaptureBridge(QtCore.QObject):
    """Carries capture-thread events onto the GUI thread (queued connections)."""
    preview_ready = QtCore.pyqtSignal(QtGui.QImage)
    finished = QtCore.pyqtSignal()


class MainWindow(QtWidgets.QWidget):
    POLL_MS = 30

    def __init__(self, context: ClassifierContext, settings: Settings):
        super().__init__()
        self.context = context
        self.settings = settings
        self.setWindowTitle("Live Classifier")
        self.resize(720, 640)

        self.preview_pane = ImagePane()
        self.result_label = QtWidgets.QLabel("")
        self.result_label.setAlignment(QtCore.Qt.AlignCenter)
        self.result_label.setStyleSheet(result_style(ResultKind.NO_IMAGE))
        self.stats_label = QtWidgets.QLabel("")
        self.run_btn = QtWidgets.QPushButton("Run")

        bottom = QtWidgets.QHBoxLayout()
        bottom.setContentsMargins(10, 0, 10, 10)
        bottom.addWidget(self.stats_label, 1)
        bottom.addWidget(self.run_btn)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)
        layout.addWidget(self.preview_pane, 1)
        layout.addWidget(self.result_label)
        layout.addLayout(bottom)
        apply_viewer_theme(self)

        self.capture: Optional[CaptureThread] = None
        self.bridge = CaptureBridge()
        self.bridge.preview_ready.connect(self.preview_pane.set_image)
        self.bridge.finished.connect(self._on_capture_finished)
        self.run_btn.clicked.connect(self._on_run_clicked)
        self._fatal_shown = False

        # UI-owned consumer of the result channel
        self.timer = QtCore.QTimer(self)
        self.timer.timeout.connect(self._poll)
        self.timer.start(self.POLL_MS)

    # ---------- Capture lifecycle ----------
    def _on_run_clicked(self):
        if self.capture is not None and self.capture.is_alive():
            self._stop_capture()
        else:
            self._start_capture()

    def _start_capture(self):
        self._stop_capture()
        s = self.settings
        source = CaptureSource(s.camera_device, s.camera_width, s.camera_height, s.camera_fps, s.video_path)
        try:
            source.open()
        except RuntimeError as e:
            QtWidgets.QMessageBox.critical(self, "Source Error", str(e))
            return
        self.capture = CaptureThread(
            source, self.context,
            on_preview=lambda bgr: self.bridge.preview_ready.emit(bgr_to_qimage(bgr)),
            on_finished=self.bridge.finished.emit,
        )
        self.capture.start()
        self.run_btn.setText("Stop")

    def _stop_capture(self):
        if self.capture is not None:
            self.capture.stop()
            self.capture = None

    def _on_capture_finished(self):
        self.run_btn.setText("Restart")

    # ---------- Result channel ----------
    def _poll(self):
        self.context.results.drain(self._on_result)
        st = self.context.stats()
        self.stats_label.setText(
            f"{st.last_latency_s * 1000:6.1f} ms | processed {st.processed} | dropped {st.dropped} | failed {st.failed}")
        pipe = self.context.pipeline
        if pipe is not None and pipe.last_error is not None and not self._fatal_shown:
            self._fatal_shown = True
            self._stop_capture()
            QtWidgets.QMessageBox.critical(self, "Pipeline Error", str(pipe.last_error))

    def _on_result(self, result: ClassificationResult):
        self.result_label.setText(result.text)
        self.result_label.setStyleSheet(result_style(result.kind))

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.timer.stop()
        self._stop_capture()
        super().closeEvent(event)
