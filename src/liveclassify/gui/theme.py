from __future__ import annotations
from typing import Dict, Tuple
from PyQt5 import QtGui, QtWidgets

from ..pipeline.types import ResultKind

Rgb = Tuple[int, int, int]

VIEWER_PALETTE: Dict[QtGui.QPalette.ColorRole, Rgb] = {
    QtGui.QPalette.Window: (24, 26, 30),
    QtGui.QPalette.WindowText: (220, 222, 228),
    QtGui.QPalette.Base: (18, 19, 22),
    QtGui.QPalette.Text: (220, 222, 228),
    QtGui.QPalette.Button: (40, 44, 52),
    QtGui.QPalette.ButtonText: (220, 222, 228),
    QtGui.QPalette.Highlight: (46, 160, 110),
    QtGui.QPalette.HighlightedText: (18, 19, 22),
}

# result line colour by kind: a confident label stands out, the sentinels fade
RESULT_COLORS: Dict[ResultKind, str] = {
    ResultKind.LABEL: "#5fd38d",
    ResultKind.NO_CONFIDENT: "#e0b050",
    ResultKind.NO_IMAGE: "#7c8290",
}

_RESULT_BASE = "font-size: 22px; font-weight: 600; padding: 6px;"


def result_style(kind: ResultKind) -> str:
    return f"{_RESULT_BASE} color: {RESULT_COLORS[kind]};"


def apply_viewer_theme(widget: QtWidgets.QWidget) -> None:
    QtWidgets.QApplication.setStyle("Fusion")
    pal = widget.palette()
    for role, rgb in VIEWER_PALETTE.items():
        pal.setColor(role, QtGui.QColor(*rgb))
    widget.setPalette(pal)
