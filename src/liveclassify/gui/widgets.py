from __future__ import annotations
from PyQt5 import QtWidgets, QtGui, QtCore
import cv2
import numpy as np

def bgr_to_qimage(img_bgr: np.ndarray) -> QtGui.QImage:
    """Return a QImage that OWNS its data (the numpy buffer may be reused)."""
    img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    h, w, ch = img_rgb.shape
    return QtGui.QImage(img_rgb.data, w, h, ch * w, QtGui.QImage.Format_RGB888).copy()

class ImagePane(QtWidgets.QLabel):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setScaledContents(False)
        self.setAlignment(QtCore.Qt.AlignCenter)
        self.setMinimumSize(320, 240)

    def set_image(self, qimg: QtGui.QImage):
        pix = QtGui.QPixmap.fromImage(qimg)
        self.setPixmap(pix.scaled(self.width(), self.height(), QtCore.Qt.KeepAspectRatio, QtCore.Qt.SmoothTransformation))
