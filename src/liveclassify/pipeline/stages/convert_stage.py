from __future__ import annotations
import cv2
import numpy as np

from ...errors import FrameDecodeError, MalformedFrameError
from ..types import InterleavedImage, Plane, RawFrame


def _plane_view(plane: Plane, width: int, height: int, name: str) -> np.ndarray:
    """Gather a (height, width) sample grid out of a possibly strided plane buffer."""
    buf = np.frombuffer(plane.data, dtype=np.uint8)
    ps = int(plane.pixel_stride)
    if ps < 1:
        raise MalformedFrameError(f"{name} plane: pixel stride must be >= 1, got {ps}")
    tight = plane.row_stride is None and ps == 1
    row_stride = int(plane.row_stride) if plane.row_stride is not None else width * ps
    if row_stride < (width - 1) * ps + 1:
        raise MalformedFrameError(f"{name} plane: row stride {row_stride} too small for width {width}")

    if tight:
        if buf.size != width * height:
            raise MalformedFrameError(
                f"{name} plane has {buf.size} bytes, expected {width * height} for {width}x{height}")
        return buf.reshape(height, width)

    need = row_stride * (height - 1) + (width - 1) * ps + 1
    if buf.size < need:
        raise MalformedFrameError(
            f"{name} plane has {buf.size} bytes, need {need} for {width}x{height} "
            f"(row stride {row_stride}, pixel stride {ps})")
    view = np.lib.stride_tricks.as_strided(buf, shape=(height, width), strides=(row_stride, ps))
    return np.ascontiguousarray(view)


class PixelConverter:
    """Planar YUV 4:2:0 -> interleaved RGB.

    The chroma planes are re-packed into NV21 (full Y plane, then V/U pairs) and the
    packed buffer goes through OpenCV's NV21 decoder. Odd sizes are edge-padded to
    even for the decoder and cropped back afterwards.
    """

    def convert(self, frame: RawFrame) -> InterleavedImage:
        w, h = int(frame.width), int(frame.height)
        if w <= 0 or h <= 0:
            raise MalformedFrameError(f"invalid frame size {w}x{h}")
        if len(frame.y) != w * h:
            raise MalformedFrameError(f"luma plane has {len(frame.y)} bytes, expected {w * h} for {w}x{h}")
        if frame.y.pixel_stride != 1 or frame.y.row_stride not in (None, w):
            raise MalformedFrameError("luma plane must be tightly packed")

        cw, ch = frame.chroma_size
        y = np.frombuffer(frame.y.data, dtype=np.uint8).reshape(h, w)
        u = _plane_view(frame.u, cw, ch, "U")
        v = _plane_view(frame.v, cw, ch, "V")

        nv21 = self.pack_nv21(y, u, v)
        try:
            rgb = cv2.cvtColor(nv21, cv2.COLOR_YUV2RGB_NV21)
        except cv2.error as e:
            raise FrameDecodeError(f"NV21 decode failed for {w}x{h}: {e}") from e
        if rgb is None or rgb.ndim != 3:
            raise FrameDecodeError(f"NV21 decode produced no image for {w}x{h}")

        rgb = np.ascontiguousarray(rgb[:h, :w])
        return InterleavedImage(width=w, height=h, pixels=rgb)

    @staticmethod
    def pack_nv21(y: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
        ch, cw = u.shape
        ew, eh = cw * 2, ch * 2
        h, w = y.shape
        if (h, w) != (eh, ew):
            y = np.pad(y, ((0, eh - h), (0, ew - w)), mode="edge")
        vu = np.empty((ch, ew), dtype=np.uint8)
        vu[:, 0::2] = v
        vu[:, 1::2] = u
        return np.vstack((y, vu))

