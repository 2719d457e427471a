from .capture_source import CaptureSource, CaptureThread, bgr_to_raw_frame

__all__ = ["CaptureSource", "CaptureThread", "bgr_to_raw_frame"]
