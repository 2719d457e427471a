from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Protocol, Tuple

from .types import ClassificationResult, RawFrame


class FrameSink(Protocol):
    def submit(self, frame: Optional[RawFrame]) -> bool: ...


class ResultSink(Protocol):
    def publish(self, result: ClassificationResult) -> None: ...


class FrameSource(ABC):
    """Camera-side collaborator. read() returns (ok, frame); frame may be None when
    the device produced nothing usable for this tick."""

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def read(self) -> Tuple[bool, Optional[RawFrame]]: ...

    @abstractmethod
    def close(self) -> None: ...

    def fps(self) -> float:
        return 30.0
