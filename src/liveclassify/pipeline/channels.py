from __future__ import annotations
import queue
import threading
from collections import deque
from typing import Any, Callable, Optional, Tuple

from .types import ClassificationResult


class SlotClosed(Exception):
    pass


class LatestSlot:
    """Capacity-1 channel: put() overwrites whatever is pending and hands the
    displaced item back to the caller (so it can be released)."""

    _EMPTY = object()

    def __init__(self):
        self._q: deque = deque(maxlen=1)
        self._cond = threading.Condition()
        self._closed = False

    def put(self, item: Any) -> Tuple[bool, Any]:
        """Returns (displaced?, displaced_item)."""
        with self._cond:
            if self._closed:
                raise SlotClosed()
            displaced = self._q.pop() if self._q else self._EMPTY
            self._q.append(item)
            self._cond.notify()
        if displaced is self._EMPTY:
            return False, None
        return True, displaced

    def take(self, timeout: Optional[float] = None) -> Any:
        """Blocks for the next item. Raises SlotClosed once closed and empty,
        queue.Empty on timeout."""
        with self._cond:
            while not self._q:
                if self._closed:
                    raise SlotClosed()
                if not self._cond.wait(timeout):
                    raise queue.Empty()
            return self._q.pop()

    def close(self) -> Tuple[bool, Any]:
        """Stop accepting items; returns the pending item, if any, for release."""
        with self._cond:
            self._closed = True
            pending = self._q.pop() if self._q else self._EMPTY
            self._cond.notify_all()
        if pending is self._EMPTY:
            return False, None
        return True, pending

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._q)


class ResultChannel:
    """Worker -> UI. The worker only ever publishes; the UI thread drains.

    Bounded: when nobody drains, the oldest results are discarded so the
    channel never holds more than maxsize entries.
    """

    def __init__(self, maxsize: int = 64):
        if maxsize <= 0:
            raise ValueError(f"maxsize must be > 0, got {maxsize}")
        self._q: deque = deque(maxlen=maxsize)
        self._cond = threading.Condition()
        self.overflowed = 0

    def publish(self, result: ClassificationResult) -> None:
        with self._cond:
            if len(self._q) == self._q.maxlen:
                self.overflowed += 1
            self._q.append(result)
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> ClassificationResult:
        """Oldest pending result; raises queue.Empty on timeout."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._q, timeout):
                raise queue.Empty()
            return self._q.popleft()

    def drain(self, handler: Callable[[ClassificationResult], None], max_items: Optional[int] = None) -> int:
        n = 0
        while max_items is None or n < max_items:
            with self._cond:
                if not self._q:
                    break
                item = self._q.popleft()
            handler(item)
            n += 1
        return n

    def consume(self, handler: Callable[[ClassificationResult], None], stop: threading.Event,
                poll_s: float = 0.1) -> None:
        """Blocking consumer loop for non-Qt front ends; run it on the thread that owns the display."""
        while not stop.is_set():
            try:
                item = self.get(timeout=poll_s)
            except queue.Empty:
                continue
            handler(item)

    def __len__(self) -> int:
        with self._cond:
            return len(self._q)
