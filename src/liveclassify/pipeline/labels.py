from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Union

from ..errors import ConfigError

log = logging.getLogger("pipeline.labels")


def parse_labels(text: str) -> List[str]:
    """One label per line; order is the output tensor index. Blank lines are kept."""
    return text.splitlines()


def load_labels(path: Union[str, Path]) -> List[str]:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"label file not found: {p}")
    labels = parse_labels(p.read_text(encoding="utf-8"))
    if not labels:
        raise ConfigError(f"label file is empty: {p}")
    log.info("Loaded %d labels from %s", len(labels), p)
    return labels
