"""Streaming reader for tab-delimited RF2 files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List

from .constants import FIELD_DELIMITER

logger = logging.getLogger(__name__)

RowHandler = Callable[[List[str]], None]


def read_rows(path: Path, handler: RowHandler, component_type: str, *, encoding: str = "utf-8") -> int:
    """Feed every data row of ``path`` to ``handler`` and return the row count.

    The first line is a header and is always discarded. Rows are delivered in
    file order on the calling thread. Errors raised while reading or by the
    handler abort the file and propagate.
    """

    logger.info("Reading %s", component_type)
    rows = 0
    with open(path, "r", encoding=encoding, newline="") as handle:
        handle.readline()
        for line in handle:
            line = line.rstrip("\r\n")
            if not line:
                continue
            handler(line.split(FIELD_DELIMITER))
            rows += 1
    logger.info("%d %s read from %s", rows, component_type, Path(path).name)
    return rows


__all__ = ["RowHandler", "read_rows"]
