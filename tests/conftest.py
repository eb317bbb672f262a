from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Sequence

import pytest

from rf2graph import config

WriteRf2 = Callable[[Path, Sequence[str], Iterable[Sequence[str]]], Path]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_import_settings.cache_clear()
    yield
    config.get_import_settings.cache_clear()


@pytest.fixture
def write_rf2() -> WriteRf2:
    """Write a CRLF-terminated RF2 file with a header row."""

    def _write(path: Path, header: Sequence[str], rows: Iterable[Sequence[str]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = ["\t".join(header)] + ["\t".join(row) for row in rows]
        path.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8", newline="")
        return path

    return _write
