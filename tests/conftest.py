"""Shared fixtures for the tabulous test suite."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from tabulous.utils.settings import reset_context

TableWriter = Callable[..., Path]


def tsv_lines(*rows: list[str]) -> list[str]:
    """Join rows of cells into tab-delimited lines."""
    return ["\t".join(row) for row in rows]


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None]:
    """Reset the settings context before and after each test."""
    reset_context()
    yield
    reset_context()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide TAB_ environment variables of the calling shell."""
    import os

    for key in list(os.environ):
        if key.startswith("TAB_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def write_table(tmp_path: Path) -> TableWriter:
    """Return a helper that writes rows of cells to a table file in tmp_path."""

    def _write(name: str, *rows: list[str], suffix: str = ".tsv") -> Path:
        path = tmp_path / f"{name}{suffix}"
        path.write_text("\n".join(tsv_lines(*rows)) + "\n", encoding="utf-8")
        return path

    return _write
