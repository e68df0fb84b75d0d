from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from datamanager.adapters import filesystem
from datamanager.domain.errors import WriteError

if TYPE_CHECKING:
    from pathlib import Path


def test_write_creates_parent_directories(tmp_path: Path) -> None:
    target = tmp_path / "exports" / "nested" / "people.csv"

    assert filesystem.write_bytes(target, b"id\n1\n") == target
    assert target.read_bytes() == b"id\n1\n"


def test_write_failure_is_a_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(WriteError, match="Failed to write"):
        filesystem.write_bytes(blocker / "people.csv", b"")


def test_read_failure_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        filesystem.read_text(tmp_path / "missing.csv")


def test_archive_moves_into_history_with_timestamp(tmp_path: Path) -> None:
    source = tmp_path / "people.csv"
    source.write_text("id\n")

    target = filesystem.archive(source, tmp_path / "history")

    assert not source.exists()
    assert target.parent == tmp_path / "history"
    assert target.read_text() == "id\n"
    stamp, _, name = target.name.partition("-")
    assert stamp.isdigit()
    assert name == "people.csv"


def test_archive_defaults_to_the_source_directory(tmp_path: Path) -> None:
    source = tmp_path / "people.csv"

    assert filesystem.archive_target(source).parent == tmp_path
