"""Tests for the file-level formatting API."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from erbmark.errors import UnmatchedCloseError
from erbmark.reformat_api import reformat_file, reformat_files, reformat_text

UNFORMATTED = "<div><p>Hello</p></div>"
FORMATTED = "<div>\n  <p>Hello</p>\n</div>\n"


def test_reformat_text() -> None:
    assert reformat_text(UNFORMATTED) == FORMATTED


def test_reformat_file_to_stdout(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)

    assert reformat_file(path) is True
    assert capsys.readouterr().out == FORMATTED
    assert path.read_text() == UNFORMATTED


def test_reformat_file_to_output(tmp_path: Path) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)
    output = tmp_path / "out" / "show.html.erb"

    reformat_file(path, output=output)
    assert output.read_text() == FORMATTED


def test_reformat_file_inplace(tmp_path: Path) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)

    assert reformat_file(path, inplace=True, nobackup=True) is True
    assert path.read_text() == FORMATTED
    assert list(tmp_path.iterdir()) == [path]

    # Already formatted: reported unchanged.
    assert reformat_file(path, inplace=True, nobackup=True) is False


def test_reformat_file_inplace_keeps_backup(tmp_path: Path) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)

    reformat_file(path, inplace=True)
    assert path.read_text() == FORMATTED
    backups = [p for p in tmp_path.iterdir() if p != path]
    assert len(backups) == 1
    assert backups[0].read_text() == UNFORMATTED


def test_reformat_file_check_writes_nothing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)

    assert reformat_file(path, check=True) is True
    assert capsys.readouterr().out == ""
    assert path.read_text() == UNFORMATTED


def test_reformat_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(UNFORMATTED))
    reformat_file("-")
    assert capsys.readouterr().out == FORMATTED


def test_inplace_stdin_is_rejected() -> None:
    with pytest.raises(ValueError):
        reformat_file("-", inplace=True)


def test_errors_carry_filename(tmp_path: Path) -> None:
    path = tmp_path / "broken.html.erb"
    path.write_text("<p>\n</div>\n")
    with pytest.raises(UnmatchedCloseError) as excinfo:
        reformat_file(path, check=True)
    assert excinfo.value.filename == str(path)
    assert excinfo.value.line == 2


def test_reformat_files(tmp_path: Path) -> None:
    first = tmp_path / "a.html.erb"
    second = tmp_path / "b.html.erb"
    first.write_text(UNFORMATTED)
    second.write_text(FORMATTED)

    changed = reformat_files([first, second], inplace=True, nobackup=True)
    assert changed == [str(first)]
    assert first.read_text() == FORMATTED


def test_reformat_files_single_output_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        reformat_files(["a.erb", "b.erb"], output=tmp_path / "out.erb")
