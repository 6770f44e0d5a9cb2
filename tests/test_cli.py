"""CLI tests."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from erbmark.cli import main

UNFORMATTED = "<div><p>Hello</p></div>"
FORMATTED = "<div>\n  <p>Hello</p>\n</div>\n"


def _make_project(root: Path) -> Path:
    views = root / "app" / "views"
    views.mkdir(parents=True)
    (views / "show.html.erb").write_text(UNFORMATTED)
    (views / "index.html.erb").write_text(FORMATTED)
    (root / "README.md").write_text("# App\n")
    return views


def test_help(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "A pretty-printer for ERB templates" in out
    assert "--reformatter" in out
    assert "--check" in out


def test_no_input(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 2
    assert "No input specified" in capsys.readouterr().err


def test_format_to_stdout(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text(UNFORMATTED)
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == FORMATTED


def test_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(UNFORMATTED))
    assert main(["-"]) == 0
    assert capsys.readouterr().out == FORMATTED


def test_width_option(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "form.html.erb"
    path.write_text('<input type="text" name="user_email">')
    assert main(["--width", "20", str(path)]) == 0
    assert capsys.readouterr().out == '<input\n  type="text"\n  name="user_email"\n>\n'


def test_inplace_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    views = _make_project(tmp_path)
    monkeypatch.chdir(tmp_path)
    assert main(["--inplace", "--nobackup", "."]) == 0
    assert (views / "show.html.erb").read_text() == FORMATTED
    assert (views / "index.html.erb").read_text() == FORMATTED
    assert (tmp_path / "README.md").read_text() == "# App\n"


def test_check(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    views = _make_project(tmp_path)
    monkeypatch.chdir(tmp_path)
    assert main(["--check", "."]) == 1
    err = capsys.readouterr().err
    assert "Would reformat" in err
    assert "show.html.erb" in err
    assert "index.html.erb" not in err
    assert (views / "show.html.erb").read_text() == UNFORMATTED

    (views / "show.html.erb").write_text(FORMATTED)
    assert main(["--check", "."]) == 0


def test_list_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _make_project(tmp_path)
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "x.html.erb").write_text("<p>x</p>\n")
    monkeypatch.chdir(tmp_path)
    assert main(["--list-files", "."]) == 0
    out = capsys.readouterr().out
    names = sorted(Path(line).name for line in out.splitlines())
    assert names == ["index.html.erb", "show.html.erb"]


def test_config_file_width(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / ".erbmark.toml").write_text("width = 20\n")
    path = tmp_path / "form.html.erb"
    path.write_text('<input type="text" name="user_email">')
    monkeypatch.chdir(tmp_path)

    assert main([str(path)]) == 0
    assert capsys.readouterr().out == '<input\n  type="text"\n  name="user_email"\n>\n'

    # An explicit flag beats the config file.
    assert main(["--width", "80", str(path)]) == 0
    assert capsys.readouterr().out == '<input type="text" name="user_email">\n'


def test_reformatter_option(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "show.html.erb"
    path.write_text("<p><%= user.name %></p>")
    command = f"{sys.executable} -c 'import sys; sys.stdout.write(sys.stdin.read().upper())'"
    assert main(["--reformatter", command, str(path)]) == 0
    assert capsys.readouterr().out == "<p><%= USER.NAME %></p>\n"


def test_template_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / "broken.html.erb"
    broken.write_text("<div>\n</span>\n")
    assert main(["--check", str(broken)]) == 1
    err = capsys.readouterr().err
    assert f"{broken}:2: Unmatched close tag" in err
    assert "==> STACK" not in err


def test_template_error_verbose(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / "broken.html.erb"
    broken.write_text("<div>\n</span>\n")
    assert main(["--verbose", "--check", str(broken)]) == 1
    err = capsys.readouterr().err
    assert "==> FORMATTED:" in err
    assert "==> STACK:\n  div: <div>" in err


def test_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(tmp_path / "missing" / "*.erb"), str(tmp_path / "nope.erb")]) == 2
    assert "Error:" in capsys.readouterr().err


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("v") or out.startswith("unknown")
