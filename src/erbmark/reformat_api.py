"""
File-level formatting API, used by the CLI and usable directly from Python.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from strif import atomic_output_file

from erbmark.formatter import DEFAULT_FILENAME, DEFAULT_LINE_WIDTH, format_template
from erbmark.ruby.reformatters import CodeReformatter

logger = logging.getLogger(__name__)

STDIN_MARKER = "-"
STDIN_FILENAME = "(stdin)"
BACKUP_SUFFIX = ".orig"


def reformat_text(
    text: str,
    width: int = DEFAULT_LINE_WIDTH,
    filename: str = DEFAULT_FILENAME,
    reformatter: CodeReformatter | None = None,
) -> str:
    """Reformat template text. Same as `format_template()`, with file-API defaults."""
    return format_template(text, width, filename, reformatter=reformatter)


def reformat_file(
    path: str | Path,
    output: str | Path = STDIN_MARKER,
    width: int = DEFAULT_LINE_WIDTH,
    inplace: bool = False,
    nobackup: bool = False,
    check: bool = False,
    reformatter: CodeReformatter | None = None,
    make_parents: bool = True,
) -> bool:
    """
    Reformat a single template file, or stdin if `path` is `-`.

    With `inplace`, the file is rewritten atomically (keeping a `.orig` backup
    unless `nobackup`), and only if its content changes. With `check`, nothing is
    written at all. Otherwise the result goes to `output` (`-` for stdout).

    Returns whether formatting changed the content.
    """
    is_stdin = str(path) == STDIN_MARKER
    if is_stdin and inplace:
        raise ValueError("Cannot use --inplace with stdin")

    if is_stdin:
        text = sys.stdin.read()
        filename = STDIN_FILENAME
    else:
        text = Path(path).read_text(encoding="utf-8")
        filename = str(path)

    result = reformat_text(text, width, filename, reformatter)
    changed = result != text

    if check:
        logger.debug("%s: %s", filename, "would reformat" if changed else "already formatted")
    elif inplace:
        if changed:
            backup_suffix = None if nobackup else BACKUP_SUFFIX
            with atomic_output_file(
                path, make_parents=make_parents, backup_suffix=backup_suffix
            ) as tmp_path:
                Path(tmp_path).write_text(result, encoding="utf-8")
            logger.info("Reformatted %s", filename)
        else:
            logger.debug("Unchanged %s", filename)
    elif str(output) == STDIN_MARKER:
        sys.stdout.write(result)
    else:
        with atomic_output_file(output, make_parents=make_parents) as tmp_path:
            Path(tmp_path).write_text(result, encoding="utf-8")

    return changed


def reformat_files(
    files: Sequence[str | Path],
    output: str | Path = STDIN_MARKER,
    width: int = DEFAULT_LINE_WIDTH,
    inplace: bool = False,
    nobackup: bool = False,
    check: bool = False,
    reformatter: CodeReformatter | None = None,
    make_parents: bool = True,
) -> list[str]:
    """
    Reformat several files with the same options, stopping at the first error.
    Returns the files whose content changed (or would change, with `check`).
    """
    if len(files) > 1 and not (inplace or check) and str(output) != STDIN_MARKER:
        raise ValueError("Cannot write several files to a single --output file")

    changed: list[str] = []
    for path in files:
        if reformat_file(
            path,
            output=output,
            width=width,
            inplace=inplace,
            nobackup=nobackup,
            check=check,
            reformatter=reformatter,
            make_parents=make_parents,
        ):
            changed.append(str(path))
    return changed
