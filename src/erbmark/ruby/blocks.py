"""
Classification and layout of the Ruby fragments inside ERB tags.

Each fragment either closes a block (`end`, `}`), continues one (`else`,
`elsif ...`, `when ...`), opens one (anything that only parses once a closing
`end` or `}` is appended), or stands alone. Block fragments are reformatted with
that synthetic closer appended so the reformatter sees valid Ruby, and the closer
is stripped off again afterwards.
"""

from __future__ import annotations

import logging
import textwrap
from enum import Enum

from erbmark.markup.patterns import (
    ERB_CLOSE_CODE_PATTERN,
    ERB_ELSE_CODE_PATTERN,
    ERB_TAG_PATTERN,
)
from erbmark.markup.tag_stack import INDENT
from erbmark.ruby.reformatters import CodeReformatter
from erbmark.ruby.syntax import SyntaxChecker, is_syntactically_complete

logger = logging.getLogger(__name__)

# Synthetic closers tried, in order, to make a block-opening fragment parse.
BLOCK_CLOSERS = ("end", "}")


class CodeKind(str, Enum):
    """
    How a Ruby fragment affects the tag stack.

    - `close`: pops the innermost Ruby block.
    - `else_like`: pops the block and pushes its continuation.
    - `block_open`: pushes a new Ruby block.
    - `standalone`: leaves the stack alone.
    """

    close = "close"
    else_like = "else_like"
    block_open = "block_open"
    standalone = "standalone"

    @property
    def is_control_flow(self) -> bool:
        return self is not CodeKind.standalone


def classify(code: str, is_complete: SyntaxChecker = is_syntactically_complete) -> CodeKind:
    code = code.strip()
    if ERB_CLOSE_CODE_PATTERN.fullmatch(code):
        kind = CodeKind.close
    elif ERB_ELSE_CODE_PATTERN.fullmatch(code):
        kind = CodeKind.else_like
    elif not is_complete(code):
        kind = CodeKind.block_open
    else:
        kind = CodeKind.standalone
    logger.debug("classified %r as %s", code, kind.value)
    return kind


def autoclose_suffix(code: str, is_complete: SyntaxChecker = is_syntactically_complete) -> str:
    """
    The closers that make a block-opening fragment parse, e.g. `"\\nend"`, or an
    empty string if none of them help.
    """
    suffix = ""
    for closer in BLOCK_CLOSERS:
        candidate = f"{suffix}\n{closer}"
        if is_complete(code + candidate):
            suffix = candidate
    return suffix


def reformat_code(code: str, *, width: int, reformatter: CodeReformatter, suffix: str = "") -> str:
    """
    Run a fragment through the reformatter at the given width.

    A synthetic `suffix` is appended before reformatting and its lines removed from
    the result. If the result does not end with those lines, the reformatter
    changed the block structure and the original code is kept.
    """
    result = reformatter(code + suffix, width)
    lines = result.strip().splitlines()

    closers = suffix.split()
    if closers:
        tail = [line.strip() for line in lines[-len(closers) :]]
        if len(lines) <= len(closers) or tail != closers:
            logger.debug("reformatted block lost its closer, keeping original: %r", code)
            return code
        lines = lines[: -len(closers)]

    if not lines:
        return code
    return "\n".join(lines)


def split_code_tag(tag: str) -> tuple[str, str, str]:
    """Split an ERB tag into opener, code and closer."""
    match = ERB_TAG_PATTERN.fullmatch(tag)
    if match is None:
        raise ValueError(f"Not an ERB tag: {tag!r}")
    erb_open, code, erb_close = match.groups()
    return erb_open, code, erb_close


def build_code_tag(erb_open: str, code: str, erb_close: str, indent: str = "") -> str:
    """
    Rebuild an ERB tag around (possibly reformatted) code.

    The first line of code follows the opener; any further lines are dedented and
    re-indented one level below `indent`.
    """
    if not code.strip():
        return f"{erb_open} {erb_close}"
    first, *rest = code.strip().split("\n")
    lines = [first.rstrip()]
    if rest:
        continuation = textwrap.dedent("\n".join(rest)).split("\n")
        lines.extend(f"{indent}{INDENT}{line}".rstrip() if line.strip() else "" for line in continuation)
    separator = "" if first.startswith("#") else " "
    body = "\n".join(lines)
    return f"{erb_open}{separator}{body} {erb_close}"
