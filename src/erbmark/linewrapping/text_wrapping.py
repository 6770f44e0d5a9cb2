from __future__ import annotations

import re
from collections.abc import Callable

DEFAULT_LEN_FUNCTION = len
"""
Default length function to use for wrapping. The formatter overrides it to measure
words as they will read once placeholders are restored.
"""

READABILITY_FLOOR = 40
"""
When indentation leaves this many columns or fewer, text wraps at the full line
width instead, so deeply nested text does not turn into a column of single words.
"""

INDENT_WIDTH = 2


def effective_width(line_width: int, depth: int) -> int:
    """
    Columns available for content at the given stack depth.
    """
    remaining = line_width - INDENT_WIDTH * depth
    if remaining <= READABILITY_FLOOR:
        return line_width
    return remaining


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and strip the ends."""
    return re.sub(r"\s+", " ", text).strip()


def trailing_newline_count(text: str) -> int:
    """Number of newlines in the trailing whitespace of `text`."""
    stripped = text.rstrip()
    return text[len(stripped) :].count("\n")


def wrap_text_lines(
    text: str,
    width: int,
    initial_column: int = 0,
    subsequent_offset: int = 0,
    len_fn: Callable[[str], int] = DEFAULT_LEN_FUNCTION,
) -> list[str]:
    """
    Greedily wrap text at a right margin of `width` columns, returning the lines.

    The first line starts at `initial_column` and later lines at `subsequent_offset`.
    Words are never broken: every line holds at least one word, so a word longer
    than the room left overflows on a line of its own.
    """
    words = normalize_text(text).split(" ") if text.strip() else []

    lines: list[str] = []
    current_line: list[str] = []
    current_width = initial_column

    for word in words:
        word_width = len_fn(word)

        space_width = 1 if current_line else 0
        if not current_line or current_width + space_width + word_width <= width:
            current_line.append(word)
            current_width += space_width + word_width
        else:
            lines.append(" ".join(current_line))
            current_line = [word]
            current_width = subsequent_offset + word_width

    if current_line:
        lines.append(" ".join(current_line))

    return lines
