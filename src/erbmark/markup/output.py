"""
Append-only output buffer.

Indentation is never stored with queued content: it is computed from the stack
depth at the moment of each newline-producing write.
"""

from __future__ import annotations

from collections.abc import Callable

from erbmark.markup.tag_stack import TagStack


class OutputBuffer:
    """
    Collects formatted output and tracks the column of the current line.

    Columns are measured with `len_fn`, so placeholders count as the text they
    stand for. The last space written by `write_text` on the current line stays
    breakable: `make_room` turns it into a newline when a unit glued to the end
    of the line would overflow.
    """

    def __init__(self, stack: TagStack, len_fn: Callable[[str], int] = len) -> None:
        self._stack: TagStack = stack
        self._len_fn = len_fn
        self._parts: list[str] = []
        self._length: int = 0
        self._column: int = 0
        # Offset of a breakable space on the current line, and the indent to break to.
        self._break: tuple[int, str] | None = None

    @property
    def column(self) -> int:
        """Length of the last line written so far."""
        return self._column

    def write(self, text: str) -> None:
        """Append text flush, right where the previous write ended."""
        if not text:
            return
        self._parts.append(text)
        self._length += len(text)
        newline = text.rfind("\n")
        if newline == -1:
            self._column += self._len_fn(text)
        else:
            self._column = self._len_fn(text[newline + 1 :])
            self._break = None

    def write_line(self, text: str) -> None:
        """Start a new line at the current indentation and append stripped text."""
        self.write(indented(text, self._stack.indent))

    def write_text(self, line: str, new_line: bool) -> None:
        """Write one wrapped line of text, remembering its last space as breakable."""
        indent = self._stack.indent
        if new_line:
            self.write_line(line)
        else:
            self.write(line)
        space = line.rfind(" ")
        if space != -1:
            self._break = (self._length - len(line) + space, indent)

    def make_room(self, width: int, needed: int) -> None:
        """
        Break the current line at its last breakable space if `needed` more
        columns would not fit within `width`.
        """
        if self._break is None or self._column + needed <= width:
            return
        offset, indent = self._break
        value = self.getvalue()
        value = f"{value[:offset]}\n{indent}{value[offset + 1 :]}"
        self._parts = [value]
        self._length = len(value)
        self._column = self._len_fn(value[value.rfind("\n") + 1 :])
        self._break = None

    def blank_line(self) -> None:
        self.write("\n")

    def getvalue(self) -> str:
        return "".join(self._parts)


def indented(text: str, indent: str) -> str:
    return f"\n{indent}{text.strip()}"
