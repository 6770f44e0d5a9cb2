"""
The structural stack shared by markup tags and Ruby blocks.

Stack depth drives indentation (two spaces per frame) and every close token must
match the frame on top. Frames are a closed set of frozen dataclasses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias

logger = logging.getLogger(__name__)

INDENT = "  "


@dataclass(frozen=True)
class MarkupFrame:
    """An open markup tag, e.g. `<div class="a">`."""

    name: str
    raw: str

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class AttributeFrame:
    """Attributes being wrapped one per line (`=`), or a value split per token (`"`)."""

    marker: str

    @property
    def label(self) -> str:
        return f"attr{self.marker}"


@dataclass(frozen=True)
class CodeBlockFrame:
    """A Ruby block opened by a fragment like `if x` or `items.each do |item|`."""

    code: str

    @property
    def label(self) -> str:
        return "%erb%"


Frame: TypeAlias = MarkupFrame | AttributeFrame | CodeBlockFrame


class TagStack:
    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def top(self) -> Frame | None:
        return self._frames[-1] if self._frames else None

    @property
    def indent(self) -> str:
        return INDENT * len(self._frames)

    def push(self, frame: Frame) -> None:
        self._frames.append(frame)
        logger.debug("push %s (depth %d)", frame.label, len(self._frames))

    def top_matches(self, kind: type[Frame], name: str | None = None) -> bool:
        """
        Check that the top frame is of the given kind and, for markup frames,
        has the given tag name.
        """
        top = self.top
        if not isinstance(top, kind):
            return False
        if isinstance(top, MarkupFrame):
            return top.name == name
        return True

    def pop(self) -> Frame:
        frame = self._frames.pop()
        logger.debug("pop %s (depth %d)", frame.label, len(self._frames))
        return frame

    def dump(self) -> list[str]:
        """Describe every frame, outermost first, for error reports."""
        return [_describe(frame) for frame in self._frames]


def _describe(frame: Frame) -> str:
    if isinstance(frame, MarkupFrame):
        return f"{frame.name}: {frame.raw}"
    if isinstance(frame, CodeBlockFrame):
        return f"%erb%: {frame.code}"
    return frame.label
