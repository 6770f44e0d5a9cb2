"""
The ERB template formatter.

The template is first protected (every ERB tag becomes an opaque placeholder), then
scanned left to right in markup mode, stopping at each open tag, close tag and
comment. Text between those tokens is split again at the ERB placeholders: literal
runs are wrapped to the line width and Ruby fragments are classified, reformatted
and matched against the tag stack. The stack depth at each write gives the
indentation.

Line breaks are only introduced where they cannot change what the template
renders. A tag or code tag goes on its own line when the source had whitespace
before it, when it sits directly between two tags at least one of which is
block-level, or when it is (or directly follows) a Ruby control-flow tag.
Everything else is appended flush.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import NoReturn

from erbmark.errors import (
    BadAttributeError,
    TemplateFormatError,
    UnknownTagError,
    UnmatchedCloseError,
    UnrecognizedContentError,
)
from erbmark.linewrapping.attribute_wrapping import format_attributes
from erbmark.linewrapping.text_wrapping import (
    effective_width,
    normalize_text,
    trailing_newline_count,
    wrap_text_lines,
)
from erbmark.markup.output import OutputBuffer
from erbmark.markup.patterns import (
    BAD_ATTR_PATTERN,
    BLOCK_LEVEL_TAGS,
    RAW_TEXT_TAGS,
    STRUCTURAL_PATTERN,
    TAG_NAME_PATTERN,
    UNRECOGNIZED_TAG_PATTERN,
    ends_with_space,
    is_self_closing,
    raw_text_close_pattern,
    starts_with_space,
)
from erbmark.markup.placeholders import protect
from erbmark.markup.tag_stack import CodeBlockFrame, MarkupFrame, TagStack
from erbmark.ruby.blocks import (
    CodeKind,
    autoclose_suffix,
    build_code_tag,
    classify,
    reformat_code,
    split_code_tag,
)
from erbmark.ruby.reformatters import CodeReformatter, passthrough_reformatter
from erbmark.ruby.syntax import SyntaxChecker, is_syntactically_complete

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 80
DEFAULT_FILENAME = "(template)"


class Adjacency(str, Enum):
    """What was emitted last, which decides whether the next unit may start a line."""

    start = "start"
    text = "text"
    inline_tag = "inline_tag"
    block_tag = "block_tag"
    control = "control"


class TemplateFormatter:
    """
    Formats one template. Instances hold the state of a single run and are not
    reused.
    """

    def __init__(
        self,
        source: str,
        line_width: int = DEFAULT_LINE_WIDTH,
        filename: str = DEFAULT_FILENAME,
        *,
        syntax_checker: SyntaxChecker | None = None,
        reformatter: CodeReformatter | None = None,
    ) -> None:
        self.original_source: str = source
        self.line_width: int = line_width
        self.filename: str = filename
        self.syntax_checker: SyntaxChecker = syntax_checker or is_syntactically_complete
        self.reformatter: CodeReformatter = reformatter or passthrough_reformatter

        self.source, self.placeholders = protect(source)
        self.stack: TagStack = TagStack()
        self.buffer: OutputBuffer = OutputBuffer(self.stack, self.placeholders.restored_len)

        self._pos: int = 0
        self._last: Adjacency = Adjacency.start

    def format(self) -> str:
        logger.debug(
            "formatting %s: %d code tags, width %d",
            self.filename,
            len(self.placeholders.code_tags),
            self.line_width,
        )
        source = self.source
        pos = 0
        while pos < len(source):
            top = self.stack.top
            if isinstance(top, MarkupFrame) and top.name in RAW_TEXT_TAGS:
                pos = self._format_raw_text(top.name, pos)
                continue

            match = STRUCTURAL_PATTERN.search(source, pos)
            if match is None:
                self._format_markup_text(source[pos:], pos)
                break

            gap = self._format_markup_text(source[pos : match.start()], pos)
            self._pos = match.start()

            if match.group("comment"):
                self._format_comment(match.group("comment"), gap)
            elif match.group("close"):
                self._format_close_tag(match.group("close_name"), gap)
            else:
                self._format_open_tag(match, gap)
            pos = match.end()

        self._pos = len(source)
        top = self.stack.top
        if top is not None:
            self._fail(UnmatchedCloseError, f"Unclosed `{top.label}' at end of template")

        html = self.placeholders.restore(self.buffer.getvalue())
        return html.strip() + "\n"

    # Markup mode

    def _format_markup_text(self, text: str, offset: int) -> str:
        """
        Format the text between two structural tokens. Returns the literal text
        after the last code tag in it, which is what directly precedes the next token.
        """
        bad_attr = BAD_ATTR_PATTERN.search(text)
        if bad_attr:
            self._pos = offset + bad_attr.start()
            self._fail(BadAttributeError, "Bad attribute, please fix spaces after the equal sign.")
        unrecognized = UNRECOGNIZED_TAG_PATTERN.search(text)
        if unrecognized:
            self._pos = offset + unrecognized.start()
            fragment = self.placeholders.restore(text[unrecognized.start() :]).split("\n", 1)[0]
            self._fail(UnrecognizedContentError, f"Unrecognized content: {fragment!r}")
        return self._format_code_tags(text, offset)

    def _format_open_tag(self, match: re.Match[str], gap: str) -> None:
        tag_name = match.group("name")
        if not TAG_NAME_PATTERN.fullmatch(tag_name):
            self._fail(UnknownTagError, f"Unknown tag {tag_name!r}")

        closing = match.group("closing")
        block_level = tag_name in BLOCK_LEVEL_TAGS
        new_line = self._breaks_before_tag(gap, block_level)

        tag_closing = " />" if closing == "/>" else ">"
        if not new_line:
            self.buffer.make_room(
                self.line_width, self._inline_tag_width(tag_name, match.group("attrs"), tag_closing)
            )
        formatted_attrs = format_attributes(
            tag_name,
            match.group("attrs"),
            tag_closing,
            stack=self.stack,
            line_width=self.line_width,
            column=len(self.stack.indent) if new_line else self.buffer.column,
            len_fn=self.placeholders.restored_len,
        )
        if "\n" in formatted_attrs:
            tag_closing = tag_closing.strip()

        full_tag = f"<{tag_name}{formatted_attrs}{tag_closing}"
        self._emit(full_tag, new_line)

        if not is_self_closing(tag_name, closing):
            self.stack.push(MarkupFrame(tag_name, self.placeholders.restore(full_tag)))
        self._last = Adjacency.block_tag if block_level else Adjacency.inline_tag

    def _inline_tag_width(self, tag_name: str, attrs: str, tag_closing: str) -> int:
        """Width of the open tag written inline, or of `<name` if it cannot fit inline."""
        if attrs.strip():
            inline = f"<{tag_name} {normalize_text(attrs)}{tag_closing}"
        else:
            inline = f"<{tag_name}{tag_closing}"
        width = self.placeholders.restored_len(inline)
        if width > self.line_width - len(self.stack.indent):
            return len(tag_name) + 1
        return width

    def _format_close_tag(self, tag_name: str, gap: str) -> None:
        full_tag = f"</{tag_name}>"
        if not self.stack.top_matches(MarkupFrame, tag_name):
            self._fail(UnmatchedCloseError, self._unmatched_message(full_tag))
        self.stack.pop()

        block_level = tag_name in BLOCK_LEVEL_TAGS
        self._emit(full_tag, self._breaks_before_tag(gap, block_level))
        self._last = Adjacency.block_tag if block_level else Adjacency.inline_tag

    def _format_comment(self, comment: str, gap: str) -> None:
        block_level = not comment.startswith("<!--")
        self._emit(comment, self._breaks_before_tag(gap, block_level))
        self._last = Adjacency.block_tag if block_level else Adjacency.inline_tag

    def _format_raw_text(self, tag_name: str, pos: int) -> int:
        """
        Copy the body of a `script` or `style` element verbatim up to its close tag.
        Returns the position after the close tag.
        """
        close = raw_text_close_pattern(tag_name).search(self.source, pos)
        end = close.start() if close else len(self.source)
        content = self.source[pos:end]
        self.buffer.write(content.rstrip())
        if content.strip():
            self._last = Adjacency.text
        if close is None:
            return end

        self._pos = close.start()
        self.stack.pop()
        self._emit(f"</{tag_name}>", ends_with_space(content))
        self._last = Adjacency.block_tag
        return close.end()

    def _breaks_before_tag(self, gap: str, block_level: bool) -> bool:
        if ends_with_space(gap):
            return True
        if gap:
            return False
        if self._last in (Adjacency.control, Adjacency.block_tag):
            return True
        return self._last is Adjacency.inline_tag and block_level

    # Code mode

    def _format_code_tags(self, text: str, offset: int) -> str:
        pattern = self.placeholders.code_tag_pattern
        if pattern is None:
            self._format_text(text)
            return text

        last_end = 0
        for match in pattern.finditer(text):
            pre_match = text[last_end : match.start()]
            self._format_text(pre_match)
            self._pos = offset + match.start()
            self._format_code_tag(self.placeholders.code_tags[match.group(0)], pre_match)
            last_end = match.end()

        rest = text[last_end:]
        self._format_text(rest)
        return rest

    def _format_code_tag(self, tag: str, pre_match: str) -> None:
        erb_open, code, erb_close = split_code_tag(tag)
        kind = classify(code, self.syntax_checker)

        if kind in (CodeKind.close, CodeKind.else_like):
            if not self.stack.top_matches(CodeBlockFrame):
                self._fail(UnmatchedCloseError, self._unmatched_message(f"{erb_open} {code} {erb_close}"))
            self.stack.pop()
        elif kind is CodeKind.block_open:
            code = reformat_code(
                code,
                width=self._code_width(),
                reformatter=self.reformatter,
                suffix=autoclose_suffix(code, self.syntax_checker),
            )
        else:
            code = reformat_code(code, width=self._code_width(), reformatter=self.reformatter)

        new_line = kind.is_control_flow or self._breaks_before_code(pre_match)
        self._emit(build_code_tag(erb_open, code, erb_close, self.stack.indent), new_line)

        if kind in (CodeKind.else_like, CodeKind.block_open):
            self.stack.push(CodeBlockFrame(code))
        self._last = Adjacency.control if kind.is_control_flow else Adjacency.text

    def _breaks_before_code(self, pre_match: str) -> bool:
        if ends_with_space(pre_match):
            return True
        if pre_match:
            return False
        return self._last is Adjacency.control

    def _code_width(self) -> int:
        return self.line_width - len(self.stack.indent)

    # Text

    def _format_text(self, text: str) -> None:
        if not text.strip():
            if text.count("\n") > 1:
                self.buffer.blank_line()
            return

        new_line = starts_with_space(text) or self._last is Adjacency.control
        if not new_line:
            first_word = text.split(None, 1)[0]
            self.buffer.make_room(self.line_width, self.placeholders.restored_len(first_word))
        indent = len(self.stack.indent)
        lines = wrap_text_lines(
            text,
            width=indent + effective_width(self.line_width, self.stack.depth),
            initial_column=indent if new_line else self.buffer.column,
            subsequent_offset=indent,
            len_fn=self.placeholders.restored_len,
        )

        first_line, *rest = lines
        self.buffer.write_text(first_line, new_line)
        for line in rest:
            self.buffer.write_text(line, True)

        if trailing_newline_count(text) > 1:
            self.buffer.blank_line()
        self._last = Adjacency.text

    # Output and errors

    def _emit(self, text: str, new_line: bool) -> None:
        if new_line:
            self.buffer.write_line(text)
        else:
            first_line = text.split("\n", 1)[0]
            self.buffer.make_room(self.line_width, self.placeholders.restored_len(first_line))
            self.buffer.write(text)

    def _unmatched_message(self, close: str) -> str:
        top = self.stack.top
        on_stack = f"`{top.label}' was on the stack" if top else "the stack was empty"
        return f"Unmatched close tag, tried with {close}, but {on_stack}"

    def _line_number(self) -> int:
        consumed = self.placeholders.restore(self.source[: self._pos])
        return consumed.count("\n") + 1

    def _fail(self, error_cls: type[TemplateFormatError], message: str) -> NoReturn:
        top = self.stack.top
        raise error_cls(
            message,
            filename=self.filename,
            line=self._line_number(),
            frame=top.label if top else None,
            formatted=self.placeholders.restore(self.buffer.getvalue()),
            stack=self.stack.dump(),
        )


def format_template(
    source: str,
    line_width: int = DEFAULT_LINE_WIDTH,
    filename: str = DEFAULT_FILENAME,
    *,
    syntax_checker: SyntaxChecker | None = None,
    reformatter: CodeReformatter | None = None,
) -> str:
    """
    Reformat an ERB template to the given line width.

    Returns the formatted template, stripped and ending with a single newline.
    Raises a `TemplateFormatError` subclass if the template is structurally broken.
    """
    formatter = TemplateFormatter(
        source,
        line_width,
        filename,
        syntax_checker=syntax_checker,
        reformatter=reformatter,
    )
    return formatter.format()
