"""
Attribute layout for open tags.

Attributes stay inline when the whole tag fits on its line. Otherwise each one is
put on its own line, one level deeper than the tag, and the closing bracket gets a
line of its own back at the tag's depth:

    <input
      type="text"
      name="user[email]"
      placeholder="you@example.com"
    >

Long `class` (and `data-action`) values are further split one token per line,
since their tokens are whitespace-separated lists where line breaks are harmless.
"""

from __future__ import annotations

from collections.abc import Callable

from erbmark.linewrapping.text_wrapping import DEFAULT_LEN_FUNCTION, normalize_text
from erbmark.markup.output import indented
from erbmark.markup.patterns import ATTR_PATTERN, MULTILINE_ATTR_NAMES, QUOTED_ATTR_PATTERN
from erbmark.markup.tag_stack import AttributeFrame, TagStack


def format_attributes(
    tag_name: str,
    attrs: str,
    tag_closing: str,
    *,
    stack: TagStack,
    line_width: int,
    column: int = 0,
    len_fn: Callable[[str], int] = DEFAULT_LEN_FUNCTION,
) -> str:
    """
    Lay out the attributes of a tag, returning the text between the tag name and
    `tag_closing` (`>` or ` />`).

    `column` is where the tag itself starts on its line.
    """
    if not attrs.strip():
        return ""

    plain_attrs = normalize_text(attrs)
    if column + len_fn(f"<{tag_name} {plain_attrs}{tag_closing}") <= line_width:
        return f" {plain_attrs}"

    attr_lines: list[str] = []
    stack.push(AttributeFrame("="))
    for match in ATTR_PATTERN.finditer(plain_attrs):
        attr = match.group(0).strip()
        indent = stack.indent
        name, _, value = attr.partition("=")

        if (
            len(indent) + len_fn(attr) > line_width
            and name in MULTILINE_ATTR_NAMES
            and QUOTED_ATTR_PATTERN.fullmatch(attr)
        ):
            quote = value[0]
            attr_lines.append(indented(f"{name}={quote}", indent))
            stack.push(AttributeFrame('"'))
            for value_part in value[1:-1].split():
                attr_lines.append(indented(value_part, stack.indent))
            stack.pop()
            attr_lines.append(indented(quote, indent))
        else:
            attr_lines.append(indented(attr, indent))
    stack.pop()

    # Closing bracket back at the tag's own depth.
    attr_lines.append(indented("", stack.indent))
    return "".join(attr_lines)
