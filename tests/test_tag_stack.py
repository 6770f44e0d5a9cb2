"""Tests for the tag stack and output buffer."""

from __future__ import annotations

from erbmark.markup.output import OutputBuffer, indented
from erbmark.markup.tag_stack import AttributeFrame, CodeBlockFrame, MarkupFrame, TagStack


def test_stack_indent_follows_depth() -> None:
    stack = TagStack()
    assert stack.indent == ""
    assert stack.top is None

    stack.push(MarkupFrame("div", "<div>"))
    stack.push(CodeBlockFrame("if x"))
    assert stack.depth == 2
    assert stack.indent == "    "
    assert isinstance(stack.top, CodeBlockFrame)

    stack.pop()
    assert stack.indent == "  "


def test_top_matches() -> None:
    stack = TagStack()
    assert not stack.top_matches(MarkupFrame, "div")

    stack.push(MarkupFrame("div", "<div>"))
    assert stack.top_matches(MarkupFrame, "div")
    assert not stack.top_matches(MarkupFrame, "span")
    assert not stack.top_matches(CodeBlockFrame)

    stack.push(CodeBlockFrame("items.each do |item|"))
    assert stack.top_matches(CodeBlockFrame)
    assert not stack.top_matches(MarkupFrame, "div")


def test_labels_and_dump() -> None:
    stack = TagStack()
    stack.push(MarkupFrame("ul", '<ul class="list">'))
    stack.push(CodeBlockFrame("if x"))
    stack.push(AttributeFrame("="))

    assert [frame.label for frame in stack] == ["ul", "%erb%", "attr="]
    assert stack.dump() == ['ul: <ul class="list">', "%erb%: if x", "attr="]


def test_output_buffer_columns() -> None:
    stack = TagStack()
    buffer = OutputBuffer(stack)
    buffer.write("<div>")
    assert buffer.column == 5

    stack.push(MarkupFrame("div", "<div>"))
    buffer.write_line("<p>")
    assert buffer.column == 5
    buffer.write("text")
    assert buffer.column == 9

    buffer.blank_line()
    assert buffer.column == 0
    assert buffer.getvalue() == "<div>\n  <p>text\n"


def test_output_buffer_measures_with_len_fn() -> None:
    buffer = OutputBuffer(TagStack(), len_fn=lambda text: len(text.replace("PH", "<%= u %>")))
    buffer.write('<a href="PH">')
    assert buffer.column == len('<a href="<%= u %>">')
    buffer.write_line("PH")
    assert buffer.column == 8


def test_make_room_breaks_at_last_text_space() -> None:
    stack = TagStack()
    stack.push(MarkupFrame("div", "<div>"))
    buffer = OutputBuffer(stack)
    buffer.write_text("alpha beta gamma", new_line=True)
    assert buffer.column == 18

    buffer.make_room(20, 2)
    assert buffer.getvalue() == "\n  alpha beta gamma"

    stack.push(MarkupFrame("b", "<b>"))
    buffer.make_room(20, 3)
    buffer.write("<b>")
    assert buffer.getvalue() == "\n  alpha beta\n  gamma<b>"
    assert buffer.column == 10

    # Only one break per line of text.
    buffer.make_room(10, 5)
    assert buffer.getvalue() == "\n  alpha beta\n  gamma<b>"


def test_make_room_never_breaks_flush_writes() -> None:
    buffer = OutputBuffer(TagStack())
    buffer.write('<a href="/x">link</a>')
    buffer.make_room(10, 5)
    assert "\n" not in buffer.getvalue()


def test_indented() -> None:
    assert indented("  x ", "    ") == "\n    x"
    assert indented("", "  ") == "\n  "
