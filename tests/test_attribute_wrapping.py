from __future__ import annotations

from erbmark.linewrapping.attribute_wrapping import format_attributes
from erbmark.markup.tag_stack import MarkupFrame, TagStack


def test_attributes_inline_when_they_fit() -> None:
    stack = TagStack()
    result = format_attributes("a", ' href="/x"   class="y"', ">", stack=stack, line_width=80)
    assert result == ' href="/x" class="y"'
    assert stack.depth == 0


def test_no_attributes() -> None:
    assert format_attributes("div", "", ">", stack=TagStack(), line_width=80) == ""
    assert format_attributes("div", "  ", ">", stack=TagStack(), line_width=80) == ""


def test_starting_column_counts() -> None:
    stack = TagStack()
    assert format_attributes("a", ' href="/x"', ">", stack=stack, line_width=80, column=60) == (
        ' href="/x"'
    )
    assert format_attributes("a", ' href="/x"', ">", stack=stack, line_width=80, column=70) == (
        '\n  href="/x"\n'
    )
    assert stack.depth == 0


def test_one_attribute_per_line() -> None:
    attrs = ' type="text" name="user_email" placeholder="you@example.com"'
    result = format_attributes("input", attrs, ">", stack=TagStack(), line_width=40)
    assert result == '\n  type="text"\n  name="user_email"\n  placeholder="you@example.com"\n'


def test_wrapped_attributes_follow_stack_depth() -> None:
    stack = TagStack()
    stack.push(MarkupFrame("div", "<div>"))
    result = format_attributes("a", ' href="/a/long/path" title="x"', ">", stack=stack, line_width=30)
    assert result == '\n    href="/a/long/path"\n    title="x"\n  '
    assert stack.depth == 1


def test_long_class_value_split_per_token() -> None:
    attrs = ' class="alpha beta gamma delta epsilon"'
    result = format_attributes("div", attrs, ">", stack=TagStack(), line_width=30)
    assert result == (
        '\n  class="\n    alpha\n    beta\n    gamma\n    delta\n    epsilon\n  "\n'
    )


def test_long_plain_value_stays_whole() -> None:
    attrs = ' title="a title that is much too long to fit" id="x"'
    result = format_attributes("span", attrs, ">", stack=TagStack(), line_width=30)
    assert result == '\n  title="a title that is much too long to fit"\n  id="x"\n'


def test_self_closing_bracket_counts() -> None:
    # `<br data-x="12345" />` is 21 columns.
    assert format_attributes("br", ' data-x="12345"', " />", stack=TagStack(), line_width=21) == (
        ' data-x="12345"'
    )
    assert format_attributes("br", ' data-x="12345"', " />", stack=TagStack(), line_width=20) == (
        '\n  data-x="12345"\n'
    )
