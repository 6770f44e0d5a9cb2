"""
Regex grammar for ERB templates.

All markup and ERB syntax the scanner recognizes is defined here in one place:
ERB code tags and the placeholders that stand in for them, attribute forms,
open/close tags, comments, and the element sets that change how a tag is laid out.
"""

from __future__ import annotations

import re

# Opener (`<%`, `<%=`, `<%==`, `<%-`), code, closer (`%>` or `-%>`).
# Non-greedy and DOTALL so a tag ends at the first closer, even across lines.
ERB_TAG_PATTERN: re.Pattern[str] = re.compile(r"(<%(?:==|=|-|))\s*(.*?)\s*(-?%>)", re.DOTALL)

# Shape of the identifiers that replace protected regions. Alphanumeric only, so
# they can never be mistaken for markup punctuation by the scanner.
PLACEHOLDER_PREFIX = "erb"
PLACEHOLDER_SUFFIX = "tag"
PLACEHOLDER_PATTERN: re.Pattern[str] = re.compile(r"erb[a-z0-9]+tag")

# Ruby fragments that close or continue a block.
ERB_CLOSE_CODE_PATTERN: re.Pattern[str] = re.compile(r"end|\}")
ERB_ELSE_CODE_PATTERN: re.Pattern[str] = re.compile(
    r"else|ensure|(?:elsif|when|in|rescue)\b.*", re.DOTALL
)

# Attribute names and unquoted values: no whitespace, quotes, `=` or angle
# brackets, and not ending with a slash (so `<br/>` keeps its `/>`).
ATTR_NAME = r"""[^\r\n\t\f\v= '"<>]*[^\r\n\t\f\v= '"<>/]"""
UNQUOTED_VALUE = ATTR_NAME
UNQUOTED_ATTR = rf"{ATTR_NAME}={UNQUOTED_VALUE}"
SINGLE_QUOTE_ATTR = rf"(?:{ATTR_NAME}='[^']*?')"
DOUBLE_QUOTE_ATTR = rf"(?:{ATTR_NAME}=\"[^\"]*?\")"

QUOTED_ATTR_PATTERN: re.Pattern[str] = re.compile(rf"{SINGLE_QUOTE_ATTR}|{DOUBLE_QUOTE_ATTR}")
ATTR_PATTERN: re.Pattern[str] = re.compile(
    rf"{SINGLE_QUOTE_ATTR}|{DOUBLE_QUOTE_ATTR}|{UNQUOTED_ATTR}|{UNQUOTED_VALUE}"
)

# `name= "value"` inside something that looks like an open tag.
BAD_ATTR_PATTERN: re.Pattern[str] = re.compile(rf"<\w+(?:[^<>]*?\s)?{ATTR_NAME}=\s+")

# Start of a tag left over in text once every well-formed token has been taken out.
UNRECOGNIZED_TAG_PATTERN: re.Pattern[str] = re.compile(r"</?\w")

HTML_ATTR = (
    rf"\s+{SINGLE_QUOTE_ATTR}|\s+{DOUBLE_QUOTE_ATTR}|\s+{UNQUOTED_ATTR}|\s+{ATTR_NAME}"
)

# Everything the scanner stops at in markup mode. Named groups tell the kinds apart.
STRUCTURAL_PATTERN: re.Pattern[str] = re.compile(
    rf"""
    (?P<comment><!--[\s\S]*?-->|<![A-Za-z][^<>]*>)
    | (?P<close></\s*(?P<close_name>\w+)\s*>)
    | (?P<open><(?P<name>\w+)(?P<attrs>(?:{HTML_ATTR})*)\s*?(?P<closing>/>|>))
    """,
    re.VERBOSE,
)

TAG_NAME_PATTERN: re.Pattern[str] = re.compile(r"[a-z0-9]+")

SELF_CLOSING_TAG_PATTERN: re.Pattern[str] = re.compile(
    r"area|base|br|col|command|embed|hr|img|input|keygen|link|menuitem|meta|param"
    r"|source|track|wbr",
    re.IGNORECASE,
)

# Elements whose body is copied verbatim; only their own close tag ends them.
RAW_TEXT_TAGS: frozenset[str] = frozenset({"script", "style"})

# Attributes whose quoted value may be split one token per line when too long.
MULTILINE_ATTR_NAMES: frozenset[str] = frozenset({"class", "data-action"})

# Elements where whitespace around the tag never matters for rendering, so two
# adjacent tags may be put on separate lines.
BLOCK_LEVEL_TAGS: frozenset[str] = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "caption", "colgroup",
        "dd", "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
        "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "head",
        "header", "hgroup", "hr", "html", "li", "link", "main", "menu", "meta",
        "nav", "ol", "optgroup", "option", "p", "script", "section", "select",
        "style", "summary", "table", "tbody", "td", "template", "tfoot", "th",
        "thead", "title", "tr", "ul",
    }
)


def is_self_closing(tag_name: str, tag_closing: str) -> bool:
    return tag_closing == "/>" or SELF_CLOSING_TAG_PATTERN.fullmatch(tag_name) is not None


def raw_text_close_pattern(tag_name: str) -> re.Pattern[str]:
    """Pattern for the close tag that ends a raw-text element's body."""
    return re.compile(rf"</\s*{re.escape(tag_name)}\s*>", re.IGNORECASE)


def ends_with_space(text: str) -> bool:
    return bool(text) and text[-1].isspace()


def starts_with_space(text: str) -> bool:
    return bool(text) and text[0].isspace()
