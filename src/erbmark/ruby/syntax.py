"""
Ruby syntax completeness, using Tree-sitter with the Ruby grammar.

A fragment is complete when it parses without any error or missing nodes. ERB
fragments like `if user.admin?` or `items.each do |item|` are incomplete on their
own and only parse once a closing `end` (or `}`) is appended.

Tree-sitter recovers a stray keyword such as a lone `end` as a plain identifier,
so identifiers spelled like block keywords also make a fragment incomplete,
except as method names after a dot (`range.end`).
"""

from __future__ import annotations

from collections.abc import Callable
from functools import cache
from typing import TypeAlias

from tree_sitter import Language, Node, Parser

SyntaxChecker: TypeAlias = Callable[[str], bool]

BLOCK_KEYWORDS = frozenset(
    {"do", "else", "elsif", "end", "ensure", "in", "rescue", "then", "when"}
)


@cache
def _ruby_language() -> Language:
    import tree_sitter_ruby as tsruby

    return Language(tsruby.language())


def ruby_parser() -> Parser:
    return Parser(_ruby_language())


def _is_method_name(node: Node) -> bool:
    parent = node.parent
    if parent is None or parent.type != "call":
        return False
    return parent.child_by_field_name("method") == node


def _has_stray_keyword(root: Node) -> bool:
    pending = [root]
    while pending:
        node = pending.pop()
        if (
            node.type == "identifier"
            and node.text is not None
            and node.text.decode("utf-8") in BLOCK_KEYWORDS
            and not _is_method_name(node)
        ):
            return True
        pending.extend(node.children)
    return False


def is_syntactically_complete(code: str) -> bool:
    """
    Check whether a Ruby fragment parses as a complete, self-contained unit.
    """
    tree = ruby_parser().parse(code.encode("utf-8"))
    return not tree.root_node.has_error and not _has_stray_keyword(tree.root_node)
