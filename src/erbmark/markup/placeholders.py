"""
Placeholder protection for ERB code tags.

Before the markup is scanned, every ERB tag is swapped for an opaque identifier so
that no markup regex can ever match inside Ruby code (a `<` in a comparison, a `>`
in a string). Tokens in the source that already look like placeholders are
protected first, so that running the formatter over its own intermediate output
cannot confuse them with fresh ones.

Identifiers have a fixed shape, `erb` + 32 hex digits + `tag`, that contains no
markup punctuation and is checked for uniqueness against both tables and the
literal source.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field

from erbmark.markup.patterns import (
    ERB_TAG_PATTERN,
    PLACEHOLDER_PATTERN,
    PLACEHOLDER_PREFIX,
    PLACEHOLDER_SUFFIX,
)


@dataclass
class PlaceholderTable:
    """
    Maps generated identifiers back to the text they replaced.

    `code_tags` holds ERB tags; `opaque` holds pre-existing placeholder-shaped
    tokens. The two are restored in that order, since an ERB tag may itself
    contain a protected opaque token.
    """

    source: str = ""
    code_tags: dict[str, str] = field(default_factory=dict)
    opaque: dict[str, str] = field(default_factory=dict)
    _patterns: dict[str, tuple[int, re.Pattern[str] | None]] = field(
        default_factory=dict, init=False, repr=False
    )

    def new_identifier(self) -> str:
        while True:
            uid = f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex}{PLACEHOLDER_SUFFIX}"
            if uid not in self.code_tags and uid not in self.opaque and uid not in self.source:
                return uid

    @property
    def code_tag_pattern(self) -> re.Pattern[str] | None:
        """Pattern matching any code tag identifier, or `None` if there are none."""
        return self._pattern("code_tags", self.code_tags)

    def restore_code_tags(self, text: str) -> str:
        return _restore(text, self.code_tags, self.code_tag_pattern)

    def restore(self, text: str) -> str:
        """
        Restore all protected regions. This is the exact inverse of `protect()`.
        """
        text = self.restore_code_tags(text)
        return _restore(text, self.opaque, self._pattern("opaque", self.opaque))

    def restored_len(self, text: str) -> int:
        """Length of `text` once its placeholders are restored."""
        if PLACEHOLDER_PREFIX not in text:
            return len(text)
        return len(self.restore(text))

    def _pattern(self, name: str, table: dict[str, str]) -> re.Pattern[str] | None:
        # Recompiled only when the table has grown since the last call.
        cached = self._patterns.get(name)
        if cached is None or cached[0] != len(table):
            cached = (len(table), _union_pattern(table))
            self._patterns[name] = cached
        return cached[1]


def protect(source: str) -> tuple[str, PlaceholderTable]:
    """
    Replace opaque tokens and then ERB tags with fresh identifiers.

    Returns the protected working copy and the table needed to restore it.
    """
    table = PlaceholderTable(source=source)

    def protect_opaque(match: re.Match[str]) -> str:
        uid = table.new_identifier()
        table.opaque[uid] = match.group(0)
        return uid

    def protect_code(match: re.Match[str]) -> str:
        uid = table.new_identifier()
        table.code_tags[uid] = match.group(0)
        return uid

    working = PLACEHOLDER_PATTERN.sub(protect_opaque, source)
    working = ERB_TAG_PATTERN.sub(protect_code, working)
    return working, table


def _union_pattern(table: dict[str, str]) -> re.Pattern[str] | None:
    if not table:
        return None
    return re.compile("|".join(re.escape(uid) for uid in table))


def _restore(text: str, table: dict[str, str], pattern: re.Pattern[str] | None) -> str:
    if pattern is None:
        return text
    return pattern.sub(lambda match: table[match.group(0)], text)
