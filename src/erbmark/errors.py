"""
Structural errors raised while formatting a template.

All of them are fatal: the formatter never continues past one. Each error records
where it happened (file, 1-based line, innermost stack frame) along with the
output built so far and a dump of the tag stack, so a failing template can be
diagnosed without re-running anything.
"""

from __future__ import annotations

from collections.abc import Sequence


class TemplateFormatError(ValueError):
    """Base class for all template formatting errors."""

    def __init__(
        self,
        message: str,
        *,
        filename: str = "(template)",
        line: int = 1,
        frame: str | None = None,
        formatted: str = "",
        stack: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.filename: str = filename
        self.line: int = line
        self.frame: str | None = frame
        self.formatted: str = formatted
        self.stack: tuple[str, ...] = tuple(stack)

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.line}"

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"

    def diagnostics(self) -> str:
        """
        Full report: location, innermost frame, the partial output and the stack.
        """
        stack_dump = "\n".join(f"  {label}" for label in self.stack) or "  (empty)"
        return "\n".join(
            [
                f"{self.location}: in `{self.frame or '(top level)'}'",
                "==> FORMATTED:",
                self.formatted,
                "==> STACK:",
                stack_dump,
                f"==> ERROR: {self.message}",
            ]
        )


class BadAttributeError(TemplateFormatError):
    """An attribute's `=` is followed by whitespace before its value."""


class UnknownTagError(TemplateFormatError):
    """An open tag's name is not a lowercase alphanumeric identifier."""


class UnmatchedCloseError(TemplateFormatError):
    """A close tag or `end` does not match the top of the tag stack."""


class UnrecognizedContentError(TemplateFormatError):
    """The scanner found a structural token it cannot classify."""
