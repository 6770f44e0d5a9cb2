"""
Ruby code reformatters.

A reformatter takes a Ruby fragment and the number of columns it may use and
returns an equivalent, re-flowed fragment. The width is always passed explicitly,
because fragments nested at different depths are formatted at different widths
within one run.

Reformatters are best effort: on any failure they return the code unchanged.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from typing import Protocol

logger = logging.getLogger(__name__)

WIDTH_FIELD = "{width}"


class CodeReformatter(Protocol):
    def __call__(self, code: str, width: int) -> str: ...


def passthrough_reformatter(code: str, width: int) -> str:  # pyright: ignore[reportUnusedParameter]
    """
    Leave code as it is. This is what runs when no reformatter is configured.
    """
    return code


class CommandReformatter:
    """
    Reformat code by piping it through an external command, such as `rufo`.

    The code is written to the command's stdin and the reformatted code is read
    from its stdout. Any `{width}` in the arguments is replaced by the column
    budget of the call, for tools that take the line length as a flag.
    """

    def __init__(self, command: Sequence[str] | str, timeout: float | None = 10.0) -> None:
        if isinstance(command, str):
            command = shlex.split(command)
        if not command:
            raise ValueError("Reformatter command must not be empty")
        self.command: list[str] = list(command)
        self.timeout: float | None = timeout

    def __repr__(self) -> str:
        return f"CommandReformatter({shlex.join(self.command)!r})"

    def args_for(self, width: int) -> list[str]:
        return [arg.replace(WIDTH_FIELD, str(width)) for arg in self.command]

    def __call__(self, code: str, width: int) -> str:
        args = self.args_for(width)
        try:
            result = subprocess.run(
                args,
                input=code,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Reformatter %s failed: %s", args[0], e)
            return code

        if result.returncode != 0:
            logger.warning(
                "Reformatter %s exited with status %d: %s",
                args[0],
                result.returncode,
                result.stderr.strip(),
            )
            return code
        if not result.stdout.strip():
            logger.warning("Reformatter %s produced no output", args[0])
            return code
        return result.stdout


def get_reformatter(command: Sequence[str] | str | None) -> CodeReformatter:
    """Reformatter for a configured command, or the pass-through one if none."""
    if not command:
        return passthrough_reformatter
    return CommandReformatter(command)
