"""
erbmark: width-aware reformatting for ERB templates.

Usage::

    from erbmark import format_template

    formatted = format_template(source, line_width=100, filename="show.html.erb")
"""

from erbmark.errors import (
    BadAttributeError,
    TemplateFormatError,
    UnknownTagError,
    UnmatchedCloseError,
    UnrecognizedContentError,
)
from erbmark.formatter import TemplateFormatter, format_template
from erbmark.reformat_api import reformat_file, reformat_files, reformat_text
from erbmark.ruby.reformatters import CodeReformatter, CommandReformatter, passthrough_reformatter
from erbmark.ruby.syntax import is_syntactically_complete

__all__ = [
    "BadAttributeError",
    "CodeReformatter",
    "CommandReformatter",
    "TemplateFormatError",
    "TemplateFormatter",
    "UnknownTagError",
    "UnmatchedCloseError",
    "UnrecognizedContentError",
    "format_template",
    "is_syntactically_complete",
    "passthrough_reformatter",
    "reformat_file",
    "reformat_files",
    "reformat_text",
]
