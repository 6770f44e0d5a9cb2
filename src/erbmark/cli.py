#!/usr/bin/env python3
"""
erbmark: A pretty-printer for ERB templates

Common usage:
  erbmark app/views/users/show.html.erb
  erbmark --inplace app/views/
  erbmark --check .
  erbmark --reformatter 'rufo --print-width {width}' -i .
  erbmark --list-files .

Settings can also come from `.erbmark.toml`, `erbmark.toml` or the
`[tool.erbmark]` table of `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from erbmark.config import find_config_file, load_config, merge_cli_with_config
from erbmark.discovery import DEFAULT_INCLUDES, DiscoveryConfig, TemplateFinder
from erbmark.errors import TemplateFormatError
from erbmark.formatter import DEFAULT_LINE_WIDTH
from erbmark.reformat_api import STDIN_MARKER, reformat_file
from erbmark.ruby.reformatters import get_reformatter

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(message)s"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


@dataclass
class Options:
    """Command-line options for the erbmark tool."""

    files: list[str]
    output: str
    width: int
    inplace: bool
    nobackup: bool
    check: bool
    reformatter: str | None
    verbose: bool
    version: bool
    # File discovery
    extend_include: list[str]
    exclude: list[str] | None
    extend_exclude: list[str]
    respect_gitignore: bool
    force_exclude: bool
    list_files: bool
    files_max_size: int
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))


# argparse dest -> Options field, for flags a config file may also set.
_TRACKED_FLAGS: dict[str, str] = {
    "width": "width",
    "reformatter": "reformatter",
    "extend_include": "extend_include",
    "exclude": "exclude",
    "extend_exclude": "extend_exclude",
    "no_respect_gitignore": "respect_gitignore",
    "force_exclude": "force_exclude",
    "files_max_size": "files_max_size",
}
_APPEND_FLAGS = {"extend_include", "exclude", "extend_exclude"}


def _build_parser() -> argparse.ArgumentParser:
    doc_parts = (__doc__ or "").split("\n\n")
    parser = argparse.ArgumentParser(
        prog="erbmark",
        description=doc_parts[0],
        epilog="\n\n".join(doc_parts[1:]),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=str,
        default=[],
        help="Templates, directories or globs to format (use '-' for stdin, '.' for current directory)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=STDIN_MARKER,
        help="Output file (use '-' for stdout)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=int,
        default=DEFAULT_LINE_WIDTH,
        help="Line width to format to (default: %(default)s)",
    )
    parser.add_argument(
        "-i", "--inplace", action="store_true", help="Edit files in place (ignores --output)"
    )
    parser.add_argument(
        "--nobackup",
        action="store_true",
        help="Do not keep a .orig backup of files edited with --inplace",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Write nothing; exit with status 1 if any file would be reformatted",
    )
    parser.add_argument(
        "--reformatter",
        type=str,
        default=None,
        metavar="CMD",
        help="Command that reformats Ruby code from stdin to stdout, with {width} replaced "
        "by the available width (default: leave Ruby code as it is)",
    )
    parser.add_argument(
        "--extend-include",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Additional file patterns to include (e.g., '*.rhtml'). Can be repeated",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Replace all default exclusion patterns. Can be repeated",
    )
    parser.add_argument(
        "--extend-exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Add to default exclusion patterns (e.g., 'app/views/legacy/'). Can be repeated",
    )
    parser.add_argument(
        "--no-respect-gitignore",
        action="store_true",
        dest="no_respect_gitignore",
        help="Disable .gitignore integration",
    )
    parser.add_argument(
        "--force-exclude",
        action="store_true",
        dest="force_exclude",
        help="Apply exclusion patterns even to files named explicitly on the command line",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print resolved file paths without formatting",
    )
    parser.add_argument(
        "--files-max-size",
        type=int,
        default=1_048_576,
        dest="files_max_size",
        metavar="BYTES",
        help="Skip files larger than this size in bytes (0 = no limit, default: %(default)s)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output and print full diagnostics for template errors",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    return parser


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments. Also returns the set of `Options` fields the user
    passed explicitly, which take precedence over the config file.
    """
    parser = _build_parser()
    opts = parser.parse_args(args)

    # Parse again with sentinel defaults to see which flags were actually given.
    # Append actions need None, since argparse appends to a copy of the default.
    sentinel = object()
    parser.set_defaults(
        **{dest: None if dest in _APPEND_FLAGS else sentinel for dest in _TRACKED_FLAGS}
    )
    given = parser.parse_args(args)
    explicit_flags = {
        name
        for dest, name in _TRACKED_FLAGS.items()
        if getattr(given, dest) not in (None, sentinel)
    }

    options = Options(
        files=opts.files,
        output=opts.output,
        width=opts.width,
        inplace=opts.inplace,
        nobackup=opts.nobackup,
        check=opts.check,
        reformatter=opts.reformatter,
        verbose=opts.verbose,
        version=opts.version,
        extend_include=opts.extend_include,
        exclude=opts.exclude,
        extend_exclude=opts.extend_exclude,
        respect_gitignore=not opts.no_respect_gitignore,
        force_exclude=opts.force_exclude,
        list_files=opts.list_files,
        files_max_size=opts.files_max_size,
    )
    return options, explicit_flags


def _needs_discovery(files: list[str]) -> bool:
    return any(
        f != STDIN_MARKER and (Path(f).is_dir() or any(c in f for c in "*?["))
        for f in files
    )


def _resolve_files(options: Options) -> list[str]:
    """
    Expand directories and globs into template paths. Plain file arguments are
    passed through as given unless discovery is needed anyway.
    """
    if not options.list_files and not _needs_discovery(options.files):
        return options.files

    paths = [f for f in options.files if f != STDIN_MARKER]
    finder = TemplateFinder(
        DiscoveryConfig(
            include=options.include,
            extend_include=options.extend_include,
            exclude=options.exclude,
            extend_exclude=options.extend_exclude,
            respect_gitignore=options.respect_gitignore,
            force_exclude=options.force_exclude,
            files_max_size=options.files_max_size,
        )
    )
    resolved = [str(p) for p in finder.find(paths)]
    if len(paths) < len(options.files):
        resolved.insert(0, STDIN_MARKER)
    return resolved


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the erbmark CLI.

    Returns 0 on success, 1 if a template could not be formatted or `--check`
    found files that would change, and 2 for usage or I/O errors.
    """
    options, explicit_flags = _parse_args(args)
    _configure_logging(options.verbose)

    if options.version:
        try:
            print(f"v{importlib.metadata.version('erbmark')}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return EXIT_OK

    if not options.files:
        print(
            "Error: No input specified. Provide files, directories (use '.' for current"
            " directory), or '-' for stdin. Use --help for more options.",
            file=sys.stderr,
        )
        return EXIT_ERROR

    config_path = find_config_file(Path.cwd())
    if config_path:
        logger.debug("using config file %s", config_path)
        merge_cli_with_config(options, load_config(config_path), explicit_flags)

    try:
        files = _resolve_files(options)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if options.list_files:
        for f in files:
            print(f)
        return EXIT_OK

    if len(files) > 1 and not (options.inplace or options.check) and options.output != STDIN_MARKER:
        print("Error: Cannot write several files to a single --output file", file=sys.stderr)
        return EXIT_ERROR

    reformatter = get_reformatter(options.reformatter)
    failed: list[str] = []
    changed: list[str] = []
    for path in files:
        try:
            if reformat_file(
                path,
                output=options.output,
                width=options.width,
                inplace=options.inplace,
                nobackup=options.nobackup,
                check=options.check,
                reformatter=reformatter,
            ):
                changed.append(path)
        except TemplateFormatError as e:
            print(e.diagnostics() if options.verbose else str(e), file=sys.stderr)
            failed.append(path)
        except (ValueError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_ERROR

    if options.check:
        for path in changed:
            print(f"Would reformat {path}", file=sys.stderr)

    if failed or (options.check and changed):
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
