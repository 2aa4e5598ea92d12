"""Command line entry point for removing generated mocks."""

from __future__ import annotations

import argparse
import os
import sys
from contextlib import redirect_stderr, redirect_stdout
from typing import Optional, Sequence, TextIO

from ifacemock.remove import remove


def determine_package_name_in(directory: str) -> str:
    """Return the test package name for ``directory``: its base name plus ``_test``."""
    base = os.path.basename(os.path.normpath(directory))
    return base.replace("-", "_") + "_test"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ifacemock", description="Manages mocks generated from interfaces."
    )
    commands = parser.add_subparsers(dest="command", required=True)
    rm = commands.add_parser("remove", help="Remove generated mocks")
    rm.add_argument(
        "-r", "--recursive", action="store_true", help="Remove recursively in all sub-directories"
    )
    rm.add_argument(
        "-n",
        "--non-interactive",
        action="store_true",
        help="Don't ask for confirmation. Useful for scripts.",
    )
    rm.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Just show what would be done. Don't delete anything.",
    )
    rm.add_argument(
        "-s", "--silent", action="store_true", help="Don't write anything to standard out."
    )
    rm.add_argument(
        "path",
        nargs="?",
        default="",
        help="Use as root directory instead of current working directory.",
    )
    return parser


def run(
    argv: Optional[Sequence[str]] = None,
    out: Optional[TextIO] = None,
    inp: Optional[TextIO] = None,
) -> int:
    """Run the command given by ``argv``; usage errors go to ``out``. Return the exit code."""
    out = out if out is not None else sys.stdout
    inp = inp if inp is not None else sys.stdin
    parser = _build_parser()
    with redirect_stdout(out), redirect_stderr(out):
        try:
            args = parser.parse_args(argv)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1

    path = args.path or os.getcwd()
    remove(
        path,
        recursive=args.recursive,
        should_confirm=not args.non_interactive,
        dry_run=args.dry_run,
        silent=args.silent,
        out=out,
        inp=inp,
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point of the command."""
    return run(argv)