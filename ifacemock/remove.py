"""Finding and deleting generated mock and matcher files."""

from __future__ import annotations

import os
import sys
from typing import Callable, Optional, TextIO

GENERATED_MARKER = "// Code generated by pegomock. DO NOT EDIT."
_HEADER_SIZE = 50


def _remove_path(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.remove(path)


def is_generated(path: str, out: TextIO) -> bool:
    """True when the first bytes of ``path`` carry the generated-code marker."""
    try:
        handle = open(path, "rb")
    except OSError as e:
        out.write(f"Could not open file {path}. Error: {e}\n")
        return False
    with handle:
        try:
            head = handle.read(_HEADER_SIZE)
        except OSError as e:
            out.write(f"Could not read from file {path}. Error: {e}\n")
            return False
    if not head:
        out.write(f"Could not read from file {path}. Error: EOF\n")
        return False
    return GENERATED_MARKER in head.decode("utf-8", errors="replace")


def _sorted_entries(directory: str) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def find_generated_files(
    recursive: bool, path: str, out: TextIO
) -> tuple[list[str], set[str]]:
    """Return the generated ``.go`` files below ``path`` and their matcher directories.

    Without ``recursive`` only the files directly in ``path`` are considered.
    """
    files: list[str] = []
    matcher_dirs: set[str] = set()

    def consider(file_path: str) -> None:
        if file_path.endswith(".go") and is_generated(file_path, out):
            files.append(file_path)
            parent = os.path.dirname(file_path)
            if os.path.basename(parent) == "matchers":
                matcher_dirs.add(parent)

    def visit(directory: str) -> None:
        try:
            entries = _sorted_entries(directory)
        except OSError:
            return
        for entry in entries:
            full = os.path.normpath(os.path.join(directory, entry.name))
            if entry.is_dir(follow_symlinks=False):
                if recursive:
                    visit(full)
                continue
            consider(full)

    if recursive:
        if not os.path.lexists(path):
            raise OSError(f"Could not get files in path {path}")
        if os.path.isdir(path) and not os.path.islink(path):
            visit(path)
        else:
            consider(path)
    else:
        visit(path)
    return files, matcher_dirs


def _contains_only_generated_files(matchers_dir: str, generated: list[str]) -> bool:
    try:
        names = os.listdir(matchers_dir)
    except OSError:
        return False
    return not {os.path.join(matchers_dir, name) for name in names} - set(generated)


def _dir_empty(path: str) -> bool:
    try:
        return not os.listdir(path)
    except OSError:
        return False


def ask_for_confirmation(prompt: str, inp: TextIO, out: TextIO) -> bool:
    """Ask a yes/no question until it is answered; end of input counts as no."""
    while True:
        out.write(f"{prompt} [y/n]: ")
        line = inp.readline()
        if not line.endswith("\n"):
            out.write("Could not get confirmation from StdIn EOF\n")
            return False
        response = line.strip().lower()
        if response in ("y", "yes"):
            return True
        if response in ("n", "no"):
            return False


def remove(
    path: str,
    recursive: bool = False,
    should_confirm: bool = True,
    dry_run: bool = False,
    silent: bool = False,
    out: Optional[TextIO] = None,
    inp: Optional[TextIO] = None,
    remove_fn: Optional[Callable[[str], None]] = None,
) -> None:
    """Delete generated mock files under ``path`` and matcher directories left empty."""
    out = out if out is not None else sys.stdout
    inp = inp if inp is not None else sys.stdin
    remove_fn = remove_fn if remove_fn is not None else _remove_path

    try:
        files, matcher_dirs = find_generated_files(recursive, path, out)
    except OSError as e:
        out.write(f"{e}\n")
        return
    if not files:
        out.write("No files to remove.\n")
        return

    listing = list(files)
    listing.extend(d for d in sorted(matcher_dirs) if _contains_only_generated_files(d, files))
    listing.sort()
    listing_text = "\n".join(listing) + "\n"

    if dry_run:
        out.write("This is a dry-run. Would delete the following files:\n")
        out.write(listing_text)
        return

    if should_confirm:
        out.write("Will delete the following files:\n")
        out.write(listing_text)
        if not ask_for_confirmation("Continue?", inp, out):
            return
    elif not silent:
        out.write("Deleting the following files:\n")
        out.write(listing_text)

    errors: list[Exception] = []
    for file_path in files:
        try:
            remove_fn(file_path)
        except OSError as e:
            errors.append(e)
    for matchers_dir in sorted(matcher_dirs):
        if _dir_empty(matchers_dir):
            try:
                remove_fn(matchers_dir)
            except OSError as e:
                errors.append(e)
    if errors:
        joined = " ".join(str(e) for e in errors)
        out.write(f"There were some errors when trying to delete files: [{joined}]")