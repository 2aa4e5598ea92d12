"""Argument handling, package path discovery and small file helpers."""

from __future__ import annotations

import os
import re
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional


class ArgumentError(ValueError):
    """Raised when command arguments or the environment are unusable."""


def validate_args(args: list[str]) -> None:
    """Check that ``args`` name one source file or some interfaces."""
    if not args:
        raise ArgumentError(
            "You must specify either exactly one source filename ending with .go, "
            "or at least one go interface name."
        )
    if len(args) >= 2 and any(arg.endswith(".go") for arg in args):
        raise ArgumentError("You can specify at most one go source file.")


def source_mode(args: list[str]) -> bool:
    """True when ``args`` is a single source file."""
    return len(args) == 1 and args[0].endswith(".go")


def source_args(args: list[str]) -> list[str]:
    """Complete ``args`` to a source file or a package path plus interface."""
    if source_mode(args):
        return list(args)
    if len(args) == 1:
        try:
            package_path = _package_path_from_working_directory()
        except ArgumentError as e:
            raise ArgumentError(f"Couldn't determine package path from directory: {e}") from e
        return [package_path, args[0]]
    if len(args) == 2:
        return list(args)
    raise ArgumentError(
        "Please provide exactly 1 interface or 1 package + 1 interface "
        "in the interfaces_to_mock file"
    )


def _package_path_from_working_directory() -> str:
    directory = os.getcwd()
    mode = os.environ.get("GO111MODULE", "")
    if mode == "on":
        return package_path_from_dir_using_go_mod(directory)
    if mode == "off":
        return package_path_from_dir_using_gopath(directory)
    if mode in ("auto", ""):
        if within_gopath(directory):
            return package_path_from_dir_using_gopath(directory)
        return package_path_from_dir_using_go_mod(directory)
    raise ArgumentError(
        f"Not a valid value for $GO111MODULE: {mode} \n"
        'Valid values are "on", "off", "auto", or ""'
    )


def _first_gopath() -> str:
    gopath = os.environ.get("GOPATH")
    if gopath is None:
        gopath = str(Path.home() / "go")
    entries = gopath.split(os.pathsep) if gopath else []
    return entries[0] if entries else ""


def _relative(base: str, directory: str) -> Optional[str]:
    try:
        return os.path.relpath(directory, base)
    except ValueError:
        return None


def package_path_from_dir_using_gopath(directory: str) -> str:
    """Return the package path of ``directory`` below ``$GOPATH/src``."""
    gopath = _first_gopath()
    if not gopath:
        raise ArgumentError("GO111MODULE=off, but no $GOPATH defined")
    rel = _relative(os.path.join(gopath, "src"), directory)
    if rel is None or rel.startswith(".."):
        raise ArgumentError(
            f"Directory is not within a Go package path. GOPATH:{gopath}; dir: {directory}"
        )
    return rel


def package_path_from_dir_using_go_mod(directory: str) -> str:
    """Return the package path of ``directory`` from its enclosing go.mod."""
    root = find_module_root(directory)
    rel = _relative(root, directory) if root is not None else None
    if root is None or rel is None:
        raise ArgumentError(
            f"Could not get a relative path for {directory} based on path {root or ''}"
        )
    gomod = os.path.join(root, "go.mod")
    try:
        content = Path(gomod).read_text()
    except OSError as e:
        raise ArgumentError(f"Could not read file {gomod}") from e
    match = re.match(r"module (.*)\n", content)
    if match is None:
        raise ArgumentError(f"Cannot parse{gomod}file. File does not start with 'module'")
    return os.path.normpath(os.path.join(match.group(1), rel))


def within_gopath(directory: str) -> bool:
    """True when ``directory`` lies inside the first ``$GOPATH`` entry."""
    gopath = _first_gopath()
    if not gopath:
        return False
    rel = _relative(gopath, directory)
    return rel is not None and not rel.startswith("..")


def find_module_root(directory: str) -> Optional[str]:
    """Return the nearest ancestor of ``directory`` holding a go.mod file."""
    current = os.path.normpath(directory)
    while True:
        if os.path.isfile(os.path.join(current, "go.mod")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


@contextmanager
def within_working_dir(target_path: str) -> Iterator[str]:
    """Temporarily change the working directory to ``target_path``."""
    original = os.getcwd()
    os.chdir(target_path)
    try:
        yield target_path
    finally:
        os.chdir(original)


def write_file_if_changed(output_path: str, output: bytes) -> bool:
    """Write ``output`` unless the file already holds it; report whether written."""
    path = Path(output_path)
    try:
        if path.read_bytes() == output:
            return False
    except FileNotFoundError:
        pass
    path.write_bytes(output)
    return True


def ticker(callback: Callable[[], None], delay: float, done: threading.Event) -> None:
    """Call ``callback`` every ``delay`` seconds until ``done`` is set."""
    while not done.is_set():
        callback()
        done.wait(delay)