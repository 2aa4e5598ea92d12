import io
import os

import pytest

from ifacemock.remove import (
    GENERATED_MARKER,
    ask_for_confirmation,
    find_generated_files,
    is_generated,
    remove,
)


def _generated(path, body="package x\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(GENERATED_MARKER + "\n\n" + body)


@pytest.fixture
def package_dir(tmp_path):
    pkg = tmp_path.resolve() / "pegomocktest"
    sub = pkg / "subpackage"
    sub.mkdir(parents=True)
    (pkg / "mydisplay.go").write_text("package pegomocktest\n")
    (sub / "subdisplay.go").write_text("package subpackage\n")
    _generated(pkg / "mock_mydisplay_test.go")
    _generated(sub / "mock_subdisplay.go")
    return pkg


def test_no_files_to_remove(tmp_path):
    out = io.StringIO()
    remove(str(tmp_path), should_confirm=False, out=out)
    assert out.getvalue() == "No files to remove.\n"


def test_non_recursive_removes_current_directory_only(package_dir):
    out = io.StringIO()
    remove(str(package_dir), should_confirm=False, out=out)
    assert out.getvalue() == (
        "Deleting the following files:\n" f"{package_dir}/mock_mydisplay_test.go\n"
    )
    assert not (package_dir / "mock_mydisplay_test.go").exists()
    assert (package_dir / "mydisplay.go").exists()
    assert (package_dir / "subpackage" / "mock_subdisplay.go").exists()


def test_recursive_removes_all(package_dir):
    out = io.StringIO()
    remove(str(package_dir), recursive=True, should_confirm=False, out=out)
    assert (
        "Deleting the following files:\n"
        f"{package_dir}/mock_mydisplay_test.go\n"
        f"{package_dir}/subpackage/mock_subdisplay.go" in out.getvalue()
    )
    assert not (package_dir / "mock_mydisplay_test.go").exists()
    assert not (package_dir / "subpackage" / "mock_subdisplay.go").exists()
    assert (package_dir / "subpackage" / "subdisplay.go").exists()


def test_removes_matchers_and_matchers_dir(package_dir):
    _generated(package_dir / "mock_requesthandler_test.go")
    _generated(package_dir / "matchers" / "ptr_to_http_request.go", "package matchers\n")
    sub = package_dir / "subpackage"
    _generated(sub / "mock_requesthandler.go")
    _generated(sub / "matchers" / "ptr_to_http_request.go", "package matchers\n")

    out = io.StringIO()
    remove(str(package_dir), recursive=True, should_confirm=False, out=out)

    assert out.getvalue() == (
        "Deleting the following files:\n"
        f"{package_dir}/matchers\n"
        f"{package_dir}/matchers/ptr_to_http_request.go\n"
        f"{package_dir}/mock_mydisplay_test.go\n"
        f"{package_dir}/mock_requesthandler_test.go\n"
        f"{package_dir}/subpackage/matchers\n"
        f"{package_dir}/subpackage/matchers/ptr_to_http_request.go\n"
        f"{package_dir}/subpackage/mock_requesthandler.go\n"
        f"{package_dir}/subpackage/mock_subdisplay.go\n"
    )
    assert not (package_dir / "matchers").exists()
    assert not (sub / "matchers").exists()


def test_matchers_dir_with_other_files_is_kept(package_dir):
    matchers = package_dir / "matchers"
    _generated(matchers / "ptr_to_http_request.go")
    (matchers / "handwritten.go").write_text("package matchers\n")

    out = io.StringIO()
    remove(str(package_dir), recursive=True, should_confirm=False, out=out)

    assert f"{matchers}\n" not in out.getvalue()
    assert (matchers / "handwritten.go").exists()
    assert not (matchers / "ptr_to_http_request.go").exists()


def test_silent_prints_nothing(package_dir):
    out = io.StringIO()
    remove(str(package_dir), should_confirm=False, silent=True, out=out)
    assert out.getvalue() == ""
    assert not (package_dir / "mock_mydisplay_test.go").exists()


def test_dry_run_keeps_files(package_dir):
    out = io.StringIO()
    remove(str(package_dir), dry_run=True, out=out)
    assert out.getvalue() == (
        "This is a dry-run. Would delete the following files:\n"
        f"{package_dir}/mock_mydisplay_test.go\n"
    )
    assert (package_dir / "mock_mydisplay_test.go").exists()


@pytest.mark.parametrize("answer, deleted", [("yes\n", True), ("no\n", False)])
def test_interactive_confirmation(package_dir, answer, deleted):
    out = io.StringIO()
    remove(str(package_dir), out=out, inp=io.StringIO(answer))
    assert (
        "Will delete the following files:\n"
        f"{package_dir}/mock_mydisplay_test.go\n"
        "Continue? [y/n]:" in out.getvalue()
    )
    assert (package_dir / "mock_mydisplay_test.go").exists() is not deleted


def test_errors_are_reported(package_dir):
    def failing(path):
        raise OSError("boom")

    out = io.StringIO()
    remove(str(package_dir), should_confirm=False, silent=True, out=out, remove_fn=failing)
    assert out.getvalue() == "There were some errors when trying to delete files: [boom]"
    assert (package_dir / "mock_mydisplay_test.go").exists()


def test_remove_fn_receives_files(package_dir):
    removed = []
    remove(
        str(package_dir),
        recursive=True,
        should_confirm=False,
        silent=True,
        out=io.StringIO(),
        remove_fn=removed.append,
    )
    assert removed == [
        f"{package_dir}/mock_mydisplay_test.go",
        f"{package_dir}/subpackage/mock_subdisplay.go",
    ]


def test_is_generated_detects_marker(tmp_path):
    generated = tmp_path / "a.go"
    _generated(generated)
    plain = tmp_path / "b.go"
    plain.write_text("package b\n")
    out = io.StringIO()
    assert is_generated(str(generated), out) is True
    assert is_generated(str(plain), out) is False
    assert out.getvalue() == ""


def test_is_generated_reports_empty_file(tmp_path):
    empty = tmp_path / "empty.go"
    empty.write_text("")
    out = io.StringIO()
    assert is_generated(str(empty), out) is False
    assert out.getvalue() == f"Could not read from file {empty}. Error: EOF\n"


def test_is_generated_reports_missing_file(tmp_path):
    out = io.StringIO()
    assert is_generated(str(tmp_path / "missing.go"), out) is False
    assert out.getvalue().startswith(f"Could not open file {tmp_path / 'missing.go'}. Error:")


def test_marker_only_within_header(tmp_path):
    late = tmp_path / "late.go"
    late.write_text("x" * 60 + GENERATED_MARKER)
    assert is_generated(str(late), io.StringIO()) is False


def test_find_ignores_non_go_files(tmp_path):
    (tmp_path / "notes.txt").write_text(GENERATED_MARKER)
    _generated(tmp_path / "mock_a.go")
    files, matchers = find_generated_files(False, str(tmp_path), io.StringIO())
    assert files == [os.path.join(str(tmp_path), "mock_a.go")]
    assert matchers == set()


def test_find_collects_matcher_dirs(tmp_path):
    _generated(tmp_path / "matchers" / "m.go")
    files, matchers = find_generated_files(True, str(tmp_path), io.StringIO())
    assert files == [os.path.join(str(tmp_path), "matchers", "m.go")]
    assert matchers == {os.path.join(str(tmp_path), "matchers")}


def test_find_recursive_missing_root(tmp_path):
    missing = str(tmp_path / "nope")
    with pytest.raises(OSError, match="Could not get files in path"):
        find_generated_files(True, missing, io.StringIO())


def test_remove_reports_missing_root(tmp_path):
    missing = str(tmp_path / "nope")
    out = io.StringIO()
    remove(missing, recursive=True, out=out)
    assert out.getvalue() == f"Could not get files in path {missing}\n"


def test_ask_for_confirmation_repeats_until_answered():
    out = io.StringIO()
    assert ask_for_confirmation("Continue?", io.StringIO("maybe\n  Y \n"), out) is True
    assert out.getvalue() == "Continue? [y/n]: Continue? [y/n]: "


def test_ask_for_confirmation_eof():
    out = io.StringIO()
    assert ask_for_confirmation("Go?", io.StringIO("yes"), out) is False
    assert out.getvalue() == "Go? [y/n]: Could not get confirmation from StdIn EOF\n"