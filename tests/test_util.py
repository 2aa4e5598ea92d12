import os
import threading

import pytest

from ifacemock.util import (
    ArgumentError,
    find_module_root,
    package_path_from_dir_using_go_mod,
    package_path_from_dir_using_gopath,
    source_args,
    source_mode,
    ticker,
    validate_args,
    within_gopath,
    within_working_dir,
    write_file_if_changed,
)


def test_validate_args_rejects_empty():
    with pytest.raises(ArgumentError, match="You must specify"):
        validate_args([])


def test_validate_args_rejects_source_file_among_many():
    with pytest.raises(ArgumentError, match="at most one go source file"):
        validate_args(["mydisplay.go", "MyDisplay"])


@pytest.mark.parametrize(
    "args, expected",
    [(["mydisplay.go"], True), (["MyDisplay"], False), (["a.go", "b"], False)],
)
def test_source_mode(args, expected):
    assert source_mode(args) is expected


def test_source_args_passthrough():
    assert source_args(["mydisplay.go"]) == ["mydisplay.go"]
    assert source_args(["pegomocktest/subpackage", "SubDisplay"]) == [
        "pegomocktest/subpackage",
        "SubDisplay",
    ]


def test_source_args_too_many():
    with pytest.raises(ArgumentError, match="Please provide exactly 1 interface"):
        source_args(["with", "too", "many", "args"])


def _module(tmp_path):
    root = tmp_path / "pegomocktest"
    sub = root / "subpackage"
    sub.mkdir(parents=True)
    (root / "go.mod").write_text("module pegomocktest\n\ngo 1.12\n")
    return root, sub


def test_source_args_with_go_modules(tmp_path, monkeypatch):
    _, sub = _module(tmp_path)
    monkeypatch.setenv("GO111MODULE", "on")
    monkeypatch.chdir(sub)
    assert source_args(["SubDisplay"]) == [
        os.path.join("pegomocktest", "subpackage"),
        "SubDisplay",
    ]


def test_source_args_invalid_go111module(tmp_path, monkeypatch):
    monkeypatch.setenv("GO111MODULE", "sometimes")
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ArgumentError, match="Not a valid value for"):
        source_args(["MyDisplay"])


def test_go_mod_root_package(tmp_path):
    root, _ = _module(tmp_path)
    assert package_path_from_dir_using_go_mod(str(root)) == "pegomocktest"


def test_go_mod_without_module_line(tmp_path):
    (tmp_path / "go.mod").write_text("go 1.12\n")
    with pytest.raises(ArgumentError, match="Cannot parse"):
        package_path_from_dir_using_go_mod(str(tmp_path))


def test_find_module_root(tmp_path):
    root, sub = _module(tmp_path)
    assert find_module_root(str(sub)) == str(root)
    assert find_module_root(str(root)) == str(root)


def test_gopath_package_path(tmp_path, monkeypatch):
    monkeypatch.setenv("GOPATH", str(tmp_path))
    package_dir = tmp_path / "src" / "pegomocktest" / "subpackage"
    package_dir.mkdir(parents=True)
    assert package_path_from_dir_using_gopath(str(package_dir)) == os.path.join(
        "pegomocktest", "subpackage"
    )
    assert within_gopath(str(package_dir)) is True


def test_gopath_outside(tmp_path, monkeypatch):
    gopath = tmp_path / "gopath"
    gopath.mkdir()
    other = tmp_path / "elsewhere"
    other.mkdir()
    monkeypatch.setenv("GOPATH", str(gopath))
    assert within_gopath(str(other)) is False
    with pytest.raises(ArgumentError, match="not within a Go package path"):
        package_path_from_dir_using_gopath(str(other))


def test_within_working_dir_restores(tmp_path):
    original = os.getcwd()
    with within_working_dir(str(tmp_path)) as target:
        assert target == str(tmp_path)
        assert os.path.samefile(os.getcwd(), tmp_path)
    assert os.getcwd() == original


def test_within_working_dir_restores_on_error(tmp_path):
    original = os.getcwd()
    seen = []
    with pytest.raises(RuntimeError, match="fail"):
        with within_working_dir(str(tmp_path)) as target:
            seen.append(target)
            raise RuntimeError("fail")
    assert seen == [str(tmp_path)]
    assert os.getcwd() == original


def test_write_file_if_changed(tmp_path):
    target = tmp_path / "mock_display_test.go"
    assert write_file_if_changed(str(target), b"one") is True
    assert target.read_bytes() == b"one"
    assert write_file_if_changed(str(target), b"one") is False
    assert write_file_if_changed(str(target), b"two") is True
    assert target.read_bytes() == b"two"


def test_ticker_stops_when_done():
    done = threading.Event()
    calls = []

    def callback():
        calls.append(1)
        if len(calls) == 3:
            done.set()

    ticker(callback, 0, done)
    assert calls == [1, 1, 1]
    assert done.is_set()


def test_ticker_does_nothing_when_already_done():
    done = threading.Event()
    done.set()
    calls = []
    ticker(lambda: calls.append(1), 0, done)
    assert calls == []