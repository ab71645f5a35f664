import os
from pathlib import Path

import pytest

from sadfiles.core.enumerator import enumerate_target, iter_target_files


def test_single_file(tmp_path: Path) -> None:
    target = tmp_path / "evil.exe"
    target.write_bytes(b"MZ")
    assert enumerate_target(target) == [os.path.abspath(target)]


def test_directory_is_walked_recursively(tmp_path: Path) -> None:
    root = tmp_path / "payload"
    (root / "a" / "b").mkdir(parents=True)
    (root / "top.txt").write_text("1")
    (root / "a" / "mid.txt").write_text("2")
    (root / "a" / "b" / "deep.txt").write_text("3")
    files = enumerate_target(root)
    assert len(files) == 3
    assert sorted(os.path.basename(f) for f in files) == ["deep.txt", "mid.txt", "top.txt"]
    assert all(os.path.isabs(f) for f in files)


def test_empty_directory(tmp_path: Path) -> None:
    root = tmp_path / "empty"
    root.mkdir()
    assert enumerate_target(root) == []


def test_iterator_is_lazy(tmp_path: Path) -> None:
    (tmp_path / "x.txt").write_text("x")
    iterator = iter_target_files(tmp_path)
    assert next(iterator).endswith("x.txt")


@pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks unavailable")
def test_symlink_loop_does_not_recurse(tmp_path: Path) -> None:
    root = tmp_path / "loop"
    (root / "inner").mkdir(parents=True)
    (root / "inner" / "real.txt").write_text("real")
    os.symlink(root, root / "inner" / "back", target_is_directory=True)
    os.symlink(root / "inner" / "real.txt", root / "link.txt")
    files = enumerate_target(root)
    assert [os.path.basename(f) for f in files] == ["real.txt"]
