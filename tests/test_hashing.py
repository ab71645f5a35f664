import os
from pathlib import Path

from sadfiles.infra.filesystem import build_file_record, compute_digests


def test_compute_digests_known_values(tmp_path: Path) -> None:
    file_path = tmp_path / "abc.bin"
    file_path.write_bytes(b"abc")
    digests = compute_digests(str(file_path))
    assert digests.md5 == "900150983cd24fb0d6963f7d28e17f72"
    assert digests.sha1 == "a9993e364706816aba3e25717850c26c9cd0d89d"
    assert digests.sha256 == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_hashing_is_deterministic(tmp_path: Path) -> None:
    first = tmp_path / "one.bin"
    second = tmp_path / "two.bin"
    first.write_bytes(b"sadfiles" * 1000)
    second.write_bytes(b"sadfiles" * 1000)
    assert compute_digests(str(first)) == compute_digests(str(first))
    assert compute_digests(str(first)) == compute_digests(str(second))


def test_build_file_record(tmp_path: Path) -> None:
    file_path = tmp_path / "data.bin"
    file_path.write_bytes(b"0123456789")
    record = build_file_record(str(file_path))
    assert record.path == os.path.abspath(file_path)
    assert record.size == 10
    assert record.hashed
    assert len(record.md5 or "") == 32
    assert len(record.sha1 or "") == 40
    assert len(record.sha256 or "") == 64

    bare = build_file_record(str(file_path), with_hashes=False)
    assert not bare.hashed
    assert bare.size == 10
