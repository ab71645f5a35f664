import zipfile
from pathlib import Path

import pytest

from sadfiles.core import packager
from sadfiles.core.packager import build_final_package, choose_package_path


def _intermediates(output_dir: Path):
    log = output_dir / "20240101_000000_job.log"
    archive = output_dir / "20240101_000000_output.zip"
    log.write_text("log\n", encoding="utf-8")
    archive.write_bytes(b"PK-not-really")
    return log, archive


def test_naming_first_unused(tmp_path: Path) -> None:
    assert choose_package_path(tmp_path, "HOST") == (tmp_path / "HOST.zip", 0)
    (tmp_path / "HOST.zip").write_bytes(b"prior")
    assert choose_package_path(tmp_path, "HOST") == (tmp_path / "HOST_1.zip", 1)
    (tmp_path / "HOST_1.zip").write_bytes(b"prior")
    assert choose_package_path(tmp_path, "HOST") == (tmp_path / "HOST_2.zip", 2)


def test_package_never_overwrites_and_removes_intermediates(tmp_path: Path) -> None:
    prior = tmp_path / "HOST.zip"
    prior.write_bytes(b"previous responder evidence")
    log, archive = _intermediates(tmp_path)

    result = build_final_package(tmp_path, "HOST", [log, archive])

    assert result.ok
    assert result.value is not None
    assert result.value.path == tmp_path / "HOST_1.zip"
    assert result.value.suffix == 1
    assert prior.read_bytes() == b"previous responder evidence"
    with zipfile.ZipFile(result.value.path) as zf:
        assert sorted(zf.namelist()) == sorted([log.name, archive.name])
    assert not log.exists()
    assert not archive.exists()


def test_failed_packaging_keeps_intermediates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log, archive = _intermediates(tmp_path)

    def refuse(*args, **kwargs):
        raise PermissionError("destination is read-only")

    monkeypatch.setattr(packager.zipfile, "ZipFile", refuse)
    result = build_final_package(tmp_path, "HOST", [log, archive])

    assert not result.ok
    assert "HOST.zip" in result.reason
    assert log.exists()
    assert archive.exists()
    assert not (tmp_path / "HOST.zip").exists()


def test_interrupted_write_leaves_no_partial_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log, archive = _intermediates(tmp_path)

    def disk_full(self, *args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(zipfile.ZipFile, "write", disk_full)
    result = build_final_package(tmp_path, "HOST", [log, archive])

    assert not result.ok
    assert "No space left on device" in result.reason
    assert not list(tmp_path.glob("HOST*.zip"))
    assert log.exists()
    assert archive.exists()


def test_lost_name_race_keeps_prior_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    prior = tmp_path / "HOST.zip"
    prior.write_bytes(b"previous responder evidence")
    log, archive = _intermediates(tmp_path)
    monkeypatch.setattr(packager, "choose_package_path", lambda output_dir, base: (prior, 0))

    result = build_final_package(tmp_path, "HOST", [log, archive])

    assert not result.ok
    assert prior.read_bytes() == b"previous responder evidence"
    assert log.exists()
    assert archive.exists()


def test_undeletable_intermediate_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log, archive = _intermediates(tmp_path)
    real_unlink = Path.unlink

    def stubborn(self, *args, **kwargs):
        if self == log:
            raise PermissionError("file in use")
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", stubborn)
    result = build_final_package(tmp_path, "HOST", [log, archive])

    assert result.ok
    assert len(result.warnings) == 1
    assert log.name in result.warnings[0]
    assert log.exists()
    assert not archive.exists()
