from __future__ import annotations

import hashlib
import os
import shutil
import stat
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from sadfiles.core.models import FileRecord

CHUNK_SIZE = 1024 * 1024


@dataclass
class FileDigests:
    md5: str
    sha1: str
    sha256: str


def compute_digests(path: str) -> FileDigests:
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            md5.update(chunk)
            sha1.update(chunk)
            sha256.update(chunk)
    return FileDigests(md5=md5.hexdigest(), sha1=sha1.hexdigest(), sha256=sha256.hexdigest())


def creation_time(st: os.stat_result) -> datetime:
    # st_ctime is the inode change time on Linux; only BSD/macOS expose a birth time.
    birth = getattr(st, "st_birthtime", None)
    return datetime.fromtimestamp(birth if birth is not None else st.st_ctime).astimezone()


def build_file_record(path: str, with_hashes: bool = True) -> FileRecord:
    st = os.stat(path)
    digests: Optional[FileDigests] = compute_digests(path) if with_hashes else None
    return FileRecord(
        path=os.path.abspath(path),
        size=st.st_size,
        created=creation_time(st),
        modified=datetime.fromtimestamp(st.st_mtime).astimezone(),
        md5=digests.md5 if digests else None,
        sha1=digests.sha1 if digests else None,
        sha256=digests.sha256 if digests else None,
    )


def is_readable(path: Path) -> bool:
    return os.access(path, os.R_OK)


def unpack_tool_package(package: Path, destination: Path) -> list[Path]:
    """Unpack the archiving tool into ``destination``.

    A zip package is extracted as-is; anything else is treated as a bare
    executable and copied. Returns the staged file paths.
    """
    destination.mkdir(parents=True, exist_ok=True)
    if not zipfile.is_zipfile(package):
        staged = destination / package.name
        shutil.copy2(package, staged)
        return [staged]
    staged_files: list[Path] = []
    with zipfile.ZipFile(package) as zf:
        root = destination.resolve()
        for member in zf.infolist():
            target = (destination / member.filename).resolve()
            if root != target and root not in target.parents:
                continue
            zf.extract(member, destination)
            if not member.is_dir():
                staged_files.append(target)
    return staged_files


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
