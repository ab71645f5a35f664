from __future__ import annotations

import os
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Type

import py7zr
from py7zr.exceptions import ArchiveError

from sadfiles.core.errors import ArchiverError
from sadfiles.infra.filesystem import make_executable
from sadfiles.infra.logging_utils import LOGGER

SEVEN_ZIP_NAMES = ("7za.exe", "7za", "7z.exe", "7z")
REDACTED = "********"


def redact(text: str, secret: str) -> str:
    if not secret:
        return text
    return text.replace(secret, REDACTED)


class Archiver(ABC):
    """Creates a password-protected archive of a file or directory tree."""

    name: str
    extension: str
    requires_package: bool = False

    def prepare(self, staging_dir: Path) -> None:
        """Locate whatever the backend needs inside the staging directory."""

    @abstractmethod
    def create(self, target: Path, output: Path, password: str) -> bool:
        raise NotImplementedError


class SevenZipCliArchiver(Archiver):
    name = "7za"
    extension = ".zip"
    requires_package = True

    def __init__(self, executable: Optional[Path] = None) -> None:
        self.executable = executable

    def prepare(self, staging_dir: Path) -> None:
        if self.executable is None:
            self.executable = find_seven_zip(staging_dir)
        if self.executable is None:
            raise ArchiverError(f"No 7-Zip executable found in {staging_dir}")
        if sys.platform != "win32":
            make_executable(self.executable)

    def build_command(self, target: Path, output: Path, password: str) -> List[str]:
        return [
            str(self.executable),
            "a",
            "-tzip",
            "-mem=AES256",
            f"-p{password}",
            "-y",
            str(output),
            str(target),
        ]

    def create(self, target: Path, output: Path, password: str) -> bool:
        if self.executable is None:
            raise ArchiverError("7-Zip executable has not been prepared")
        # "a" appends to an existing archive, so a stale file must go first.
        if output.exists():
            output.unlink()
        command = self.build_command(target, output, password)
        try:
            completed = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise ArchiverError(f"Unable to run {self.executable}: {exc}") from exc
        combined_output = "\n".join(
            part.strip() for part in (completed.stdout, completed.stderr) if part and part.strip()
        )
        LOGGER.info(
            "7-Zip finished",
            extra={
                "extra_data": {
                    "returncode": completed.returncode,
                    "command": [f"-p{REDACTED}" if part == f"-p{password}" else part for part in command],
                    "output": redact(combined_output, password)[-2000:],
                }
            },
        )
        return completed.returncode == 0 and output.exists()


class Py7zrArchiver(Archiver):
    name = "py7zr"
    extension = ".7z"

    def create(self, target: Path, output: Path, password: str) -> bool:
        if output.exists():
            output.unlink()
        arcname = target.name or str(target)
        try:
            with py7zr.SevenZipFile(output, "w", password=password, header_encryption=True) as archive:
                archive.writeall(target, arcname=arcname)
        except ArchiveError as exc:
            raise ArchiverError(f"py7zr could not write {output}: {exc}") from exc
        return output.exists()


def find_seven_zip(staging_dir: Path) -> Optional[Path]:
    names = SEVEN_ZIP_NAMES if sys.platform == "win32" else SEVEN_ZIP_NAMES[1::2] + SEVEN_ZIP_NAMES[0::2]
    for root, _dirs, files in os.walk(staging_dir):
        for name in names:
            if name in files:
                return Path(root) / name
    return None


ARCHIVERS: Dict[str, Type[Archiver]] = {
    SevenZipCliArchiver.name: SevenZipCliArchiver,
    Py7zrArchiver.name: Py7zrArchiver,
}


def get_archiver(name: str) -> Archiver:
    try:
        return ARCHIVERS[name]()
    except KeyError:
        raise ArchiverError(f"Unknown archiver '{name}'") from None
