from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Generic, List, Optional, Tuple, TypeVar

DEFAULT_PASSWORD = "infected"
DEFAULT_TOOL_PACKAGE = "7za920.zip"
WORKSPACE_NAME = "sadfiles"
STAMP_FORMAT = "%Y%m%d_%H%M%S"

T = TypeVar("T")


@dataclass(frozen=True)
class AcquisitionJob:
    target: Path
    output_root: Path
    started_at: datetime
    password: str = DEFAULT_PASSWORD
    case_number: Optional[str] = None
    password_hint: Optional[str] = None
    no_hash: bool = False
    keep_tools: bool = False
    tool_package: Optional[Path] = None
    debug: bool = False

    @classmethod
    def create(
        cls,
        target: str | Path,
        output_root: str | Path,
        password: Optional[str] = None,
        **options: Any,
    ) -> "AcquisitionJob":
        tool_package = options.pop("tool_package", None)
        return cls(
            target=Path(os.path.abspath(target)),
            output_root=Path(os.path.abspath(output_root)),
            started_at=options.pop("started_at", None) or datetime.now().astimezone(),
            password=password or DEFAULT_PASSWORD,
            tool_package=Path(os.path.abspath(tool_package)) if tool_package else None,
            **options,
        )

    @property
    def stamp(self) -> str:
        return self.started_at.strftime(STAMP_FORMAT)

    @property
    def uses_default_password(self) -> bool:
        return self.password == DEFAULT_PASSWORD

    @property
    def workspace(self) -> Path:
        return self.output_root / WORKSPACE_NAME

    @property
    def staging_dir(self) -> Path:
        return self.workspace / "7Z"

    @property
    def output_dir(self) -> Path:
        return self.workspace / "Output"

    @property
    def readme_path(self) -> Path:
        return self.workspace / "Readme.txt"

    @property
    def error_log_path(self) -> Path:
        return self.workspace / "error.log"

    @property
    def job_log_path(self) -> Path:
        return self.output_dir / f"{self.stamp}_job.log"

    def archive_path(self, extension: str) -> Path:
        return self.output_dir / f"{self.stamp}_output{extension}"


@dataclass(frozen=True)
class FileRecord:
    path: str
    size: int
    created: datetime
    modified: datetime
    md5: Optional[str] = None
    sha1: Optional[str] = None
    sha256: Optional[str] = None

    @property
    def hashed(self) -> bool:
        return self.sha256 is not None


@dataclass
class OutputArchive:
    path: Path
    password: str = field(repr=False)
    created: bool = False


@dataclass(frozen=True)
class FinalPackage:
    path: Path
    base_name: str
    suffix: int = 0


@dataclass(frozen=True)
class StageResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    reason: str = ""
    warnings: Tuple[str, ...] = ()

    @classmethod
    def success(cls, value: Optional[T] = None, warnings: Tuple[str, ...] = ()) -> "StageResult[T]":
        return cls(ok=True, value=value, warnings=warnings)

    @classmethod
    def failure(cls, reason: str) -> "StageResult[T]":
        return cls(ok=False, reason=reason)


@dataclass
class AcquisitionOutcome:
    exit_code: int
    file_count: int = 0
    archive: Optional[OutputArchive] = None
    package: Optional[FinalPackage] = None
    reason: str = ""
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
