"""Plain-text, append-only job log.

Every write opens the log in append mode and flushes it to disk before
returning, so whatever was recorded survives a crash in a later stage.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sadfiles.core.models import AcquisitionJob, FileRecord

RULE = "=" * 64
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utc_offset(dt: datetime) -> str:
    offset = dt.utcoffset()
    if offset is None:
        return "UTC+00:00"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"UTC{sign}{hours:02d}:{minutes:02d}"


def format_header(job: AcquisitionJob, app_name: str, version: str, host: str) -> list[str]:
    local = job.started_at
    utc = local.astimezone(timezone.utc)
    lines = [
        RULE,
        f"{app_name} {version} - suspicious file acquisition",
        RULE,
        f"Host: {host}",
        f"Local time: {local.strftime(TIME_FORMAT)}",
        f"UTC time: {utc.strftime(TIME_FORMAT)}",
        f"Time zone: {local.tzname() or 'unknown'} ({_utc_offset(local)})",
    ]
    if job.case_number:
        lines.append(f"Case number: {job.case_number}")
    if job.password_hint:
        lines.append(f"Password hint: {job.password_hint}")
    lines.append(f"Archive password: {'default' if job.uses_default_password else 'user supplied'}")
    lines.append(f"Target: {job.target}")
    lines.append(RULE)
    lines.append("")
    return lines


def format_record(record: FileRecord) -> list[str]:
    if not record.hashed:
        return [record.path]
    return [
        f"===== {record.path} =====",
        f"Size: {record.size} bytes",
        f"Created: {record.created.strftime(TIME_FORMAT)}",
        f"Modified: {record.modified.strftime(TIME_FORMAT)}",
        f"MD5: {record.md5}",
        f"SHA1: {record.sha1}",
        f"SHA256: {record.sha256}",
        "===== end =====",
        "",
    ]


class JobLog:
    def __init__(self, path: Path) -> None:
        self.path = path

    def write_lines(self, lines: Iterable[str]) -> None:
        text = "".join(f"{line}\n" for line in lines)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

    def write_header(self, job: AcquisitionJob, app_name: str, version: str, host: str) -> None:
        self.write_lines(format_header(job, app_name, version, host))

    def record_file(self, record: FileRecord) -> None:
        self.write_lines(format_record(record))

    def record_path(self, path: str) -> None:
        self.write_lines([path])

    def write_summary(self, count: int) -> None:
        self.write_lines(["", f"Files enumerated: {count}", ""])

    def status(self, level: str, message: str) -> None:
        stamp = datetime.now().strftime(TIME_FORMAT)
        self.write_lines([f"{stamp} [{level.upper()}] {message}"])

    def info(self, message: str) -> None:
        self.status("info", message)

    def warning(self, message: str) -> None:
        self.status("warning", message)

    def error(self, message: str) -> None:
        self.status("error", message)

    def read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8").splitlines()
