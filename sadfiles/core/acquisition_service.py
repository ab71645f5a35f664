from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import List, Optional

from sadfiles import __app_name__, __version__
from sadfiles.core.cleanup import remove_staging
from sadfiles.core.enumerator import enumerate_target
from sadfiles.core.errors import PreconditionError, SadfilesError
from sadfiles.core.models import AcquisitionJob, AcquisitionOutcome, OutputArchive, StageResult
from sadfiles.core.packager import build_final_package, host_identifier
from sadfiles.infra.archiver import Archiver
from sadfiles.infra.filesystem import build_file_record, is_readable, unpack_tool_package
from sadfiles.infra.job_log import JobLog
from sadfiles.infra.logging_utils import LOGGER, attach_error_log, detach_handler


class AcquisitionService:
    """Runs one acquisition: resolve, enumerate, hash, archive, package, clean up.

    Each stage returns a ``StageResult``; the first failure stops the run.
    Side effects of completed stages stay on disk for review.
    """

    def __init__(self, archiver: Archiver, host: Optional[str] = None) -> None:
        self.archiver = archiver
        self.host = host or host_identifier()

    def run(self, job: AcquisitionJob) -> AcquisitionOutcome:
        error_handler = attach_error_log(job.error_log_path) if job.debug else None
        job_log = JobLog(job.job_log_path)
        try:
            return self._run(job, job_log)
        except Exception as exc:
            LOGGER.exception("Unhandled acquisition error", extra={"extra_data": {"target": str(job.target)}})
            self._best_effort(job_log, f"Unhandled error: {exc}")
            return AcquisitionOutcome(exit_code=1, reason=str(exc))
        finally:
            if error_handler is not None:
                detach_handler(error_handler)

    def _run(self, job: AcquisitionJob, job_log: JobLog) -> AcquisitionOutcome:
        resolved = self.resolve(job)
        if not resolved.ok:
            self._best_effort(job_log, resolved.reason)
            return self._fail(resolved.reason)

        job_log.write_header(job, __app_name__, __version__, self.host)
        LOGGER.info(
            "Acquisition started",
            extra={"extra_data": {"target": str(job.target), "case": job.case_number, "archiver": self.archiver.name}},
        )

        if self.archiver.requires_package and job.tool_package is not None:
            staged = self.stage_tool(job, job.tool_package)
            if not staged.ok:
                return self._abort(job_log, staged.reason)
            job_log.info(f"Archiving tool staged in {job.staging_dir}")

        logged = self.log_files(job, job_log)
        if not logged.ok:
            return self._abort(job_log, logged.reason)
        file_count = logged.value or 0

        archived = self.archive(job, job_log)
        archive = archived.value
        if not archived.ok or archive is None:
            return self._abort(job_log, archived.reason, file_count=file_count)

        outcome = AcquisitionOutcome(exit_code=0, file_count=file_count, archive=archive)
        if not job.keep_tools:
            warning = remove_staging(job.staging_dir)
            if warning:
                outcome.warnings.append(warning)
                job_log.warning(warning)
            else:
                job_log.info("Archiving tool removed from host")

        job_log.info("Acquisition completed successfully")
        packaged = build_final_package(job.output_dir, self.host, [job.job_log_path, archive.path])
        if packaged.ok:
            outcome.package = packaged.value
            outcome.warnings.extend(packaged.warnings)
        else:
            outcome.warnings.append(packaged.reason)
            self._best_effort(job_log, packaged.reason, level="warning")
        LOGGER.info(
            "Acquisition finished",
            extra={
                "extra_data": {
                    "files": file_count,
                    "package": str(outcome.package.path) if outcome.package else None,
                    "warnings": len(outcome.warnings),
                }
            },
        )
        return outcome

    def resolve(self, job: AcquisitionJob) -> StageResult[Path]:
        try:
            if workspace_inside(job.target, job.workspace):
                raise PreconditionError(f"Output directory {job.workspace} lies inside the target {job.target}")
            job.output_dir.mkdir(parents=True, exist_ok=True)
            if self.archiver.requires_package:
                if job.tool_package is None or not job.tool_package.exists():
                    raise PreconditionError(f"Archiving tool package not found: {job.tool_package}")
            if not job.target.exists():
                raise PreconditionError(f"Target not found: {job.target}")
            if not is_readable(job.target):
                raise PreconditionError(f"Target is not readable: {job.target}")
        except (PreconditionError, OSError) as exc:
            return StageResult.failure(str(exc))
        return StageResult.success(job.target)

    def stage_tool(self, job: AcquisitionJob, package: Path) -> StageResult[Path]:
        try:
            staged_files = unpack_tool_package(package, job.staging_dir)
            for path in staged_files:
                if path.name.lower() == "readme.txt":
                    shutil.copy2(path, job.readme_path)
                    break
            self.archiver.prepare(job.staging_dir)
        except (SadfilesError, OSError) as exc:
            return StageResult.failure(f"Could not stage archiving tool: {exc}")
        return StageResult.success(job.staging_dir)

    def log_files(self, job: AcquisitionJob, job_log: JobLog) -> StageResult[int]:
        job_log.info(f"Enumerating {job.target}")
        try:
            files = enumerate_target(job.target)
            for path in files:
                if job.no_hash:
                    job_log.record_path(path)
                else:
                    job_log.record_file(build_file_record(path))
        except OSError as exc:
            return StageResult.failure(f"Could not record {getattr(exc, 'filename', None) or job.target}: {exc}")
        job_log.write_summary(len(files))
        return StageResult.success(len(files))

    def archive(self, job: AcquisitionJob, job_log: JobLog) -> StageResult[OutputArchive]:
        archive = OutputArchive(path=job.archive_path(self.archiver.extension), password=job.password)
        job_log.info(f"Creating password-protected archive {archive.path}")
        try:
            created = self.archiver.create(job.target, archive.path, job.password)
        except (SadfilesError, OSError) as exc:
            return StageResult.failure(f"Archiver {self.archiver.name} failed: {exc}")
        if not created:
            return StageResult.failure(f"Archiver {self.archiver.name} reported failure for {archive.path}")
        archive.created = True
        job_log.info(f"Archive created: {archive.path}")
        try:
            if job.no_hash:
                job_log.record_path(str(archive.path))
            else:
                job_log.record_file(build_file_record(str(archive.path)))
        except OSError as exc:
            return StageResult.failure(f"Could not record archive {archive.path}: {exc}")
        return StageResult.success(archive)

    def _abort(self, job_log: JobLog, reason: str, file_count: int = 0) -> AcquisitionOutcome:
        self._best_effort(job_log, reason)
        job_log.error("Acquisition failed")
        outcome = self._fail(reason)
        outcome.file_count = file_count
        return outcome

    def _fail(self, reason: str) -> AcquisitionOutcome:
        LOGGER.error("Acquisition failed", extra={"extra_data": {"reason": reason}})
        return AcquisitionOutcome(exit_code=1, reason=reason)

    @staticmethod
    def _best_effort(job_log: JobLog, message: str, level: str = "error") -> None:
        try:
            job_log.status(level, message)
        except OSError:
            pass


def workspace_inside(target: Path, workspace: Path) -> bool:
    """True when acquiring ``target`` would sweep up the run's own workspace."""
    target_real = Path(os.path.realpath(target))
    workspace_real = Path(os.path.realpath(workspace))
    return target_real == workspace_real or target_real in workspace_real.parents


def describe(outcome: AcquisitionOutcome) -> List[str]:
    lines = [f"Files acquired: {outcome.file_count}"]
    if outcome.package:
        lines.append(f"Package: {outcome.package.path}")
    elif outcome.archive:
        lines.append(f"Archive: {outcome.archive.path}")
    lines.extend(f"Warning: {w}" for w in outcome.warnings)
    if outcome.reason:
        lines.append(f"Failed: {outcome.reason}")
    return lines
