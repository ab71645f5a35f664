from __future__ import annotations

import socket
import zipfile
from pathlib import Path
from typing import List, Sequence, Tuple

from sadfiles.core.models import FinalPackage, StageResult
from sadfiles.infra.logging_utils import LOGGER


def host_identifier() -> str:
    name = socket.gethostname().split(".")[0]
    return name or "localhost"


def choose_package_path(output_dir: Path, base: str) -> Tuple[Path, int]:
    candidate = output_dir / f"{base}.zip"
    suffix = 0
    while candidate.exists():
        suffix += 1
        candidate = output_dir / f"{base}_{suffix}.zip"
    return candidate, suffix


def build_final_package(output_dir: Path, base: str, members: Sequence[Path]) -> StageResult[FinalPackage]:
    """Zip ``members`` into ``<base>[_N].zip`` and delete them once it exists.

    The package is opened in exclusive-create mode so an existing file is never
    replaced. If no package materialises the members are left untouched.
    """
    path, suffix = choose_package_path(output_dir, base)
    opened = False
    try:
        with zipfile.ZipFile(path, "x", compression=zipfile.ZIP_DEFLATED) as zf:
            opened = True
            for member in members:
                zf.write(member, arcname=member.name)
    except (OSError, zipfile.BadZipFile) as exc:
        # Only a file this call created exclusively may be discarded.
        if opened:
            _discard(path)
        LOGGER.warning("Final package not created", extra={"extra_data": {"path": str(path), "error": str(exc)}})
        return StageResult.failure(f"Final package {path} was not created: {exc}")
    if not path.exists():
        return StageResult.failure(f"Final package {path} is missing after packaging")
    warnings: List[str] = []
    for member in members:
        try:
            member.unlink()
        except OSError as exc:
            LOGGER.warning("Intermediate not removed", extra={"extra_data": {"path": str(member), "error": str(exc)}})
            warnings.append(f"Intermediate {member} was packaged but not removed: {exc}")
    package = FinalPackage(path=path, base_name=base, suffix=suffix)
    LOGGER.info("Final package created", extra={"extra_data": {"path": str(path), "members": [m.name for m in members]}})
    return StageResult.success(package, warnings=tuple(warnings))


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        LOGGER.warning("Partial package not removed", extra={"extra_data": {"path": str(path), "error": str(exc)}})
