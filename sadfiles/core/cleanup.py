from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from sadfiles.core.models import WORKSPACE_NAME
from sadfiles.infra.logging_utils import LOGGER


def remove_staging(staging_dir: Path) -> Optional[str]:
    """Remove the staged archiving tool. Returns a warning message on failure."""
    if not staging_dir.exists():
        return None
    try:
        shutil.rmtree(staging_dir)
    except OSError as exc:
        LOGGER.warning("Tool cleanup failed", extra={"extra_data": {"path": str(staging_dir), "error": str(exc)}})
        return f"Could not remove {staging_dir}: {exc}"
    LOGGER.info("Tool staging removed", extra={"extra_data": {"path": str(staging_dir)}})
    return None


def remove_workspace(parent: Path) -> bool:
    """Delete ``<parent>/sadfiles`` after an engagement. Absent is not an error."""
    workspace = parent / WORKSPACE_NAME
    if not workspace.exists():
        return False
    shutil.rmtree(workspace)
    LOGGER.info("Workspace removed", extra={"extra_data": {"path": str(workspace)}})
    return True
