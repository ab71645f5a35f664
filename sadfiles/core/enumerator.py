from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List


def _raise(exc: OSError) -> None:
    raise exc


def iter_target_files(target: Path) -> Iterator[str]:
    """Yield every regular file under ``target`` in directory-walk order.

    Symlinked directories are not descended into and symlinks are never
    yielded, so link cycles cannot loop.
    """
    if not target.is_dir():
        yield os.path.abspath(target)
        return
    for root, _dirs, files in os.walk(target, onerror=_raise, followlinks=False):
        for name in files:
            path = os.path.join(root, name)
            if os.path.islink(path) or not os.path.isfile(path):
                continue
            yield os.path.abspath(path)


def enumerate_target(target: Path) -> List[str]:
    return list(iter_target_files(target))
