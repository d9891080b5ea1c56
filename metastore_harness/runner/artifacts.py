"""Removal of on-disk artifacts left behind by the embedded store."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

__all__ = ["delete_path"]

logger = logging.getLogger("metastore_harness.runner")


def delete_path(path: str | Path) -> bool:
    """Delete a file or directory tree; return ``False`` when nothing was there."""

    target = Path(path)
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)
    else:
        return False
    logger.debug("Deleted %s", target)
    return True
