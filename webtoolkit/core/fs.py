"""
Filesystem helpers shared by services.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DIR_MODE = 0o755


def ensure_dir(path: str | Path) -> Path:
    """
    Create the directory (and missing parents) if absent. Idempotent.

    Raises:
        FileExistsError: If the path exists but is not a directory.
        OSError: If the directory cannot be created.
    """
    target = Path(path)
    if not target.is_dir():
        target.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        logger.info("[fs:ensure_dir] created %s", target)
    return target
