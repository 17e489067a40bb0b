from __future__ import annotations

import os
from pathlib import Path


LOG_DIR_ENV = "BUILDAPPIMAGE_LOG_DIR"


def buildlog_dir(project_root: Path) -> Path:
    """Directory for per-step logs and the build summary.

    Priority:
    - BUILDAPPIMAGE_LOG_DIR
    - <project>/buildlog/buildappimage
    """

    p = os.environ.get(LOG_DIR_ENV)
    if p:
        return Path(p)
    return project_root / "buildlog" / "buildappimage"


def display_path(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)
