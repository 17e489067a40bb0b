from __future__ import annotations

import logging
import shutil

from ..core.project import BuildPaths
from ..utils.subproc import RunResult, internal


logger = logging.getLogger(__name__)


def clean_intermediate(paths: BuildPaths) -> RunResult:
    """Remove PyInstaller's work directory and spec file; keep the AppDir and AppImage."""

    logger.info("Cleaning up intermediate build files...")
    removed: list[str] = []

    if paths.work.exists():
        shutil.rmtree(paths.work)
        removed.append(str(paths.work))

    if paths.spec_file.exists():
        paths.spec_file.unlink()
        removed.append(str(paths.spec_file))

    return internal("cleanup", [f"removed {p}" for p in removed] or ["nothing to remove"])
