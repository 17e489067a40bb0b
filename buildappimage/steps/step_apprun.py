from __future__ import annotations

import logging
from pathlib import Path

from ..core.project import BuildPaths, ProjectIdentity
from ..utils.paths import display_path
from ..utils.subproc import RunResult, internal
from .appimage.common import chmod_x, write_text


logger = logging.getLogger(__name__)


def render_apprun(identity: ProjectIdentity) -> str:
    return "\n".join(
        [
            "#!/bin/bash",
            f"# AppRun script for {identity.display_name}",
            'HERE="$(dirname "$(readlink -f "${0}")")"',
            'export PATH="${HERE}/usr/bin:${PATH}"',
            'export LD_LIBRARY_PATH="${HERE}/usr/lib${LD_LIBRARY_PATH:+:${LD_LIBRARY_PATH}}"',
            'export XDG_DATA_DIRS="${HERE}/usr/share:${XDG_DATA_DIRS:-/usr/local/share:/usr/share}"',
            f'exec "${{HERE}}/usr/bin/{identity.executable}" "$@"',
            "",
        ]
    )


def create_apprun(paths: BuildPaths, identity: ProjectIdentity) -> RunResult:
    apprun: Path = paths.appdir / "AppRun"

    logger.info("Creating AppRun script at: %s", display_path(apprun, paths.root))
    write_text(apprun, render_apprun(identity))
    chmod_x(apprun)
    logger.info("AppRun script created and made executable.")

    return internal("create AppRun", [str(apprun)])
