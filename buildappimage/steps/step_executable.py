from __future__ import annotations

import logging
from pathlib import Path

from ..core.context import ExecutionContext
from ..core.errors import BuildError
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.paths import display_path
from ..utils.subproc import RunResult
from .appimage.common import chmod_x, run_checked


logger = logging.getLogger(__name__)


def appdir_bin(paths: BuildPaths) -> Path:
    return paths.appdir / "usr" / "bin"


def pyinstaller_args(ctx: ExecutionContext, paths: BuildPaths, identity: ProjectIdentity) -> list[str]:
    icon = identity.icon_path
    return [
        str(ctx.tool("pyinstaller")),
        "--noconfirm",
        "--clean",
        f"--name={identity.executable}",
        "--windowed",
        "--onefile",
        f"--add-data={icon}:data/icons",
        f"--add-data={identity.data_dir}:data",
        f"--add-data={identity.templates_path}:templates",
        f"--icon={icon}",
        # The frozen binary lands directly in AppDir/usr/bin.
        f"--distpath={appdir_bin(paths)}",
        f"--workpath={paths.work}",
        identity.entry_script,
    ]


def build_executable(ctx: ExecutionContext, paths: BuildPaths, identity: ProjectIdentity) -> RunResult:
    logger.info("Building executable with PyInstaller...")
    logger.warning("Note: 'Ignoring icon' warnings from PyInstaller are expected on Linux.")

    result = run_checked(
        pyinstaller_args(ctx, paths, identity),
        ctx=ctx,
        cwd=paths.root,
        error="PyInstaller build failed.",
    )

    # PyInstaller can exit 0 without producing the binary.
    final_executable = appdir_bin(paths) / identity.executable
    if not final_executable.is_file():
        raise BuildError(
            f"PyInstaller build failed or executable not found at: {display_path(final_executable, paths.root)}",
            result=result,
        )

    chmod_x(final_executable)
    logger.info("PyInstaller build successful. Executable at: %s", display_path(final_executable, paths.root))
    return result
