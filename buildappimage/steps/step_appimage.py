from __future__ import annotations

import logging
from pathlib import Path

from ..core.context import ExecutionContext
from ..core.errors import ToolAcquisitionError
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.paths import display_path
from ..utils.subproc import RunResult, run
from .appimage.common import chmod_x
from .appimage.tool import obtain_appimagetool, target_arch


logger = logging.getLogger(__name__)


def appimage_output(paths: BuildPaths, identity: ProjectIdentity, version: str, arch: str) -> Path:
    return paths.root / f"{identity.executable}-{version}-{arch}.AppImage"


def create_appimage(
    paths: BuildPaths,
    identity: ProjectIdentity,
    version: str,
    *,
    ctx: ExecutionContext | None,
    arch: str | None = None,
) -> RunResult:
    """Pack the AppDir with appimagetool.

    Returns a failing result instead of raising so the pipeline decides how
    fatal a packaging failure is.
    """

    arch = arch or target_arch()
    logger.info("Attempting to create AppImage...")

    try:
        tool = obtain_appimagetool(ctx, arch=arch)
    except ToolAcquisitionError as exc:
        logger.error("%s", exc)
        logger.error("Cannot proceed without appimagetool.")
        return RunResult(command_str="(internal) obtain appimagetool", stdout="", stderr=f"{exc}\n", exit_code=1)

    output = appimage_output(paths, identity, version, arch)
    logger.info(
        "Generating AppImage from '%s' -> '%s'",
        display_path(paths.appdir, paths.root),
        output.name,
    )

    env = ctx.environ() if ctx is not None else None
    with tool:
        result = run(
            [str(tool.path), str(paths.appdir), str(output)],
            cwd=str(paths.root),
            env=env,
            # Extract-and-run lets the tool work where FUSE is unavailable.
            env_overrides={"ARCH": arch, "APPIMAGE_EXTRACT_AND_RUN": "1"},
            merge_stderr=True,
        )

    if result.exit_code != 0:
        logger.error("AppImage creation failed using '%s'.", tool.path)
        logger.error("appimagetool output: %s", (result.stdout + result.stderr).strip())
        return result

    if not output.is_file():
        logger.error("appimagetool reported success but did not produce: %s", output)
        return RunResult(
            command_str=result.command_str,
            stdout=result.stdout,
            stderr=f"missing output: {output}\n",
            exit_code=1,
        )

    chmod_x(output)
    logger.info("AppImage created successfully: %s", output.name)
    return result
