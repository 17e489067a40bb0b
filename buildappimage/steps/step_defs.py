from __future__ import annotations

import logging
from pathlib import Path

from ..core.context import ExecutionContext
from ..core.errors import BuildError
from ..core.model import BuildConfig, BuildState, Step
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.subproc import RunResult
from .step_appdir import prepare_appdir
from .step_appimage import appimage_output, create_appimage
from .step_apprun import create_apprun
from .step_cleanup import clean_intermediate
from .step_dependencies import install_dependencies
from .step_executable import build_executable
from .step_prechecks import precheck_runner
from .step_venv import prepare_environment
from .step_version import read_project_version, update_version_files
from .appimage.tool import target_arch


logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return name.lower().replace(" ", "-")


def steps(
    config: BuildConfig,
    identity: ProjectIdentity,
    paths: BuildPaths,
    state: BuildState,
    *,
    log_dir: Path,
) -> list[Step]:
    def _ctx() -> ExecutionContext:
        if state.context is None:
            raise BuildError("Virtual environment has not been prepared.")
        return state.context

    def _version() -> str:
        if state.version is None:
            raise BuildError("Project version has not been read.")
        return state.version

    def precheck_step() -> RunResult:
        return precheck_runner(paths, identity)

    def version_update_step() -> RunResult:
        return update_version_files(paths.root, identity, config.version_update or "")

    def venv_step() -> RunResult:
        state.context, result = prepare_environment(paths)
        return result

    def dependencies_step() -> RunResult:
        return install_dependencies(_ctx(), paths, identity, with_optional=config.create_appimage)

    def read_version_step() -> RunResult:
        state.version, result = read_project_version(_ctx(), paths, identity)
        return result

    def appdir_step() -> RunResult:
        return prepare_appdir(paths, identity, _version())

    def pyinstaller_step() -> RunResult:
        return build_executable(_ctx(), paths, identity)

    def apprun_step() -> RunResult:
        return create_apprun(paths, identity)

    def appimage_step() -> RunResult:
        arch = target_arch()
        result = create_appimage(paths, identity, _version(), ctx=_ctx(), arch=arch)
        if result.exit_code != 0:
            logger.error("AppImage creation step failed. See errors above.")
        else:
            state.appimage = appimage_output(paths, identity, _version(), arch)
        return result

    def cleanup_step() -> RunResult:
        return clean_intermediate(paths)

    specs = [
        ("Pre-checks", "Check the project root, icon and desktop file", precheck_step, True, ""),
        (
            "Version Update",
            "Rewrite the version in the package __init__ and pyproject.toml",
            version_update_step,
            config.version_update is not None,
            "",
        ),
        ("Virtualenv", "Create or reuse the build virtualenv", venv_step, True, ""),
        ("Dependencies", "Install build tools and project dependencies", dependencies_step, True, ""),
        ("Project Version", "Read the installed package version", read_version_step, True, ""),
        ("AppDir", "Assemble the AppDir layout, desktop file and icons", appdir_step, True, ""),
        ("PyInstaller", "Freeze the application into a single-file executable", pyinstaller_step, True, ""),
        ("AppRun", "Write the AppRun launcher script", apprun_step, True, ""),
        (
            "AppImage",
            "Pack the AppDir with appimagetool",
            appimage_step,
            config.create_appimage,
            "Skipping AppImage creation. Use --appimage flag to create one.",
        ),
        ("Cleanup", "Remove PyInstaller work files", cleanup_step, True, ""),
    ]

    all_steps = [
        Step(
            number=i,
            name=name,
            description=description,
            log_file=log_dir / f"step-{i:02d}-{_slug(name)}.log",
            runner=runner,
            enabled=enabled,
            skip_reason=skip_reason,
        )
        for i, (name, description, runner, enabled, skip_reason) in enumerate(specs, start=1)
    ]

    if config.version_only:
        # Pre-checks and the version update only.
        return all_steps[:2]
    return all_steps
