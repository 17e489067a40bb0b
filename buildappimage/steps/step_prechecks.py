from __future__ import annotations

import logging

from ..core.errors import BuildError
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.subproc import RunResult, internal


logger = logging.getLogger(__name__)


def precheck_runner(paths: BuildPaths, identity: ProjectIdentity) -> RunResult:
    root = paths.root
    lines: list[str] = [f"Project root: {root}"]

    if not (root / "pyproject.toml").is_file() or not (root / identity.package).is_dir():
        raise BuildError(
            "This tool must be run from the project root directory containing "
            f"'pyproject.toml' and the '{identity.package}/' directory."
        )

    icon = root / identity.icon_path
    if not icon.is_file():
        raise BuildError(f"Source icon file not found: {identity.icon_path}")
    lines.append(f"Icon: {identity.icon_path}")

    # The AppDir gets a generated desktop file, so the source one is optional.
    if not (root / identity.desktop_file_path).is_file():
        msg = f"Source desktop file not found: {identity.desktop_file_path} (Using generated one for AppDir)"
        logger.warning(msg)
        lines.append(msg)

    return internal("pre-checks", lines)
