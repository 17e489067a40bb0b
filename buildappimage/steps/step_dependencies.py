from __future__ import annotations

import logging

from ..core.context import ExecutionContext
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.subproc import RunResult, merge_results
from .appimage.common import run_checked


logger = logging.getLogger(__name__)

BUILD_TOOLS = ("pip", "build", "setuptools", "wheel", "pyinstaller")


def install_dependencies(
    ctx: ExecutionContext,
    paths: BuildPaths,
    identity: ProjectIdentity,
    *,
    with_optional: bool,
) -> RunResult:
    py = str(ctx.python)
    results: list[RunResult] = []

    logger.info("Upgrading pip and installing build tools...")
    results.append(
        run_checked(
            [py, "-m", "pip", "install", "--upgrade", *BUILD_TOOLS],
            ctx=ctx,
            cwd=paths.root,
            error="Failed installing build tools.",
        )
    )

    logger.info("Installing project core dependencies...")
    results.append(
        run_checked(
            [py, "-m", "pip", "install", "."],
            ctx=ctx,
            cwd=paths.root,
            error="Failed installing core dependencies.",
        )
    )

    if with_optional:
        group = identity.optional_group
        logger.info("Installing optional dependencies for AppImage build ([%s])...", group)
        results.append(
            run_checked(
                [py, "-m", "pip", "install", f".[{group}]"],
                ctx=ctx,
                cwd=paths.root,
                error="Failed installing optional dependencies.",
            )
        )

    return merge_results(results)
