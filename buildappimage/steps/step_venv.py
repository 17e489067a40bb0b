from __future__ import annotations

import logging
from pathlib import Path

from ..core.context import ExecutionContext
from ..core.errors import BuildError
from ..core.project import BuildPaths
from ..utils.paths import display_path
from ..utils.subproc import RunResult, internal, merge_results, python_exe, run


logger = logging.getLogger(__name__)


def ensure_venv(paths: BuildPaths) -> RunResult:
    rel = display_path(paths.venv, paths.root)
    if paths.venv.is_dir():
        logger.info("Reusing virtual environment at '%s'", rel)
        return internal("reuse virtualenv", [f"Reused {paths.venv}"])

    logger.info("Virtual environment not found. Creating one at '%s'...", rel)
    result = run([python_exe(), "-m", "venv", str(paths.venv)], cwd=str(paths.root))
    if result.exit_code != 0:
        raise BuildError("Failed to create virtual environment.", result=result)
    return result


def activate(paths: BuildPaths) -> ExecutionContext:
    """Build the execution context for the virtualenv and verify it resolves ``python``."""

    logger.info("Activating virtual environment...")
    ctx = ExecutionContext.for_venv(paths.venv)

    logger.info("Checking Python environment...")
    found = ctx.which("python")
    if found is None or Path(found) != ctx.python:
        logger.error("Expected: %s", ctx.python)
        logger.error("Found: %s", found)
        raise BuildError("Virtual environment activation failed or Python path mismatch.")
    return ctx


def prepare_environment(paths: BuildPaths) -> tuple[ExecutionContext, RunResult]:
    created = ensure_venv(paths)
    ctx = activate(paths)

    probe = run([str(ctx.python), "--version"], cwd=str(paths.root), env=ctx.environ())
    if probe.exit_code != 0:
        raise BuildError("Virtualenv python does not run.", result=probe)

    # Python < 3.4 printed the version on stderr.
    version_text = (probe.stdout or probe.stderr).strip()
    logger.info("Using Python from: %s at %s", version_text, ctx.python)

    return ctx, merge_results([created, probe])
