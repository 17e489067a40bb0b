from __future__ import annotations

import os
import shutil
import stat
import urllib.request
from pathlib import Path

from ...core.context import ExecutionContext
from ...core.errors import BuildError
from ...utils.subproc import RunResult, run


def env_flag(name: str) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    return raw in {"1", "true", "yes", "y", "on"}


def download(url: str, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)

    with urllib.request.urlopen(url) as resp, dst.open("wb") as f:
        shutil.copyfileobj(resp, f)


def chmod_x(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def run_checked(args: list[str], *, ctx: ExecutionContext, cwd: Path, error: str) -> RunResult:
    """Run *args* inside the virtualenv context; raise BuildError(error) on failure."""

    result = run(args, cwd=str(cwd), env=ctx.environ())
    if result.exit_code != 0:
        raise BuildError(f"{error} (exit code {result.exit_code})", result=result)
    return result
