from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from typing import Iterable, Mapping


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    command_str: str
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def command_string(args: Iterable[object]) -> str:
    return " ".join(shlex.quote(str(p)) for p in args)


def internal(name: str, lines: Iterable[str] = (), *, exit_code: int = 0) -> RunResult:
    """Result record for a step that does its work in-process."""

    text = "\n".join(lines)
    return RunResult(
        command_str=f"(internal) {name}",
        stdout=(text + "\n") if text else "",
        stderr="",
        exit_code=exit_code,
    )


def merge_results(results: list[RunResult]) -> RunResult:
    if not results:
        return internal("no-op")
    if len(results) == 1:
        return results[0]

    exit_code = next((r.exit_code for r in results if r.exit_code != 0), 0)
    return RunResult(
        command_str=" && ".join(r.command_str for r in results),
        stdout="".join(r.stdout for r in results),
        stderr="".join(r.stderr for r in results),
        exit_code=exit_code,
    )


def run(
    args: list[str],
    *,
    cwd: str,
    env: Mapping[str, str] | None = None,
    env_overrides: Mapping[str, str] | None = None,
    merge_stderr: bool = False,
) -> RunResult:
    command_str = command_string(args)
    base = dict(env) if env is not None else dict(os.environ)
    full_env = {**base, **(env_overrides or {})}

    logger.debug("+ %s", command_str)

    try:
        proc = subprocess.run(
            args,
            cwd=cwd,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            env=full_env,
        )
    except FileNotFoundError as exc:
        return RunResult(
            command_str=command_str,
            stdout="",
            stderr=f"{exc.filename or args[0]}: command not found\n",
            exit_code=127,
        )
    except OSError as exc:
        # Present but not runnable (ENOEXEC, EACCES).
        return RunResult(
            command_str=command_str,
            stdout="",
            stderr=f"{exc.filename or args[0]}: cannot execute: {exc.strerror or exc}\n",
            exit_code=126,
        )

    return RunResult(
        command_str=command_str,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        exit_code=proc.returncode,
    )


def python_exe() -> str:
    return sys.executable
