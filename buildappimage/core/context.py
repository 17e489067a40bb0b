from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping


@dataclass(frozen=True)
class ExecutionContext:
    """An activated virtualenv, expressed as environment overlays.

    Subprocesses receive ``environ()``; the builder's own ``os.environ`` is
    never modified.
    """

    venv: Path
    overlay: Mapping[str, str] = field(default_factory=dict)
    unset: tuple[str, ...] = ("PYTHONHOME",)

    @classmethod
    def for_venv(cls, venv: Path, base_env: Mapping[str, str] | None = None) -> "ExecutionContext":
        base = os.environ if base_env is None else base_env
        bin_dir = venv / "bin"
        inherited = base.get("PATH", "")
        path = f"{bin_dir}{os.pathsep}{inherited}" if inherited else str(bin_dir)
        return cls(venv=venv, overlay={"VIRTUAL_ENV": str(venv), "PATH": path})

    @property
    def bin_dir(self) -> Path:
        return self.venv / "bin"

    @property
    def python(self) -> Path:
        return self.bin_dir / "python"

    def tool(self, name: str) -> Path:
        return self.bin_dir / name

    def environ(self) -> dict[str, str]:
        env = {k: v for k, v in os.environ.items() if k not in self.unset}
        env.update(self.overlay)
        return env

    def which(self, name: str) -> str | None:
        return shutil.which(name, path=self.overlay.get("PATH"))
