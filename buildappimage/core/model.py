from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .context import ExecutionContext
from ..utils.subproc import RunResult


@dataclass(frozen=True)
class BuildConfig:
    project_dir: Path
    version_update: str | None = None
    build_only: bool = False
    create_appimage: bool = False
    debug: bool = False

    @property
    def version_only(self) -> bool:
        """True when the run ends right after rewriting the version files."""
        return self.version_update is not None and self.build_only


@dataclass(frozen=True)
class Step:
    number: int
    name: str
    description: str
    log_file: Path
    runner: Callable[[], RunResult]
    enabled: bool = True
    skip_reason: str = ""


@dataclass(frozen=True)
class StepOutcome:
    status: str  # success|failure|skipped
    exit_code: int
    duration_s: float
    message: str = ""


@dataclass
class BuildState:
    """Values produced by one step and consumed by later ones."""

    context: Optional[ExecutionContext] = None
    version: Optional[str] = None
    appimage: Optional[Path] = None
