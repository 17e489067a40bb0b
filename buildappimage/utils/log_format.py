from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TextIO


GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
NC = "\033[0m"

_LEVEL_STYLE: dict[int, tuple[str, str]] = {
    logging.DEBUG: ("DEBUG", ""),
    logging.INFO: ("INFO", GREEN),
    logging.WARNING: ("WARN", YELLOW),
    logging.ERROR: ("ERROR", RED),
    logging.CRITICAL: ("ERROR", RED),
}

_HANDLER_MARK = "_buildappimage_handler"


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class StepLogRecord:
    step_name: str
    command: str
    duration_s: float
    exit_code: int
    stdout: str
    stderr: str


def format_standard_log(record: StepLogRecord) -> str:
    duration_text = f"({record.duration_s:.1f}s)"
    stdout = record.stdout if record.stdout.strip() else "(no stdout)"
    stderr = record.stderr if record.stderr.strip() else "(no stderr)"

    return (
        f"=== {record.step_name} - {iso_now()} ===\n"
        f"Command: {record.command}\n"
        f"Duration: {duration_text}\n"
        f"Exit Code: {record.exit_code}\n\n"
        f"=== STDOUT ===\n{stdout}\n\n"
        f"=== STDERR ===\n{stderr}\n\n"
        f"=== END ===\n"
    )


class LevelTagFormatter(logging.Formatter):
    """Render records as ``[INFO] message`` with an optional colour tag."""

    def __init__(self, *, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        label, color = _LEVEL_STYLE.get(record.levelno, (record.levelname, ""))
        if self.use_color and color:
            return f"{color}[{label}]{NC} {message}"
        return f"[{label}] {message}"


def supports_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # Closed stream.
        return False


def configure_logging(*, debug: bool = False, stream: TextIO | None = None) -> None:
    """Send buildappimage log records to stderr as levelled, coloured lines.

    Replaces a handler installed by a previous call so repeated runs in one
    process do not duplicate output.
    """

    stream = stream if stream is not None else sys.stderr
    pkg_logger = logging.getLogger("buildappimage")

    for handler in list(pkg_logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            pkg_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(LevelTagFormatter(use_color=supports_color(stream)))
    setattr(handler, _HANDLER_MARK, True)

    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if debug else logging.INFO)
