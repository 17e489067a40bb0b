from __future__ import annotations

from ..utils.subproc import RunResult


class BuildError(RuntimeError):
    """A fatal pipeline failure.

    Carries the result of the subprocess that failed, when there was one, so
    the runner can record its output in the step log.
    """

    def __init__(self, message: str, *, result: RunResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class ToolAcquisitionError(BuildError):
    pass
