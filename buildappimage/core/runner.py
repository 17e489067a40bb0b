from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

from .errors import BuildError
from .model import Step, StepOutcome
from .summary import BuildSummary, StepSummary, write_summary
from ..utils.log_format import StepLogRecord, format_standard_log
from ..utils.subproc import RunResult


logger = logging.getLogger(__name__)


def _write_log(step: Step, result: RunResult, duration_s: float) -> None:
    step.log_file.parent.mkdir(parents=True, exist_ok=True)

    record = StepLogRecord(
        step_name=step.name,
        command=result.command_str,
        duration_s=duration_s,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
    )
    step.log_file.write_text(format_standard_log(record), encoding="utf-8")


def _print_output(result: RunResult) -> None:
    if result.stdout.strip():
        print(result.stdout.rstrip(), file=sys.stderr)
    if result.stderr.strip():
        print(result.stderr.rstrip(), file=sys.stderr)


def run_step(step: Step, *, verbose: bool) -> StepOutcome:
    start = time.time()

    if not step.enabled:
        duration = time.time() - start
        reason = step.skip_reason or "not requested"
        _write_log(step, RunResult("(skipped)", f"(skipped: {reason})\n", "", 0), duration)
        if step.skip_reason:
            logger.warning("%s", step.skip_reason)
        logger.debug("[%d] %s: SKIPPED", step.number, step.name)
        return StepOutcome(status="skipped", exit_code=0, duration_s=duration, message=reason)

    logger.debug("[%d] %s: %s", step.number, step.name, step.description)

    message = ""
    show_output = True
    try:
        result = step.runner()
    except BuildError as exc:
        message = str(exc)
        show_output = exc.result is not None
        result = exc.result or RunResult(
            command_str=f"(internal) {step.name.lower()}",
            stdout="",
            stderr=message + "\n",
            exit_code=1,
        )
        if result.exit_code == 0:
            # A post-condition failed after a successful command.
            result = RunResult(result.command_str, result.stdout, result.stderr + message + "\n", 1)

    duration = time.time() - start
    _write_log(step, result, duration)

    if result.exit_code == 0:
        logger.info("[%d] %s: OK (%.1fs)", step.number, step.name, duration)
        if verbose:
            _print_output(result)
        return StepOutcome(status="success", exit_code=0, duration_s=duration)

    logger.error("[%d] %s: FAIL (%.1fs)", step.number, step.name, duration)
    if show_output:
        _print_output(result)
    if message:
        logger.error("%s", message)
    logger.error("Step log: %s", step.log_file)

    return StepOutcome(
        status="failure",
        exit_code=result.exit_code,
        duration_s=duration,
        message=message,
    )


def run(steps: list[Step], *, log_dir: Path, verbose: bool) -> int:
    """Run *steps* in order, stopping at the first failure.

    Returns the process exit code: 0 on success, 1 on any failure.
    """

    logger.debug("Step logs: %s", log_dir)

    started = time.time()
    summaries: list[StepSummary] = []
    failed: Step | None = None
    finished = False

    try:
        for step in steps:
            step_started = time.time()
            try:
                outcome = run_step(step, verbose=verbose)
            except Exception as exc:
                failed = step
                summaries.append(
                    StepSummary(
                        number=step.number,
                        name=step.name,
                        status="failure",
                        exit_code=1,
                        duration_s=time.time() - step_started,
                        message=f"{type(exc).__name__}: {exc}",
                        log_file=str(step.log_file),
                    )
                )
                raise

            summaries.append(
                StepSummary(
                    number=step.number,
                    name=step.name,
                    status=outcome.status,
                    exit_code=outcome.exit_code,
                    duration_s=outcome.duration_s,
                    message=outcome.message,
                    log_file=str(step.log_file),
                )
            )

            if outcome.status == "failure":
                failed = step
                logger.error("Stopped on failure in step %d: %s", step.number, step.name)
                break
        finished = True
    finally:
        # Also written when a step raised or the build was interrupted.
        write_summary(
            log_dir,
            BuildSummary(
                passed=finished and failed is None,
                total_duration_s=time.time() - started,
                steps=summaries,
            ),
        )

    return 0 if failed is None else 1
