from __future__ import annotations

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path

from ..utils.log_format import iso_now


SUMMARY_JSON = "build-summary.json"
SUMMARY_MD = "build-summary.md"


@dataclass(frozen=True)
class StepSummary:
    number: int
    name: str
    status: str  # success|failure|skipped
    exit_code: int
    duration_s: float
    message: str = ""
    log_file: str = ""


@dataclass(frozen=True)
class BuildSummary:
    passed: bool
    total_duration_s: float
    steps: list[StepSummary]
    finished_at: str = field(default_factory=iso_now)

    @property
    def counts(self) -> dict[str, int]:
        tally = Counter(s.status for s in self.steps)
        return {status: tally.get(status, 0) for status in ("success", "failure", "skipped")}

    @property
    def failures(self) -> list[StepSummary]:
        return [s for s in self.steps if s.status == "failure"]

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["counts"] = self.counts
        return data


def render_markdown(summary: BuildSummary) -> str:
    counts = summary.counts
    out = [
        "# AppImage build summary",
        "",
        f"- Result: {'passed' if summary.passed else 'FAILED'}",
        f"- Finished: {summary.finished_at}",
        f"- Duration: {summary.total_duration_s:.1f}s",
        f"- Steps: {counts['success']} ok, {counts['failure']} failed, {counts['skipped']} skipped",
        "",
        "| # | Step | Status | Duration | Exit | Log |",
        "|---:|---|---|---:|---:|---|",
    ]
    out.extend(
        f"| {s.number} | {s.name} | {s.status} | {s.duration_s:.1f}s | {s.exit_code} | {Path(s.log_file).name if s.log_file else '-'} |"
        for s in summary.steps
    )

    failures = [s for s in summary.failures if s.message]
    if failures:
        out += ["", "## Failures", ""]
        out.extend(f"- **{s.name}** (exit {s.exit_code}): {s.message}" for s in failures)

    return "\n".join(out) + "\n"


def write_summary(buildlog_dir: Path, summary: BuildSummary) -> tuple[Path, Path]:
    """Write the JSON and Markdown build summaries and return their paths."""

    buildlog_dir.mkdir(parents=True, exist_ok=True)

    json_path = buildlog_dir / SUMMARY_JSON
    md_path = buildlog_dir / SUMMARY_MD
    json_path.write_text(json.dumps(summary.to_dict(), indent=2) + "\n", encoding="utf-8")
    md_path.write_text(render_markdown(summary), encoding="utf-8")
    return json_path, md_path
