from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..core.context import ExecutionContext
from ..core.errors import BuildError
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.subproc import RunResult, internal, run


logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")


@dataclass(frozen=True)
class PatchResult:
    text: str
    matches: int

    @property
    def matched(self) -> bool:
        return self.matches > 0


def _assignment_re(key: str) -> re.Pattern[str]:
    # Column-0 assignments only: indented or commented-out lines never match.
    return re.compile(
        rf"^(?P<key>{re.escape(key)})[ \t]*=[ \t]*(?P<value>\"[^\"\n]*\"|'[^'\n]*')",
        re.MULTILINE,
    )


def patch_assignment(text: str, key: str, version: str) -> PatchResult:
    """Rewrite every ``key = "..."`` line in *text* to hold *version*.

    Whatever follows the quoted value (e.g. a trailing comment) is kept, as are
    all other lines.
    """

    def _replace(m: re.Match[str]) -> str:
        quote = m.group("value")[0]
        return f"{m.group('key')} = {quote}{version}{quote}"

    new_text, count = _assignment_re(key).subn(_replace, text)
    return PatchResult(text=new_text, matches=count)


def validate_version(version: str) -> None:
    if not _SEMVER_RE.match(version):
        raise BuildError(
            f"Invalid version format '{version}'. Please use semantic versioning (e.g., 1.2.3)."
        )


def version_targets(root: Path, identity: ProjectIdentity) -> list[tuple[Path, str]]:
    return [
        (root / identity.package / "__init__.py", "__version__"),
        (root / "pyproject.toml", "version"),
    ]


def update_version_files(root: Path, identity: ProjectIdentity, version: str) -> RunResult:
    """Set the project version in the package ``__init__`` and ``pyproject.toml``.

    Both files are patched in memory first; nothing is written unless each one
    contains at least one matching assignment.
    """

    validate_version(version)
    logger.info("Updating project version to %s", version)

    targets = version_targets(root, identity)
    for path, _ in targets:
        if not path.is_file():
            raise BuildError(f"Version file not found: {path.relative_to(root)}")

    patched: list[tuple[Path, str, PatchResult]] = []
    for path, key in targets:
        try:
            original = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(f"Cannot read {path.relative_to(root)}: {exc}") from exc
        result = patch_assignment(original, key, version)
        if not result.matched:
            raise BuildError(
                f"No '{key} = \"...\"' assignment found in {path.relative_to(root)}; "
                "refusing to guess where the version lives."
            )
        patched.append((path, original, result))

    lines: list[str] = []
    for path, original, result in patched:
        rel = path.relative_to(root)
        if result.text == original:
            logger.info("%s already at %s", rel, version)
            lines.append(f"{rel}: unchanged")
            continue
        try:
            path.write_text(result.text, encoding="utf-8")
        except OSError as exc:
            raise BuildError(f"Cannot write {rel}: {exc}") from exc
        logger.info("Updated %s", rel)
        lines.append(f"{rel}: {result.matches} assignment(s) updated")

    logger.info("Version update complete.")
    return internal("version update", lines)


def read_project_version(ctx: ExecutionContext, paths: BuildPaths, identity: ProjectIdentity) -> tuple[str, RunResult]:
    """Import the installed package inside the virtualenv and return its ``__version__``."""

    pkg = identity.package
    result = run(
        [str(ctx.python), "-c", f"import {pkg}; print({pkg}.__version__)"],
        cwd=str(paths.root),
        env=ctx.environ(),
    )
    if result.exit_code != 0:
        raise BuildError(f"Could not read {pkg}.__version__", result=result)

    version = result.stdout.strip().splitlines()[-1].strip() if result.stdout.strip() else ""
    if not version:
        raise BuildError(f"{pkg}.__version__ is empty", result=result)

    logger.info("Building project version: %s", version)
    return version, result
