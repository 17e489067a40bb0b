"""Project identity and build layout.

The identity defaults describe ChromaDesk; any field can be overridden from a
``[tool.buildappimage]`` table in the project's ``pyproject.toml``::

    [tool.buildappimage]
    display-name = "MyApp"
    package = "myapp"
    executable = "myapp"
    desktop-id = "io.github.me.myapp"
    categories = ["Utility"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from .errors import BuildError


_TUPLE_FIELDS = {"categories", "keywords"}


@dataclass(frozen=True)
class ProjectIdentity:
    display_name: str = "ChromaDesk"
    package: str = "chromadesk"
    executable: str = "chromadesk"
    desktop_id: str = "io.github.anantdark.chromadesk"
    generic_name: str = "Wallpaper Changer"
    comment: str = "Daily Bing/Custom Wallpaper Changer for GNOME"
    categories: tuple[str, ...] = ("Utility", "GTK", "GNOME")
    keywords: tuple[str, ...] = ("wallpaper", "background", "bing", "daily", "desktop", "image")
    optional_group: str = "notifications"
    data_dir: str = "data"
    # Empty means "derive from the fields above".
    icon: str = ""
    desktop_file: str = ""
    entry_point: str = ""
    templates_dir: str = ""

    @property
    def icon_path(self) -> str:
        return self.icon or f"data/icons/{self.desktop_id}.png"

    @property
    def desktop_file_path(self) -> str:
        return self.desktop_file or f"data/{self.desktop_id}.desktop"

    @property
    def entry_script(self) -> str:
        return self.entry_point or f"{self.package}/main.py"

    @property
    def templates_path(self) -> str:
        return self.templates_dir or f"{self.package}/services/templates"


@dataclass(frozen=True)
class BuildPaths:
    root: Path
    venv: Path
    work: Path
    dist: Path
    appdir: Path
    spec_file: Path

    @classmethod
    def for_project(cls, root: Path, identity: ProjectIdentity) -> "BuildPaths":
        root = root.resolve()
        dist = root / "dist"
        return cls(
            root=root,
            venv=root / ".venv",
            work=root / "build",
            dist=dist,
            appdir=dist / f"{identity.display_name}.AppDir",
            spec_file=root / f"{identity.executable}.spec",
        )


def _coerce(name: str, value: object) -> object:
    if name in _TUPLE_FIELDS:
        if isinstance(value, str):
            value = [p for p in value.split(";") if p]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise BuildError(f"[tool.buildappimage] {name} must be a list of strings")
        return tuple(value)

    if not isinstance(value, str):
        raise BuildError(f"[tool.buildappimage] {name} must be a string")
    return value


def load_identity(project_dir: Path) -> ProjectIdentity:
    """Read the project identity, falling back to defaults without a pyproject.toml."""

    pyproject = project_dir / "pyproject.toml"
    if not pyproject.is_file():
        return ProjectIdentity()

    try:
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise BuildError(f"Cannot parse {pyproject}: {exc}") from exc

    table = data.get("tool", {}).get("buildappimage", {})
    if not isinstance(table, dict):
        raise BuildError("[tool.buildappimage] must be a table")

    known = {f.name for f in fields(ProjectIdentity)}
    kwargs: dict[str, object] = {}
    unknown: list[str] = []
    for raw_key, value in table.items():
        key = str(raw_key).replace("-", "_")
        if key not in known:
            unknown.append(str(raw_key))
            continue
        kwargs[key] = _coerce(key, value)

    if unknown:
        raise BuildError(f"Unknown [tool.buildappimage] keys: {', '.join(sorted(unknown))}")

    return ProjectIdentity(**kwargs)  # type: ignore[arg-type]
