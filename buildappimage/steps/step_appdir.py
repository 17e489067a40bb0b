from __future__ import annotations

import logging
import shutil
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..core.errors import BuildError
from ..core.project import BuildPaths, ProjectIdentity
from ..utils.paths import display_path
from ..utils.subproc import RunResult, internal
from .appimage.common import write_text
from .appimage.desktop_entry import render_desktop_entry


logger = logging.getLogger(__name__)


def icon_size(path: Path) -> tuple[int, int]:
    """Return the pixel size of a square PNG icon; anything else is a BuildError."""

    try:
        with Image.open(path) as img:
            fmt = img.format
            size = img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise BuildError(f"Cannot read icon {path}: {exc}") from exc

    if fmt != "PNG":
        raise BuildError(f"Icon must be a PNG image, got {fmt}: {path}")
    if size[0] != size[1]:
        raise BuildError(f"Icon must be square for the hicolor theme, got {size[0]}x{size[1]}: {path}")
    return size


def _reset_dir(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def prepare_appdir(paths: BuildPaths, identity: ProjectIdentity, version: str) -> RunResult:
    appdir = paths.appdir
    rel = display_path(appdir, paths.root)
    lines: list[str] = []

    logger.info("Preparing AppDir structure at '%s'...", rel)
    _reset_dir(appdir)

    usr_bin = appdir / "usr" / "bin"
    applications = appdir / "usr" / "share" / "applications"
    hicolor = appdir / "usr" / "share" / "icons" / "hicolor"
    for d in (usr_bin, applications, hicolor):
        d.mkdir(parents=True, exist_ok=True)

    # Desktop file: ID-named copy, freedesktop copy, and the executable-named
    # copy appimagetool expects at the AppDir root.
    id_desktop = appdir / f"{identity.desktop_id}.desktop"
    root_desktop = appdir / f"{identity.executable}.desktop"

    logger.info("Creating AppDir desktop file: %s", display_path(id_desktop, paths.root))
    write_text(id_desktop, render_desktop_entry(identity, version))
    shutil.copy2(id_desktop, applications / id_desktop.name)

    logger.info("Copying desktop file to root for appimagetool: %s", display_path(root_desktop, paths.root))
    shutil.copy2(id_desktop, root_desktop)
    lines.extend([str(id_desktop), str(applications / id_desktop.name), str(root_desktop)])

    icon_src = paths.root / identity.icon_path
    if not icon_src.is_file():
        raise BuildError(f"Source icon file not found: {identity.icon_path}")
    width, height = icon_size(icon_src)

    # Must match the desktop file's Icon= key.
    root_icon = appdir / f"{identity.executable}.png"
    logger.info("Copying icon to AppDir root: %s", display_path(root_icon, paths.root))
    shutil.copy2(icon_src, root_icon)

    theme_icon = hicolor / f"{width}x{height}" / "apps" / f"{identity.desktop_id}.png"
    theme_icon.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(icon_src, theme_icon)
    lines.extend([str(root_icon), str(theme_icon)])

    dir_icon = appdir / ".DirIcon"
    dir_icon.symlink_to(root_icon.name)
    lines.append(f"{dir_icon} -> {root_icon.name}")

    logger.info("AppDir preparation complete.")
    return internal("prepare appdir", lines)
