from __future__ import annotations

import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ...core.context import ExecutionContext
from ...core.errors import ToolAcquisitionError
from .common import chmod_x, download


logger = logging.getLogger(__name__)

APPIMAGETOOL_URL_TEMPLATE = (
    "https://github.com/AppImage/AppImageKit/releases/download/continuous/"
    "appimagetool-{arch}.AppImage"
)
APPIMAGETOOL_URL_ENV = "BUILDAPPIMAGE_APPIMAGETOOL_URL"


@dataclass
class PackagingTool:
    """Handle on an appimagetool binary.

    A temporary (downloaded) binary belongs to whoever holds the handle and is
    deleted by ``release()``; a system binary is never touched.
    """

    path: Path
    temporary: bool = False

    def release(self) -> None:
        if not self.temporary:
            return
        self.path.unlink(missing_ok=True)
        self.temporary = False

    def __enter__(self) -> "PackagingTool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def target_arch() -> str:
    return os.environ.get("ARCH") or platform.machine()


def appimagetool_url(arch: str) -> str:
    return os.environ.get(APPIMAGETOOL_URL_ENV) or APPIMAGETOOL_URL_TEMPLATE.format(arch=arch)


def find_appimagetool(ctx: ExecutionContext | None) -> PackagingTool | None:
    found = ctx.which("appimagetool") if ctx is not None else shutil.which("appimagetool")
    if found and os.access(found, os.X_OK):
        return PackagingTool(path=Path(found))
    return None


def download_appimagetool(url: str) -> PackagingTool:
    fd, name = tempfile.mkstemp(suffix="-appimagetool.AppImage")
    os.close(fd)
    tmp = Path(name)

    try:
        download(url, tmp)
        chmod_x(tmp)
    except (OSError, ValueError) as exc:
        # URLError and HTTPError are OSErrors; ValueError covers a malformed URL.
        tmp.unlink(missing_ok=True)
        raise ToolAcquisitionError(f"Failed to download appimagetool from {url}: {exc}") from exc
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    return PackagingTool(path=tmp, temporary=True)


def obtain_appimagetool(ctx: ExecutionContext | None, *, arch: str) -> PackagingTool:
    tool = find_appimagetool(ctx)
    if tool is not None:
        logger.info("Using system appimagetool: %s", tool.path)
        return tool

    logger.warning("appimagetool not found in PATH or not executable. Attempting to download...")
    tool = download_appimagetool(appimagetool_url(arch))
    logger.info("Downloaded appimagetool to: %s", tool.path)
    return tool
