"""AppImage build helpers.

Public helpers are re-exported here so callers can import from
`buildappimage.steps.appimage`.
"""

from .common import chmod_x, download, env_flag, run_checked, write_text
from .desktop_entry import render_desktop_entry
from .tool import PackagingTool, download_appimagetool, find_appimagetool, obtain_appimagetool, target_arch

__all__ = [
	"PackagingTool",
	"chmod_x",
	"download",
	"download_appimagetool",
	"env_flag",
	"find_appimagetool",
	"obtain_appimagetool",
	"render_desktop_entry",
	"run_checked",
	"target_arch",
	"write_text",
]
