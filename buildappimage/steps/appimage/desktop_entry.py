from __future__ import annotations

from ...core.project import ProjectIdentity


def _list_value(items: tuple[str, ...]) -> str:
    return "".join(f"{item};" for item in items)


def render_desktop_entry(identity: ProjectIdentity, version: str) -> str:
    """Render the AppDir ``.desktop`` file.

    ``Exec`` points at AppRun and ``Icon`` at the executable name, which is
    the icon file appimagetool looks for at the AppDir root.
    """

    entries = [
        ("Version", "1.0"),
        ("Name", identity.display_name),
        ("GenericName", identity.generic_name),
        ("Comment", identity.comment),
        ("Exec", "AppRun"),
        ("Icon", identity.executable),
        ("Terminal", "false"),
        ("Type", "Application"),
        ("Categories", _list_value(identity.categories)),
        ("Keywords", _list_value(identity.keywords)),
        ("StartupNotify", "true"),
        ("StartupWMClass", identity.display_name),
        ("X-AppImage-Version", version),
    ]

    return "\n".join(["[Desktop Entry]", *(f"{key}={value}" for key, value in entries), ""])
