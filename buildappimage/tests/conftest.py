from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

import pytest
from PIL import Image


PYPROJECT = """\
[project]
name = "chromadesk"
version = "0.1.0"
description = "demo"

[project.optional-dependencies]
notifications = ["notify2"]
"""

INIT = """\
\"\"\"ChromaDesk.\"\"\"

__version__ = "0.1.0"
"""


def make_icon(path: Path, size: tuple[int, int] = (128, 128), fmt: str = "PNG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA" if fmt == "PNG" else "RGB", size, (200, 40, 40)).save(path, format=fmt)
    return path


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUILDAPPIMAGE_LOG_DIR", str(tmp_path / "buildlog"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("BUILDAPPIMAGE_DEBUG", raising=False)
    monkeypatch.delenv("BUILDAPPIMAGE_APPIMAGETOOL_URL", raising=False)
    monkeypatch.setenv("ARCH", "x86_64")


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    pkg_logger = logging.getLogger("buildappimage")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal ChromaDesk-shaped project tree."""

    root = tmp_path / "chromadesk-project"
    pkg = root / "chromadesk"
    (pkg / "services" / "templates").mkdir(parents=True)
    (root / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")
    (pkg / "__init__.py").write_text(INIT, encoding="utf-8")
    (pkg / "main.py").write_text("print('hello')\n", encoding="utf-8")
    make_icon(root / "data" / "icons" / "io.github.anantdark.chromadesk.png")
    (root / "data" / "io.github.anantdark.chromadesk.desktop").write_text("[Desktop Entry]\n", encoding="utf-8")
    return root


class FakeToolchain:
    """Stand-in for ``subprocess.run`` that imitates venv, pip, PyInstaller and appimagetool."""

    def __init__(self, version: str = "0.1.0") -> None:
        self.version = version
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str]] = []
        self.fail: dict[str, int] = {}
        self.raise_errors: dict[str, OSError] = {}
        self.produce_executable = True

    def commands(self, needle: str) -> list[list[str]]:
        return [c for c in self.calls if needle in " ".join(c)]

    def __call__(self, args, *, cwd=None, env=None, text=None, stdout=None, stderr=None, **kwargs):
        args = [str(a) for a in args]
        self.calls.append(args)
        self.envs.append(dict(env or {}))
        joined = " ".join(args)

        for needle, error in self.raise_errors.items():
            if needle in Path(args[0]).name:
                raise error

        for needle, code in self.fail.items():
            if needle in joined:
                return subprocess.CompletedProcess(args, code, stdout=f"{needle} failed\n", stderr="boom\n")

        out = ""
        exe_name = Path(args[0]).name
        if args[1:3] == ["-m", "venv"]:
            python = Path(args[3]) / "bin" / "python"
            python.parent.mkdir(parents=True, exist_ok=True)
            python.write_text("#!/bin/sh\n", encoding="utf-8")
            python.chmod(0o755)
        elif args[1:] == ["--version"]:
            out = "Python 3.12.3\n"
        elif len(args) > 1 and args[1] == "-c":
            out = f"{self.version}\n"
        elif exe_name == "pyinstaller":
            opts = dict(a[2:].split("=", 1) for a in args[1:] if a.startswith("--") and "=" in a)
            if self.produce_executable:
                binary = Path(opts["distpath"]) / opts["name"]
                binary.parent.mkdir(parents=True, exist_ok=True)
                binary.write_bytes(b"\x7fELF")
            Path(opts["workpath"]).mkdir(parents=True, exist_ok=True)
            Path(cwd, f"{opts['name']}.spec").write_text("# spec\n", encoding="utf-8")
            out = "Building EXE completed successfully.\n"
        elif "appimagetool" in exe_name:
            Path(args[-1]).write_bytes(b"AI\x02")
            out = "Success\n"

        err = None if stderr == subprocess.STDOUT else ""
        return subprocess.CompletedProcess(args, 0, stdout=out, stderr=err)


@pytest.fixture
def toolchain(monkeypatch: pytest.MonkeyPatch) -> FakeToolchain:
    from buildappimage.utils import subproc

    fake = FakeToolchain()
    monkeypatch.setattr(subproc.subprocess, "run", fake)
    return fake


@pytest.fixture
def no_system_appimagetool(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)
