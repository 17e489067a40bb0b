from __future__ import annotations

import errno
import json
import os
from pathlib import Path

import pytest

from conftest import is_executable

from buildappimage.core.cli import main, parse_config
from buildappimage.steps.appimage import tool as tool_mod


def _build(project: Path, *extra: str) -> int:
    return main(["--project-dir", str(project), *extra])


def _summary(tmp_path: Path) -> dict:
    return json.loads((tmp_path / "buildlog" / "build-summary.json").read_text(encoding="utf-8"))


def test_help_exits_zero(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "--version-update" in out
    assert "--appimage" in out


def test_unknown_flag_prints_usage_and_exits_one(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--frobnicate"])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "--frobnicate" in err


def test_parse_config_flags(tmp_path: Path) -> None:
    config = parse_config(["--version-update", "1.2.3", "--build-only", "--appimage", "--debug", "--project-dir", str(tmp_path)])

    assert config.version_update == "1.2.3"
    assert config.build_only and config.create_appimage and config.debug
    assert config.version_only
    assert config.project_dir == tmp_path


def test_debug_env_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUILDAPPIMAGE_DEBUG", "yes")
    assert parse_config([]).debug


def test_version_update_build_only_touches_nothing_else(project: Path, toolchain, tmp_path: Path) -> None:
    rc = _build(project, "--version-update", "1.2.3", "--build-only")

    assert rc == 0
    assert '__version__ = "1.2.3"' in (project / "chromadesk" / "__init__.py").read_text(encoding="utf-8")
    assert 'version = "1.2.3"' in (project / "pyproject.toml").read_text(encoding="utf-8")
    assert toolchain.calls == []
    assert not (project / ".venv").exists()
    assert not (project / "dist").exists()
    assert [s["name"] for s in _summary(tmp_path)["steps"]] == ["Pre-checks", "Version Update"]


def test_invalid_version_fails_without_writes(project: Path, toolchain) -> None:
    before = (project / "pyproject.toml").read_text(encoding="utf-8")

    assert _build(project, "--version-update", "1.2", "--build-only") == 1
    assert (project / "pyproject.toml").read_text(encoding="utf-8") == before
    assert toolchain.calls == []


def test_missing_icon_fails_in_prechecks(project: Path, toolchain) -> None:
    (project / "data" / "icons" / "io.github.anantdark.chromadesk.png").unlink()

    assert _build(project) == 1
    assert toolchain.calls == []
    assert not (project / "dist").exists()


def test_not_a_project_root(tmp_path: Path, toolchain) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    assert _build(empty) == 1
    assert toolchain.calls == []


def test_default_build_produces_appdir_without_appimage(project: Path, toolchain, capsys) -> None:
    rc = _build(project)

    assert rc == 0
    appdir = project / "dist" / "ChromaDesk.AppDir"
    assert is_executable(appdir / "usr" / "bin" / "chromadesk")
    assert is_executable(appdir / "AppRun")
    assert (appdir / "chromadesk.desktop").is_file()
    assert (appdir / "chromadesk.png").is_file()
    assert (appdir / ".DirIcon").is_symlink()
    assert "X-AppImage-Version=0.1.0" in (appdir / "chromadesk.desktop").read_text(encoding="utf-8")

    assert not list(project.glob("*.AppImage"))
    assert not (project / "build").exists()
    assert not (project / "chromadesk.spec").exists()
    assert not toolchain.commands(".[notifications]")

    captured = capsys.readouterr()
    assert Path(captured.out.strip()) == appdir.resolve()
    assert "Skipping AppImage creation" in captured.err


def test_second_run_reuses_venv_and_rebuilds_same_tree(project: Path, toolchain) -> None:
    appdir = project / "dist" / "ChromaDesk.AppDir"

    assert _build(project) == 0
    first = sorted(str(p.relative_to(appdir)) for p in appdir.rglob("*"))

    assert _build(project) == 0
    second = sorted(str(p.relative_to(appdir)) for p in appdir.rglob("*"))

    assert first == second
    assert len(toolchain.commands("-m venv")) == 1


def test_appimage_build_produces_executable_artifact(project: Path, toolchain, no_system_appimagetool, monkeypatch) -> None:
    downloaded: list[Path] = []

    def _download(url: str, dst: Path) -> None:
        downloaded.append(dst)
        dst.write_bytes(b"#!/bin/sh\n")

    monkeypatch.setattr(tool_mod, "download", _download)

    rc = _build(project, "--appimage")

    artifact = project / "chromadesk-0.1.0-x86_64.AppImage"
    assert rc == 0
    assert is_executable(artifact)
    assert toolchain.commands(".[notifications]")
    assert downloaded and not downloaded[0].exists()


def test_appimage_download_failure_is_fatal_when_requested(
    project: Path, toolchain, no_system_appimagetool, monkeypatch, tmp_path: Path
) -> None:
    def _download(url: str, dst: Path) -> None:
        raise OSError("network unreachable")

    monkeypatch.setattr(tool_mod, "download", _download)

    assert _build(project, "--appimage") == 1
    assert not list(project.glob("*.AppImage"))
    summary = _summary(tmp_path)
    assert summary["passed"] is False
    assert summary["steps"][-1]["name"] == "AppImage"


def test_without_appimage_flag_download_is_never_attempted(project: Path, toolchain, no_system_appimagetool, monkeypatch) -> None:
    def _download(url: str, dst: Path) -> None:
        raise AssertionError("download attempted")

    monkeypatch.setattr(tool_mod, "download", _download)

    assert _build(project) == 0


def test_pyinstaller_without_output_is_fatal(project: Path, toolchain) -> None:
    toolchain.produce_executable = False

    assert _build(project) == 1
    assert not (project / "dist" / "ChromaDesk.AppDir" / "AppRun").exists()


def test_failed_dependency_install_is_fatal(project: Path, toolchain, tmp_path: Path) -> None:
    toolchain.fail["pip install --upgrade"] = 1

    assert _build(project) == 1
    assert not toolchain.commands("pip install .")
    log = tmp_path / "buildlog" / "step-04-dependencies.log"
    assert "Exit Code: 1" in log.read_text(encoding="utf-8")


def test_build_only_without_version_still_builds(project: Path, toolchain, capsys) -> None:
    assert _build(project, "--build-only") == 0
    assert "--build-only has no effect" in capsys.readouterr().err
    assert os.path.isdir(project / "dist" / "ChromaDesk.AppDir")


def test_unrunnable_appimagetool_fails_step_and_writes_summary(
    project: Path, toolchain, no_system_appimagetool, monkeypatch, tmp_path: Path, capsys
) -> None:
    def _download(url: str, dst: Path) -> None:
        dst.write_bytes(b"<!DOCTYPE html>\n")

    monkeypatch.setattr(tool_mod, "download", _download)
    toolchain.raise_errors["appimagetool"] = OSError(errno.ENOEXEC, "Exec format error", "appimagetool")

    assert _build(project, "--appimage") == 1

    summary = _summary(tmp_path)
    assert summary["passed"] is False
    assert summary["steps"][-1]["name"] == "AppImage"
    assert summary["steps"][-1]["status"] == "failure"
    err = capsys.readouterr().err
    assert "AppImage creation step failed" in err
    assert "Unhandled error" not in err


def test_undecodable_version_file_fails_step_and_writes_summary(project: Path, toolchain, tmp_path: Path, capsys) -> None:
    (project / "chromadesk" / "__init__.py").write_bytes(b'__version__ = "0.1.0"\n\xff\n')

    assert _build(project, "--version-update", "1.2.3", "--build-only") == 1

    summary = _summary(tmp_path)
    assert summary["passed"] is False
    assert summary["steps"][-1]["name"] == "Version Update"
    assert "Cannot read" in summary["steps"][-1]["message"]
    assert "Unhandled error" not in capsys.readouterr().err
