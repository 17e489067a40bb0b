from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Iterable, NoReturn

from .errors import BuildError
from .model import BuildConfig, BuildState
from .project import BuildPaths, load_identity
from .runner import run
from ..steps.appimage.common import env_flag
from ..steps.step_defs import steps as all_steps
from ..utils.log_format import configure_logging
from ..utils.paths import buildlog_dir, display_path


logger = logging.getLogger(__name__)

DEBUG_ENV = "BUILDAPPIMAGE_DEBUG"

_EPILOG = """\
Examples:
  buildappimage                                   Build the executable using current version
  buildappimage --version-update 0.3.0            Build with version 0.3.0 (updates files)
  buildappimage --appimage                        Build and create an AppImage
  buildappimage --version-update 0.3.0 --build-only   Only update version files
"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="buildappimage",
        description="Build a Python desktop application into a Linux AppImage.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--version-update",
        metavar="VER",
        help="Update version to specified version (e.g., 0.3.0)",
    )
    parser.add_argument(
        "--build-only",
        action="store_true",
        help="Only update the version, don't build (requires --version-update)",
    )
    parser.add_argument(
        "--appimage",
        action="store_true",
        help="Create an AppImage after building the executable",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose command tracing output")
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Project root containing pyproject.toml (default: current directory)",
    )
    return parser


def parse_config(argv: Iterable[str] | None = None) -> BuildConfig:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    return BuildConfig(
        project_dir=args.project_dir,
        version_update=args.version_update,
        build_only=args.build_only,
        create_appimage=args.appimage,
        debug=args.debug or env_flag(DEBUG_ENV),
    )


def _raise_system_exit(signum: int, frame: object) -> NoReturn:
    raise SystemExit(128 + signum)


def _install_signal_handlers() -> dict[int, object]:
    """Turn SIGTERM/SIGHUP into SystemExit so scoped cleanups run."""

    previous: dict[int, object] = {}
    for sig in (signal.SIGTERM, signal.SIGHUP):
        previous[sig] = signal.signal(sig, _raise_system_exit)
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)  # type: ignore[arg-type]


def build(config: BuildConfig) -> int:
    identity = load_identity(config.project_dir)
    paths = BuildPaths.for_project(config.project_dir, identity)
    log_dir = buildlog_dir(paths.root)
    state = BuildState()

    logger.info("=== %s Builder ===", identity.display_name)

    if config.build_only and config.version_update is None:
        logger.warning("--build-only has no effect without --version-update; building normally.")

    rc = run(all_steps(config, identity, paths, state, log_dir=log_dir), log_dir=log_dir, verbose=config.debug)
    if rc != 0:
        return rc

    if config.version_only:
        logger.info("Version updated. Skipping build as requested (--build-only).")
        return 0

    logger.info("=== Build process completed ===")
    logger.info("AppDir contents located in: '%s'", display_path(paths.appdir, paths.root))
    print(paths.appdir)
    if state.appimage is not None:
        logger.info("Final AppImage created in the current directory.")
        print(state.appimage)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    config = parse_config(argv)
    configure_logging(debug=config.debug)

    previous = _install_signal_handlers()
    try:
        return build(config)
    except BuildError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return 130
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        return 1
    finally:
        _restore_signal_handlers(previous)
