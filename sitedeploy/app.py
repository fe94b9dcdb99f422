# sitedeploy/app.py
"""
Command-line entry point for sitedeploy.

Loads layered configuration, initialises logging and dispatches a single
command through the shared router.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import sys
from typing import List, Optional, Sequence

from .commands import COMMANDS
from .configuration import (
    ConfigurationBundle,
    Diagnostic,
    load_runtime_configuration,
    resolve_workdir,
)
from .logging_utils import setup_logging
from .slash_commands import CommandRouter

REPO_ROOT = Path(__file__).resolve().parent.parent
LOG_LEVEL_ENV = "SITEDEPLOY_LOG_LEVEL"
DEFAULT_COMMAND = "help"
logger = logging.getLogger("sitedeploy")


def _log_path_within_workdir(log_path: Path, workdir: Path) -> bool:
    try:
        log_path.resolve().relative_to(workdir.resolve())
        return True
    except ValueError:
        return False


def build_router(config: ConfigurationBundle) -> CommandRouter:
    """Register every command against the loaded configuration."""

    router = CommandRouter(
        config,
        metadata={"repo_root": str(REPO_ROOT)},
    )
    for command in COMMANDS:
        router.register(command)
    return router


def emit_configuration_report(config: ConfigurationBundle) -> None:
    """Print warnings and errors so operators can correct issues quickly."""

    notable = [diag for diag in config.diagnostics if diag.level != "info"]
    if not notable:
        return

    print("[config] Diagnostics:", file=sys.stderr)
    for diag in notable:
        prefix = diag.source or config.workdir
        print(f"  - ({diag.level.upper()}) {diag.message} [{prefix}]", file=sys.stderr)


def initialise_logging(config_bundle: ConfigurationBundle) -> Path:
    """Apply the ``logging`` section, honouring the level override in the environment."""

    log_cfg = (config_bundle.merged or {}).get("logging", {}) or {}
    env_level = os.environ.get(LOG_LEVEL_ENV)
    level_name = (env_level or log_cfg.get("level") or "INFO").upper()
    log_path = setup_logging(
        config_bundle.workdir if config_bundle.workdir.is_dir() else REPO_ROOT,
        level_name,
        structured=bool(log_cfg.get("structured", True)),
        stdout=bool(log_cfg.get("stdout", True)),
        log_file=log_cfg.get("file") or None,
    )
    config_bundle.log_path = log_path
    if not _log_path_within_workdir(log_path, config_bundle.workdir):
        config_bundle.diagnostics.append(
            Diagnostic(
                level="warning",
                message=(
                    "Workspace log directory is not writable; "
                    f"logging to fallback path '{log_path}'."
                ),
                source=log_path,
            )
        )
    return log_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``sitedeploy`` console script."""

    args: List[str] = list(sys.argv[1:] if argv is None else argv)
    config_bundle = load_runtime_configuration(resolve_workdir())
    log_path = initialise_logging(config_bundle)
    emit_configuration_report(config_bundle)
    logger.debug("Logging initialized at %s", log_path)

    router = build_router(config_bundle)
    command, rest = (args[0], args[1:]) if args else (DEFAULT_COMMAND, [])
    if command in {"-h", "--help"}:
        command = DEFAULT_COMMAND

    result = router.handle(command, rest)
    if result.output:
        print(result.output)
    logger.debug("Command %s finished with exit code %d", command, result.exit_code)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
