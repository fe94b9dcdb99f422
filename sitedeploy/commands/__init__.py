"""Command registry."""

from __future__ import annotations

from .config import COMMAND as CONFIG_COMMAND
from .deploy import COMMAND as DEPLOY_COMMAND
from .diff import COMMAND as DIFF_COMMAND
from .help import COMMAND as HELP_COMMAND
from .manifest import COMMAND as MANIFEST_COMMAND
from .plan import COMMAND as PLAN_COMMAND

COMMANDS = [
    DEPLOY_COMMAND,
    PLAN_COMMAND,
    DIFF_COMMAND,
    MANIFEST_COMMAND,
    CONFIG_COMMAND,
    HELP_COMMAND,
]

__all__ = ["COMMANDS"]
