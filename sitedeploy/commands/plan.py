"""Dry-run command that shows the stages a deploy would execute."""

from __future__ import annotations

from typing import List

from rich.console import Console

from ..deploy import DeployError
from ..slash_commands import CommandResult, SlashCommand, SlashCommandContext, render_rich
from .common import build_deployer, render_plan, resolve_settings


def _handler(context: SlashCommandContext, args: List[str]) -> CommandResult:
    try:
        settings = resolve_settings(context, args)
        plan = build_deployer(context, settings).plan()
    except DeployError as exc:
        return CommandResult(f"[plan] Unable to plan deploy: {exc}", exit_code=1)

    def _render(console: Console) -> None:
        console.print(f"Deploy plan for [cyan]{settings.site_dir}[/cyan] -> [cyan]{settings.bucket_uri}[/cyan]\n")
        render_plan(console, plan)

    return CommandResult(render_rich(_render))


COMMAND = SlashCommand(
    name="plan",
    description="Show the deploy plan without touching the bucket. Usage: plan [SITE_DIR] [BUCKET]",
    handler=_handler,
    requires_ready=True,
)
