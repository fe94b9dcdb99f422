"""Command that deploys a site to its bucket."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..deploy import DeployError
from ..slash_commands import CommandResult, SlashCommand, SlashCommandContext, render_rich
from .common import build_deployer, render_plan, resolve_settings


def _handler(context: SlashCommandContext, args: List[str]) -> CommandResult:
    """Run a full or incremental deploy."""

    try:
        settings = resolve_settings(context, args)
        result = build_deployer(context, settings).deploy()
    except DeployError as exc:
        return CommandResult(f"[deploy] Deploy failed: {exc}", exit_code=1)

    def _render(console: Console) -> None:
        table = Table(title="Deploy Result", show_header=False)
        table.add_column("Property", style="bold")
        table.add_column("Value")
        table.add_row("Site", str(settings.site_dir))
        table.add_row("Bucket", settings.bucket_uri)
        table.add_row("Mode", result.mode)
        table.add_row("Local files", str(result.local_files))
        table.add_row("Previously deployed", str(result.remote_files))
        table.add_row("Stages run", str(result.report.stages_completed))
        table.add_row("Objects deleted", str(result.report.deleted_objects))
        table.add_row("Elapsed", f"{result.report.elapsed:.2f}s")
        console.print(table)
        render_plan(console, result.plan)
        console.print(f"[green]{result.summary()}[/green]")

    return CommandResult(render_rich(_render))


COMMAND = SlashCommand(
    name="deploy",
    description="Deploy a site to S3. Usage: deploy [SITE_DIR] [BUCKET]",
    handler=_handler,
    requires_ready=True,
)
