"""Helpers shared by the deploy-related commands."""

from __future__ import annotations

from typing import Callable, List

from rich.console import Console
from rich.table import Table

from ..deploy import Deployer, DeploymentPlan, DeploySettings, Stage
from ..deploy.snapshot import sorted_paths
from ..slash_commands import SlashCommandContext

DeployerFactory = Callable[[DeploySettings], Deployer]

OPERATION_STYLES = {
    "upload": "green",
    "delete": "red",
    "sync": "yellow",
    "set-acl": "magenta",
}
PREVIEW_LIMIT = 5


def resolve_settings(context: SlashCommandContext, args: List[str]) -> DeploySettings:
    """Build deploy settings from ``[SITE_DIR] [BUCKET]`` plus configuration."""
    site_dir = args[0] if len(args) > 0 else None
    bucket = args[1] if len(args) > 1 else None
    return DeploySettings.from_bundle(context.config, site_dir=site_dir, bucket=bucket)


def build_deployer(context: SlashCommandContext, settings: DeploySettings) -> Deployer:
    factory: DeployerFactory = context.metadata.get("deployer_factory") or Deployer
    return factory(settings)


def render_plan(console: Console, plan: DeploymentPlan) -> None:
    """Print a plan as an ordered table."""
    console.print(f"[bold]{plan.summary()}[/bold]")
    if plan.is_empty:
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Operation", no_wrap=True)
    table.add_column("Group", no_wrap=True)
    table.add_column("Class", no_wrap=True)
    table.add_column("Paths")

    for index, stage in enumerate(plan, start=1):
        style = OPERATION_STYLES.get(stage.operation.value, "white")
        table.add_row(
            str(index),
            f"[{style}]{stage.operation.value}[/{style}]",
            stage.group.value,
            stage.path_class.value,
            _describe_paths(stage),
        )
    console.print(table)


def _describe_paths(stage: Stage) -> str:
    if stage.source_paths:
        paths = sorted_paths(stage.source_paths)
        preview = ", ".join(paths[:PREVIEW_LIMIT])
        if len(paths) > PREVIEW_LIMIT:
            preview += f" … (+{len(paths) - PREVIEW_LIMIT})"
        return preview
    filters = [f"--{kind} {pattern}" for kind, pattern in stage.filters]
    if stage.delete:
        filters.append("--delete")
    return " ".join(filters) or "(whole site)"


__all__ = ["DeployerFactory", "build_deployer", "render_plan", "resolve_settings"]
