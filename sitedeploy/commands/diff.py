"""Command that shows what changed since the last committed deploy."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..deploy import DeployError, classify_paths, compute_changes
from ..deploy.diff import unchanged_paths
from ..deploy.snapshot import sorted_paths
from ..slash_commands import CommandResult, SlashCommand, SlashCommandContext, render_rich
from .common import build_deployer, resolve_settings

LISTING_LIMIT = 10


def _handler(context: SlashCommandContext, args: List[str]) -> CommandResult:
    """Compare the local site with the bucket's manifest."""

    try:
        settings = resolve_settings(context, args)
        local, remote = build_deployer(context, settings).collect_snapshots()
    except DeployError as exc:
        return CommandResult(f"[diff] Unable to compute diff: {exc}", exit_code=1)

    if not remote:
        return CommandResult(
            f"[diff] No manifest at {settings.manifest_uri}. "
            f"A full deploy would upload {len(local)} files."
        )

    changes = compute_changes(local, remote)
    if not changes.has_changes:
        return CommandResult("[diff] No changes since last deploy.")

    def _render(console: Console) -> None:
        console.print("[bold]Changes since last deploy:[/bold]\n")
        console.print(f"Summary: {changes.summary()}")
        console.print(f"Unchanged: {len(unchanged_paths(local, remote))}\n")

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Change")
        table.add_column("Assets", justify="right")
        table.add_column("Pages", justify="right")
        table.add_column("Homepage", justify="right")
        for label, paths in (("new", changes.added), ("updated", changes.changed), ("deleted", changes.removed)):
            counts = classify_paths(paths, settings.homepage).counts()
            table.add_row(label, str(counts["assets"]), str(counts["pages"]), str(counts["homepage"]))
        console.print(table)

        for label, marker, style, paths in (
            ("New", "+", "green", changes.added),
            ("Updated", "~", "blue", changes.changed),
            ("Deleted", "-", "red", changes.removed),
        ):
            if not paths:
                continue
            listing = sorted_paths(paths)
            console.print(f"[{style}]{label}:[/{style}]")
            for path in listing[:LISTING_LIMIT]:
                console.print(f"  {marker} {path}")
            if len(listing) > LISTING_LIMIT:
                console.print(f"  ... and {len(listing) - LISTING_LIMIT} more")

    return CommandResult(render_rich(_render))


COMMAND = SlashCommand(
    name="diff",
    description="Show pending changes against the deployed manifest. Usage: diff [SITE_DIR] [BUCKET]",
    handler=_handler,
    requires_ready=True,
)
