"""Command that hashes the local site and shows its manifest."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..deploy import DeployError, DeploySettings, build_hasher
from ..deploy.snapshot import read_manifest
from ..slash_commands import CommandResult, SlashCommand, SlashCommandContext, render_rich

DISPLAY_LIMIT = 50


def _handler(context: SlashCommandContext, args: List[str]) -> CommandResult:
    site_dir = args[0] if args else None
    try:
        # The bucket is irrelevant for local hashing.
        settings = DeploySettings.from_bundle(context.config, site_dir=site_dir, bucket="local")
        manifest_path = settings.local_manifest_path
        build_hasher(settings.hasher).write_manifest(settings.site_dir, manifest_path, settings.exclude_paths)
    except (DeployError, ValueError) as exc:
        return CommandResult(f"[manifest] Unable to build manifest: {exc}", exit_code=1)

    snapshot = read_manifest(manifest_path)

    def _render(console: Console) -> None:
        console.print(f"[bold]Site Manifest[/bold] ({len(snapshot)} files) -> {manifest_path}\n")

        table = Table(show_header=True)
        table.add_column("Path", style="cyan")
        table.add_column("Hash", style="dim", max_width=16)

        for path in sorted(snapshot)[:DISPLAY_LIMIT]:
            table.add_row(path, snapshot[path][:12] + "...")

        if len(snapshot) > DISPLAY_LIMIT:
            console.print(f"(showing first {DISPLAY_LIMIT} of {len(snapshot)} files)")

        console.print(table)

    return CommandResult(render_rich(_render))


COMMAND = SlashCommand(
    name="manifest",
    description="Hash the local site and show its checksum manifest. Usage: manifest [SITE_DIR]",
    handler=_handler,
)
