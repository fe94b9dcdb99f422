"""Unit tests for the command registry."""

from __future__ import annotations

from pathlib import Path

from sitedeploy.configuration import ConfigurationBundle
from sitedeploy.slash_commands import (
    CommandResult,
    CommandRouter,
    SlashCommand,
    SlashCommandContext,
    render_help_table,
    render_rich,
)


def test_router_handles_registered_command(tmp_path: Path):
    config = ConfigurationBundle(workdir=tmp_path, status="ready")
    router = CommandRouter(config)
    captured = {}

    def handler(context: SlashCommandContext, args: list[str]) -> str:
        captured["context"] = context
        return f"echo:{' '.join(args)}"

    router.register(SlashCommand(name="echo", description="Echo args", handler=handler))
    result = router.handle("ECHO", ["hello", "world"])

    assert result == CommandResult("echo:hello world", exit_code=0)
    assert captured["context"].config is config
    assert "echo" in router.command_names


def test_unknown_command_exits_with_one(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(workdir=tmp_path, status="ready"))

    result = router.handle("launch", [])

    assert result.exit_code == 1
    assert "Unknown command 'launch'" in result.output


def test_requires_ready_guard(tmp_path: Path):
    config = ConfigurationBundle(workdir=tmp_path, status="invalid")
    router = CommandRouter(config)
    router.register(
        SlashCommand(
            name="needs_ready",
            description="Needs ready config",
            handler=lambda *_: "ok",
            requires_ready=True,
        )
    )

    result = router.handle("needs_ready", [])

    assert result.exit_code == 2
    assert "requires a ready configuration" in result.output


def test_handler_exit_code_is_preserved(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(workdir=tmp_path, status="ready"))
    router.register(
        SlashCommand(name="fail", description="Fails", handler=lambda *_: CommandResult("nope", exit_code=1))
    )

    assert router.handle("fail", []).exit_code == 1


def test_render_help_table_lists_commands(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(workdir=tmp_path, status="ready"))
    router.register(SlashCommand(name="deploy", description="Deploy a site", handler=lambda *_: ""))
    router.register(SlashCommand(name="help", description="Show help", handler=lambda *_: ""))

    output = render_help_table(router.commands())

    assert "deploy" in output
    assert "Deploy a site" in output
    assert [cmd.name for cmd in router.commands()] == ["deploy", "help"]


def test_render_rich_produces_ansi():
    def _render(console):
        console.print("hello", style="bold red")

    ansi = render_rich(_render)

    assert "\x1b[" in ansi
