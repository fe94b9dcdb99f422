"""Tests for local checksum generation."""

from __future__ import annotations

import hashlib
import subprocess
from pathlib import Path

import pytest

from sitedeploy.deploy import hasher as hasher_module
from sitedeploy.deploy.errors import HashingError
from sitedeploy.deploy.hasher import PythonHasher, ShellHasher, build_hasher, compute_file_hash
from sitedeploy.deploy.snapshot import read_manifest


def test_python_hasher_matches_sha1(site_dir: Path):
    manifest = site_dir / ".metadata" / "checksums.txt"

    PythonHasher().write_manifest(site_dir, manifest, [])

    snapshot = read_manifest(manifest)
    assert set(snapshot) == {"./index.html", "./about.html", "./css/a.css"}
    assert snapshot["./css/a.css"] == hashlib.sha1(b"body {}").hexdigest()


def test_python_hasher_skips_manifest_dir_and_excludes(site_dir: Path):
    manifest = site_dir / ".metadata" / "checksums.txt"
    manifest.parent.mkdir()
    (manifest.parent / "stale.txt").write_text("old", encoding="utf-8")
    (site_dir / "drafts").mkdir()
    (site_dir / "drafts" / "wip.html").write_text("wip", encoding="utf-8")

    PythonHasher().write_manifest(site_dir, manifest, ["./drafts/"])

    assert set(read_manifest(manifest)) == {"./index.html", "./about.html", "./css/a.css"}


def test_compute_file_hash_reads_in_chunks(tmp_path: Path):
    target = tmp_path / "big.bin"
    payload = b"x" * (hasher_module.CHUNK_SIZE * 3 + 7)
    target.write_bytes(payload)

    assert compute_file_hash(target) == hashlib.sha1(payload).hexdigest()


def test_shell_hasher_builds_find_pipeline(tmp_path: Path):
    command = ShellHasher().build_command(tmp_path / "sums.txt", [".metadata", "my drafts"])

    assert command.startswith("find . -type f ! -path ./.metadata ! -path './.metadata/*'")
    assert "! -path './my drafts/*'" in command
    assert "LC_ALL=C sort -z | xargs -0 -r sha1sum" in command
    assert command.endswith(f"> {tmp_path / 'sums.txt'}")


def test_shell_hasher_runs_in_site_dir(site_dir: Path, monkeypatch: pytest.MonkeyPatch):
    captured = {}

    def fake_run(command, *, cwd):
        captured["command"] = command
        captured["cwd"] = cwd
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

    monkeypatch.setattr(hasher_module, "_run_shell", fake_run)

    ShellHasher().write_manifest(site_dir, site_dir / ".metadata" / "checksums.txt", [])

    assert captured["cwd"] == site_dir.resolve()
    assert "! -path ./.metadata" in captured["command"]
    assert (site_dir / ".metadata").is_dir()


def test_shell_hasher_failure_raises(site_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        hasher_module,
        "_run_shell",
        lambda command, *, cwd: subprocess.CompletedProcess(command, 1, stdout="", stderr="xargs: missing"),
    )

    with pytest.raises(HashingError, match="xargs: missing"):
        ShellHasher().write_manifest(site_dir, site_dir / ".metadata" / "checksums.txt", [])


def test_build_hasher_kinds():
    assert isinstance(build_hasher("shell"), ShellHasher)
    assert isinstance(build_hasher("python"), PythonHasher)
    with pytest.raises(ValueError):
        build_hasher("md5")
