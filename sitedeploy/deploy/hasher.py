"""Checksum manifest generation for local site trees."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
import shlex
import subprocess
import time
from typing import Dict, List, Sequence

from .collaborators import SiteHasher
from .errors import HashingError
from .snapshot import normalize_exclude_paths, write_manifest

logger = logging.getLogger("sitedeploy.deploy.hasher")

CHUNK_SIZE = 8192


def _relative_exclusions(site_dir: Path, manifest_path: Path, exclude_paths: Sequence[str]) -> List[str]:
    excludes = list(exclude_paths)
    try:
        excludes.insert(0, manifest_path.parent.relative_to(site_dir).as_posix())
    except ValueError:
        pass
    return normalize_exclude_paths(excludes)


class ShellHasher(SiteHasher):
    """Hash with ``find | sort | xargs sha1sum`` so huge trees stay fast."""

    def __init__(self, sha_command: str = "sha1sum"):
        self.sha_command = sha_command

    def build_command(self, manifest_path: Path, excludes: Sequence[str]) -> str:
        filters = []
        for path in excludes:
            filters.append(f"! -path {shlex.quote('./' + path)}")
            filters.append(f"! -path {shlex.quote('./' + path + '/*')}")
        find = " ".join(["find . -type f", *filters, "-print0"])
        return (
            f"{find} | LC_ALL=C sort -z | xargs -0 -r {shlex.quote(self.sha_command)}"
            f" > {shlex.quote(str(manifest_path))}"
        )

    def write_manifest(self, site_dir: Path, manifest_path: Path, exclude_paths: Sequence[str]) -> None:
        site_dir = site_dir.resolve()
        manifest_path = manifest_path.resolve()
        excludes = _relative_exclusions(site_dir, manifest_path, exclude_paths)
        try:
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise HashingError(f"Unable to create {manifest_path.parent}: {exc}") from exc

        command = self.build_command(manifest_path, excludes)
        logger.debug("Executing: %s", command)

        started = time.monotonic()
        completed = _run_shell(command, cwd=site_dir)
        logger.debug("Checksums generation took %.3f secs.", time.monotonic() - started)

        if completed.returncode != 0:
            raise HashingError(
                f"Unable to create checksums for {site_dir}:\n{completed.stderr.strip()}"
            )
        logger.debug("Checksums file created: %s", manifest_path)


class PythonHasher(SiteHasher):
    """Pure hashlib walk producing the same manifest format."""

    def write_manifest(self, site_dir: Path, manifest_path: Path, exclude_paths: Sequence[str]) -> None:
        excludes = _relative_exclusions(site_dir, manifest_path, exclude_paths)
        started = time.monotonic()
        entries: Dict[str, str] = {}
        try:
            for root, dirs, files in os.walk(site_dir):
                root_path = Path(root)
                rel_root = root_path.relative_to(site_dir).as_posix()
                dirs[:] = sorted(
                    d for d in dirs
                    if not _is_excluded(d if rel_root == "." else f"{rel_root}/{d}", excludes)
                )
                for name in files:
                    rel = name if rel_root == "." else f"{rel_root}/{name}"
                    file_path = root_path / name
                    if _is_excluded(rel, excludes) or not file_path.is_file():
                        continue
                    entries[f"./{rel}"] = compute_file_hash(file_path)
            write_manifest(entries, manifest_path)
        except OSError as exc:
            raise HashingError(f"Unable to create checksums for {site_dir}: {exc}") from exc
        logger.debug("Checksums generation took %.3f secs.", time.monotonic() - started)


def _is_excluded(rel_path: str, excludes: Sequence[str]) -> bool:
    return any(rel_path == path or rel_path.startswith(path + "/") for path in excludes)


def compute_file_hash(file_path: Path) -> str:
    """Compute the SHA-1 digest sha1sum would print for a file."""
    hasher = hashlib.sha1()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def build_hasher(kind: str) -> SiteHasher:
    if kind == "shell":
        return ShellHasher()
    if kind == "python":
        return PythonHasher()
    raise ValueError(f"Unknown hasher '{kind}' (expected 'shell' or 'python')")


def _run_shell(command: str, *, cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        command,
        shell=True,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )


__all__ = ["ShellHasher", "PythonHasher", "build_hasher", "compute_file_hash"]
