"""Checksum manifests and the snapshots they describe."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger("sitedeploy.deploy.snapshot")

HOMEPAGE_PATH = "./index.html"
DEFAULT_MANIFEST_DIR = ".metadata"
DEFAULT_MANIFEST_NAME = "checksums.txt"
SEPARATOR = "  "

PathSet = FrozenSet[str]


@dataclass(frozen=True)
class ManifestLocation:
    """Where the manifest lives, relative to the site root and the bucket root."""

    directory: str = DEFAULT_MANIFEST_DIR
    filename: str = DEFAULT_MANIFEST_NAME

    @property
    def key(self) -> str:
        return f"{self.directory}/{self.filename}"

    def local_path(self, site_dir: Path) -> Path:
        return site_dir / self.directory / self.filename


class Snapshot(Mapping[str, str]):
    """Immutable mapping of relative path to content hash."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Union[Mapping[str, str], Iterable[Tuple[str, str]]]] = None):
        self._entries: Dict[str, str] = dict(entries or {})

    def __getitem__(self, path: str) -> str:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snapshot):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        return f"Snapshot({len(self._entries)} entries)"

    @property
    def paths(self) -> PathSet:
        return frozenset(self._entries)


def sorted_paths(paths: Iterable[str]) -> List[str]:
    """Render a path set as a reproducible sequence."""
    return sorted(set(paths))


def remote_key(path: str) -> str:
    """Strip the leading ``./`` so a snapshot path becomes a bucket key."""
    while path.startswith("./"):
        path = path[2:]
    return path


def parse_manifest(raw: Optional[Union[str, bytes]]) -> Snapshot:
    """Parse ``<hash>  <path>`` lines into a snapshot.

    Lines without the two-space separator, or with an empty hash or path, are
    dropped rather than reported. Empty input yields an empty snapshot.
    """
    if not raw:
        return Snapshot()
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    entries: Dict[str, str] = {}
    dropped = 0
    for line in raw.split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        digest, sep, path = line.partition(SEPARATOR)
        if not sep or not digest or not path:
            dropped += 1
            continue
        entries[path] = digest

    if dropped:
        logger.debug("Dropped %d malformed manifest line(s)", dropped)
    logger.debug("Found %d entries on checksum data", len(entries))
    return Snapshot(entries)


def serialize_manifest(snapshot: Mapping[str, str]) -> str:
    """Render a snapshot in the same format the hasher writes."""
    return "".join(f"{snapshot[path]}{SEPARATOR}{path}\n" for path in sorted(snapshot))


def read_manifest(path: Path) -> Snapshot:
    """Load a manifest file, treating a missing or unreadable file as empty."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Unable to read manifest %s: %s", path, exc)
        return Snapshot()
    return parse_manifest(raw)


def normalize_exclude_paths(exclude_paths: Iterable[str]) -> List[str]:
    """Strip leading "./" and slashes from site-relative exclusions; drop blanks and repeats."""
    normalized: List[str] = []
    for raw in exclude_paths:
        path = str(raw).strip()
        while path.startswith("./"):
            path = path[2:]
        path = path.strip("/")
        if path and path not in normalized:
            normalized.append(path)
    return normalized


def write_manifest(snapshot: Mapping[str, str], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_manifest(snapshot), encoding="utf-8")
    logger.debug("Saved manifest to %s (%d files)", path, len(snapshot))


__all__ = [
    "HOMEPAGE_PATH",
    "DEFAULT_MANIFEST_DIR",
    "DEFAULT_MANIFEST_NAME",
    "ManifestLocation",
    "PathSet",
    "Snapshot",
    "normalize_exclude_paths",
    "parse_manifest",
    "read_manifest",
    "remote_key",
    "serialize_manifest",
    "sorted_paths",
    "write_manifest",
]
