"""Change detection between two site snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .snapshot import PathSet, Snapshot, sorted_paths

logger = logging.getLogger("sitedeploy.deploy.diff")


@dataclass(frozen=True)
class ChangeSet:
    """Paths added, removed and changed between an old and a new snapshot."""

    added: PathSet = field(default_factory=frozenset)
    removed: PathSet = field(default_factory=frozenset)
    changed: PathSet = field(default_factory=frozenset)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed) + len(self.changed)

    def summary(self) -> str:
        parts = []
        if self.added:
            parts.append(f"{len(self.added)} new")
        if self.changed:
            parts.append(f"{len(self.changed)} updated")
        if self.removed:
            parts.append(f"{len(self.removed)} deleted")
        return ", ".join(parts) if parts else "no changes"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": sorted_paths(self.added),
            "removed": sorted_paths(self.removed),
            "changed": sorted_paths(self.changed),
        }


def compute_changes(new: Mapping[str, str], old: Mapping[str, str]) -> ChangeSet:
    """Diff ``new`` against ``old``.

    ``changed`` only holds paths present in both snapshots whose hash differs,
    so the three sets are always disjoint.
    """
    if not isinstance(new, Mapping) or not isinstance(old, Mapping):
        raise TypeError("compute_changes expects two path-to-hash mappings")

    new_paths = frozenset(new)
    old_paths = frozenset(old)

    added = new_paths - old_paths
    removed = old_paths - new_paths
    changed = frozenset(
        path
        for path in (new_paths & old_paths) - added - removed
        if new[path] != old[path]
    )

    logger.debug("NEW FILES: %d detected", len(added))
    logger.debug("DELETED FILES: %d detected", len(removed))
    logger.debug("UPDATED FILES: %d detected", len(changed))
    return ChangeSet(added=added, removed=removed, changed=changed)


def unchanged_paths(new: Snapshot, old: Snapshot) -> PathSet:
    """Paths present in both snapshots with identical hashes."""
    return frozenset(path for path in new.paths & old.paths if new[path] == old[path])


__all__ = ["ChangeSet", "compute_changes", "unchanged_paths"]
