"""Deployment planning.

S3-style object stores have no transactions, so a deploy is a sequence of
stages whose order keeps the published site consistent for as long as
possible:

* new content is uploaded before updated content, and within each group
  assets go first, then pages, then the homepage;
* removed pages are deleted before removed assets, and the homepage is never
  deleted;
* the manifest is uploaded (and made private) last, so it only moves forward
  once every other stage has succeeded.

The planner is pure: it never touches the filesystem or the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .classify import PAGE_SUFFIX, PathClass, classify_paths
from .diff import ChangeSet
from .errors import PreconditionError
from .snapshot import HOMEPAGE_PATH, ManifestLocation, PathSet, normalize_exclude_paths, sorted_paths

logger = logging.getLogger("sitedeploy.deploy.plan")

DEFAULT_MANIFEST_ACL = "private"

# ("exclude" | "include", pattern); `aws s3` applies filters in order and the last match wins.
FilterRule = Tuple[str, str]


class StageOperation(str, Enum):
    """Remote operations a stage can perform."""
    UPLOAD = "upload"
    DELETE = "delete"
    SYNC = "sync"
    SET_ACL = "set-acl"


class StageGroup(str, Enum):
    """Which part of a deploy a stage belongs to."""
    NEW = "new"
    UPDATED = "updated"
    REMOVED = "removed"
    FULL = "full"
    COMMIT = "commit"


@dataclass(frozen=True)
class Stage:
    """One planned remote operation over a single path class."""

    operation: StageOperation
    path_class: PathClass
    group: StageGroup
    source_paths: PathSet = field(default_factory=frozenset)
    recursive: bool = False
    filters: Tuple[FilterRule, ...] = ()
    delete: bool = False
    acl: Optional[str] = None

    @property
    def requires_staging(self) -> bool:
        return (
            self.operation is StageOperation.UPLOAD
            and self.group in (StageGroup.NEW, StageGroup.UPDATED)
        )

    @property
    def staging_subdir(self) -> str:
        return f"{self.group.value}/{self.path_class.value}"

    @property
    def path_count(self) -> int:
        return len(self.source_paths)

    def describe(self) -> str:
        label = f"{self.operation.value} {self.group.value} {self.path_class.value}"
        if self.source_paths:
            return f"{label} ({self.path_count} path(s))"
        return label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation.value,
            "class": self.path_class.value,
            "group": self.group.value,
            "source_paths": sorted_paths(self.source_paths),
            "recursive": self.recursive,
            "filters": [list(rule) for rule in self.filters],
            "delete": self.delete,
            "acl": self.acl,
        }


@dataclass(frozen=True)
class DeploymentPlan:
    """Ordered stages for a single deploy; the order is the consistency contract."""

    mode: str  # "incremental" or "full"
    stages: Tuple[Stage, ...] = ()
    changes: Optional[ChangeSet] = None

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    @property
    def is_empty(self) -> bool:
        return not self.stages

    @property
    def upload_stages(self) -> Tuple[Stage, ...]:
        return tuple(stage for stage in self.stages if stage.operation is StageOperation.UPLOAD)

    def summary(self) -> str:
        if self.is_empty:
            return f"{self.mode} deploy: nothing to do"
        detail = f"{self.mode} deploy: {len(self.stages)} stage(s)"
        if self.changes is not None:
            detail += f" for {self.changes.summary()}"
        return detail

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "stages": [stage.to_dict() for stage in self.stages],
            "changes": self.changes.to_dict() if self.changes is not None else None,
        }


def plan_incremental(
    changes: ChangeSet,
    *,
    homepage: str = HOMEPAGE_PATH,
    manifest: ManifestLocation = ManifestLocation(),
    manifest_acl: str = DEFAULT_MANIFEST_ACL,
) -> DeploymentPlan:
    """Order the stages needed to move the bucket from the old to the new snapshot."""
    if homepage in changes.removed:
        raise PreconditionError(
            f"Refusing to delete the homepage {homepage}; the new site has no entry point",
            operation=StageOperation.DELETE.value,
            path_class=PathClass.HOMEPAGE.value,
            path_count=1,
        )

    if not changes.has_changes:
        logger.info("No changes detected; nothing to deploy")
        return DeploymentPlan(mode="incremental", changes=changes)

    stages: List[Stage] = []

    for group, paths in ((StageGroup.NEW, changes.added), (StageGroup.UPDATED, changes.changed)):
        for path_class, subset in classify_paths(paths, homepage):
            if subset:
                stages.append(
                    Stage(
                        operation=StageOperation.UPLOAD,
                        path_class=path_class,
                        group=group,
                        source_paths=subset,
                        recursive=True,
                    )
                )

    removed = classify_paths(changes.removed, homepage)
    for path_class, subset in ((PathClass.PAGES, removed.pages), (PathClass.ASSETS, removed.assets)):
        if subset:
            stages.append(
                Stage(
                    operation=StageOperation.DELETE,
                    path_class=path_class,
                    group=StageGroup.REMOVED,
                    source_paths=subset,
                )
            )

    stages.extend(_commit_stages(manifest, manifest_acl))
    plan = DeploymentPlan(mode="incremental", stages=tuple(stages), changes=changes)
    logger.debug("Planned %s", plan.summary())
    return plan


def plan_full(
    *,
    manifest: ManifestLocation = ManifestLocation(),
    manifest_acl: str = DEFAULT_MANIFEST_ACL,
    exclude_paths: Sequence[str] = (),
) -> DeploymentPlan:
    """Plan a deploy with no baseline: everything counts as new.

    Non-HTML files go up first, then HTML files, then a sync with delete
    enabled clears stale objects left by earlier unmanaged uploads. The
    manifest directory is excluded from those passes so only the final
    stages write it. ``exclude_paths`` are kept out of every pass, matching
    what the hasher leaves out of the manifest.
    """
    html_pattern = f"*{PAGE_SUFFIX}"
    withheld = _exclude_rules([f"{manifest.directory}/*", *_path_patterns(exclude_paths)])
    stages = [
        Stage(
            operation=StageOperation.UPLOAD,
            path_class=PathClass.ASSETS,
            group=StageGroup.FULL,
            recursive=True,
            filters=(("exclude", html_pattern), *withheld),
        ),
        Stage(
            operation=StageOperation.UPLOAD,
            path_class=PathClass.PAGES,
            group=StageGroup.FULL,
            recursive=True,
            # withheld paths follow the include so they win over it
            filters=(("exclude", "*"), ("include", html_pattern), *withheld),
        ),
        Stage(
            operation=StageOperation.SYNC,
            path_class=PathClass.ALL,
            group=StageGroup.FULL,
            recursive=True,
            filters=withheld,
            delete=True,
        ),
    ]
    stages.extend(_commit_stages(manifest, manifest_acl))
    return DeploymentPlan(mode="full", stages=tuple(stages))


def _path_patterns(exclude_paths: Iterable[str]) -> List[str]:
    patterns: List[str] = []
    for path in normalize_exclude_paths(exclude_paths):
        patterns.extend([path, f"{path}/*"])
    return patterns


def _exclude_rules(patterns: Iterable[str]) -> Tuple[FilterRule, ...]:
    return tuple(("exclude", pattern) for pattern in patterns)


def _commit_stages(manifest: ManifestLocation, acl: str) -> List[Stage]:
    key = frozenset({manifest.key})
    return [
        Stage(
            operation=StageOperation.UPLOAD,
            path_class=PathClass.MANIFEST,
            group=StageGroup.COMMIT,
            source_paths=key,
            recursive=True,
        ),
        Stage(
            operation=StageOperation.SET_ACL,
            path_class=PathClass.MANIFEST,
            group=StageGroup.COMMIT,
            source_paths=key,
            acl=acl,
        ),
    ]


__all__ = [
    "DEFAULT_MANIFEST_ACL",
    "DeploymentPlan",
    "FilterRule",
    "Stage",
    "StageGroup",
    "StageOperation",
    "plan_full",
    "plan_incremental",
]
