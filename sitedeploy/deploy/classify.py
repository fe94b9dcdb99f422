"""Split path sets into assets, pages and the homepage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Tuple

from .snapshot import HOMEPAGE_PATH, PathSet

logger = logging.getLogger("sitedeploy.deploy.classify")

PAGE_SUFFIX = ".html"


class PathClass(str, Enum):
    """Ordering classes a stage can target."""
    ASSETS = "assets"
    PAGES = "pages"
    HOMEPAGE = "homepage"
    MANIFEST = "manifest"
    ALL = "all"


@dataclass(frozen=True)
class ClassifiedPaths:
    """A path set partitioned by ordering class."""

    assets: PathSet = field(default_factory=frozenset)
    pages: PathSet = field(default_factory=frozenset)
    homepage: PathSet = field(default_factory=frozenset)

    def __iter__(self) -> Iterator[Tuple[PathClass, PathSet]]:
        # Upload priority: referenced content before the documents that link to it.
        yield PathClass.ASSETS, self.assets
        yield PathClass.PAGES, self.pages
        yield PathClass.HOMEPAGE, self.homepage

    def __len__(self) -> int:
        return len(self.assets) + len(self.pages) + len(self.homepage)

    def counts(self) -> Dict[str, int]:
        return {path_class.value: len(paths) for path_class, paths in self}


def classify_path(path: str, homepage: str = HOMEPAGE_PATH) -> PathClass:
    if path.endswith(PAGE_SUFFIX):
        return PathClass.HOMEPAGE if path == homepage else PathClass.PAGES
    return PathClass.ASSETS


def classify_paths(paths: Iterable[str], homepage: str = HOMEPAGE_PATH) -> ClassifiedPaths:
    """Partition ``paths``; every input path lands in exactly one class."""
    buckets: Dict[PathClass, List[str]] = {
        PathClass.ASSETS: [],
        PathClass.PAGES: [],
        PathClass.HOMEPAGE: [],
    }
    for path in paths:
        buckets[classify_path(path, homepage)].append(path)

    classified = ClassifiedPaths(
        assets=frozenset(buckets[PathClass.ASSETS]),
        pages=frozenset(buckets[PathClass.PAGES]),
        homepage=frozenset(buckets[PathClass.HOMEPAGE]),
    )
    for name, count in classified.counts().items():
        logger.debug("\t * %s: %d files", name, count)
    return classified


__all__ = ["PAGE_SUFFIX", "PathClass", "ClassifiedPaths", "classify_path", "classify_paths"]
