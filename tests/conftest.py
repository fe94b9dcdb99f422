"""Shared fakes for deploy tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from sitedeploy.deploy import FileStager, ObjectStore, SiteHasher
from sitedeploy.deploy.errors import DeployError
from sitedeploy.deploy.snapshot import write_manifest


class RecordingStore(ObjectStore):
    """Records every call in order; optionally fails on a chosen operation."""

    def __init__(self, remote_manifest: bytes = b"") -> None:
        self.calls: List[Tuple] = []
        self.remote_manifest = remote_manifest
        self.fail_on: Optional[str] = None
        self.failure: Optional[DeployError] = None

    def _record(self, name: str, *details) -> None:
        self.calls.append((name, *details))
        if self.fail_on == name and self.failure is not None:
            raise self.failure

    def copy(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        recursive: bool = False,
    ) -> None:
        self._record("copy", source, dest, tuple(filters), recursive)

    def remove(self, uri: str, *, recursive: bool = False) -> None:
        self._record("remove", uri)

    def sync(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        delete: bool = False,
    ) -> None:
        self._record("sync", source, dest, tuple(filters), delete)

    def set_object_acl(self, bucket: str, key: str, acl: str) -> None:
        self._record("set_object_acl", bucket, key, acl)

    def get_object_contents(self, uri: str) -> bytes:
        self.calls.append(("get", uri))
        return self.remote_manifest

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingStager(FileStager):
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.calls: List[Tuple[List[str], Path, Path]] = []
        self.error = error

    def copy_subset(self, paths: Iterable[str], source_root: Path, dest_dir: Path) -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((list(paths), source_root, dest_dir))


class StaticHasher(SiteHasher):
    """Writes a fixed snapshot instead of hashing the tree."""

    def __init__(self, entries: Dict[str, str]) -> None:
        self.entries = entries
        self.calls: List[Tuple[Path, Path, Tuple[str, ...]]] = []

    def write_manifest(self, site_dir: Path, manifest_path: Path, exclude_paths: Sequence[str]) -> None:
        self.calls.append((site_dir, manifest_path, tuple(exclude_paths)))
        write_manifest(self.entries, manifest_path)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def stager() -> RecordingStager:
    return RecordingStager()


@pytest.fixture
def make_stager():
    return RecordingStager


@pytest.fixture
def make_hasher():
    return StaticHasher


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    (site / "css").mkdir(parents=True)
    (site / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (site / "about.html").write_text("<h1>about</h1>", encoding="utf-8")
    (site / "css" / "a.css").write_text("body {}", encoding="utf-8")
    return site
