"""Interfaces for the components a deploy delegates I/O to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Sequence, Tuple


class SiteHasher(ABC):
    """Produces the checksum manifest for a local site tree."""

    @abstractmethod
    def write_manifest(self, site_dir: Path, manifest_path: Path, exclude_paths: Sequence[str]) -> None:
        """Hash every regular file under ``site_dir`` into ``manifest_path``.

        Paths are written relative to ``site_dir`` with a leading ``./``. The
        manifest's own directory and ``exclude_paths`` are skipped.
        """
        pass


class FileStager(ABC):
    """Copies a subset of the site into a local staging directory."""

    @abstractmethod
    def copy_subset(self, paths: Iterable[str], source_root: Path, dest_dir: Path) -> None:
        """Copy ``paths`` (relative to ``source_root``) under ``dest_dir``.

        Raises StagingError when any listed path cannot be copied.
        """
        pass


class ObjectStore(ABC):
    """Remote bucket operations."""

    @abstractmethod
    def copy(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        recursive: bool = False,
    ) -> None:
        """Copy a local path or object URI; raises TransferError."""
        pass

    @abstractmethod
    def remove(self, uri: str, *, recursive: bool = False) -> None:
        """Delete an object or prefix; raises TransferError."""
        pass

    @abstractmethod
    def sync(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        delete: bool = False,
    ) -> None:
        """Mirror ``source`` onto ``dest``; raises TransferError."""
        pass

    @abstractmethod
    def set_object_acl(self, bucket: str, key: str, acl: str) -> None:
        """Apply a canned ACL to one object; raises AclError."""
        pass

    @abstractmethod
    def get_object_contents(self, uri: str) -> bytes:
        """Return the object's bytes, or ``b""`` when it cannot be fetched."""
        pass


__all__ = ["SiteHasher", "FileStager", "ObjectStore"]
