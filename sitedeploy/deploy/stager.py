"""Local staging of file subsets ahead of upload."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil
from typing import Iterable

from .collaborators import FileStager
from .errors import StagingError

logger = logging.getLogger("sitedeploy.deploy.stager")


class LocalFileStager(FileStager):
    """Copy listed files into a fresh directory, keeping their relative layout."""

    def copy_subset(self, paths: Iterable[str], source_root: Path, dest_dir: Path) -> None:
        paths = list(paths)
        if not paths:
            return

        try:
            dest_dir.mkdir(parents=True, exist_ok=False)
        except FileExistsError as exc:
            raise StagingError(f"Staging directory {dest_dir} already exists") from exc
        except OSError as exc:
            raise StagingError(f"Unable to create target directory at {dest_dir}: {exc}") from exc

        logger.debug("Copying %d file(s) to %s.", len(paths), dest_dir)
        for rel_path in paths:
            relative = rel_path[2:] if rel_path.startswith("./") else rel_path
            source = source_root / relative
            target = dest_dir / relative
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as exc:
                raise StagingError(f"Unable to copy {rel_path} to {dest_dir}: {exc}") from exc


def reset_staging_dir(staging_dir: Path, staging_root: Path) -> None:
    """Empty the per-bucket staging directory, refusing anything outside the root."""
    logger.debug("Emptying temporary directory %s", staging_dir)

    root = staging_root.resolve()
    target = staging_dir.resolve()
    if target == root or root not in target.parents:
        raise StagingError(
            f"Unable to delete a directory outside the staging root {root}: {target}"
        )

    if target.exists():
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise StagingError(f"Unable to empty temporary directory {target}: {exc}") from exc
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StagingError(f"Unable to create temporary directory at {target}: {exc}") from exc


__all__ = ["LocalFileStager", "reset_staging_dir"]
