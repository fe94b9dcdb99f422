"""Sequential, fail-fast execution of a deployment plan."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .collaborators import FileStager, ObjectStore
from .errors import DeployError, StagingError
from .plan import DeploymentPlan, Stage, StageGroup, StageOperation
from .snapshot import ManifestLocation, remote_key, sorted_paths

ProgressCallback = Callable[[str, int, int], None]


@dataclass(frozen=True)
class ExecutionContext:
    """Everything the executor needs to turn stages into concrete calls."""

    site_dir: Path
    bucket: str
    staging_dir: Path
    manifest: ManifestLocation = ManifestLocation()

    @property
    def bucket_uri(self) -> str:
        return f"s3://{self.bucket}"

    def object_uri(self, path: str) -> str:
        return f"{self.bucket_uri}/{remote_key(path)}"


@dataclass
class ExecutionReport:
    """What an executed plan did."""

    mode: str
    stages_completed: int = 0
    staged_files: int = 0
    uploaded_groups: List[str] = field(default_factory=list)
    deleted_objects: int = 0
    elapsed: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "stages_completed": self.stages_completed,
            "staged_files": self.staged_files,
            "uploaded_groups": list(self.uploaded_groups),
            "deleted_objects": self.deleted_objects,
            "elapsed": round(self.elapsed, 3),
        }


class StageExecutor:
    """Runs stages one at a time and stops at the first failure.

    Every upload stage is staged locally before the first remote call, so a
    local problem aborts the deploy while the bucket is still untouched.
    Nothing is rolled back after a remote failure; the previous manifest stays
    in place and the next deploy diffs against it.
    """

    def __init__(
        self,
        store: ObjectStore,
        stager: FileStager,
        context: ExecutionContext,
        logger: Optional[logging.Logger] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.store = store
        self.stager = stager
        self.context = context
        self.logger = logger or logging.getLogger("sitedeploy.deploy.executor")
        self.progress_callback = progress_callback

    def execute(self, plan: DeploymentPlan) -> ExecutionReport:
        report = ExecutionReport(mode=plan.mode)
        started = time.monotonic()

        report.staged_files = self._prepare(plan)

        total = len(plan)
        for index, stage in enumerate(plan):
            self._report_progress(stage.describe(), index + 1, total)
            try:
                self._run_stage(stage, report)
            except DeployError as exc:
                exc.attach_stage(index, stage.operation.value, stage.path_class.value, stage.path_count)
                self.logger.error("Deploy aborted: %s", exc)
                raise
            report.stages_completed += 1

        report.elapsed = time.monotonic() - started
        return report

    def _prepare(self, plan: DeploymentPlan) -> int:
        staged = 0
        for index, stage in enumerate(plan):
            if not stage.requires_staging:
                continue
            target = self.context.staging_dir / stage.staging_subdir
            self.logger.debug("Staging %d file(s) to %s", stage.path_count, target)
            try:
                self.stager.copy_subset(sorted_paths(stage.source_paths), self.context.site_dir, target)
            except DeployError as exc:
                exc.attach_stage(index, stage.operation.value, stage.path_class.value, stage.path_count)
                self.logger.error("Staging failed, bucket untouched: %s", exc)
                raise
            except OSError as exc:
                error = StagingError(f"Unable to stage files to {target}: {exc}")
                error.attach_stage(index, stage.operation.value, stage.path_class.value, stage.path_count)
                self.logger.error("Staging failed, bucket untouched: %s", error)
                raise error from exc
            staged += stage.path_count
        return staged

    def _run_stage(self, stage: Stage, report: ExecutionReport) -> None:
        ctx = self.context
        if stage.operation is StageOperation.UPLOAD:
            if stage.requires_staging:
                self.logger.debug("Copying %s %s to S3 bucket...", stage.group.value, stage.path_class.value)
                self.store.copy(str(ctx.staging_dir / stage.staging_subdir), ctx.bucket_uri, recursive=True)
                report.uploaded_groups.append(stage.staging_subdir)
            elif stage.group is StageGroup.COMMIT:
                self.logger.debug("Copying metadata dir to S3 bucket...")
                self.store.copy(
                    str(ctx.site_dir / ctx.manifest.directory),
                    f"{ctx.bucket_uri}/{ctx.manifest.directory}",
                    recursive=True,
                )
            else:
                self.logger.debug("Copying all %s to S3 bucket...", stage.path_class.value)
                self.store.copy(
                    str(ctx.site_dir),
                    ctx.bucket_uri,
                    filters=stage.filters,
                    recursive=stage.recursive,
                )
                report.uploaded_groups.append(f"{stage.group.value}/{stage.path_class.value}")
        elif stage.operation is StageOperation.DELETE:
            self.logger.debug("Deleting %s from S3 bucket...", stage.path_class.value)
            for path in sorted_paths(stage.source_paths):
                self.store.remove(ctx.object_uri(path), recursive=stage.recursive)
                report.deleted_objects += 1
        elif stage.operation is StageOperation.SYNC:
            self.logger.debug("Syncing everything and deleting stale content from S3 bucket...")
            self.store.sync(
                str(ctx.site_dir),
                ctx.bucket_uri,
                filters=stage.filters,
                delete=stage.delete,
            )
        elif stage.operation is StageOperation.SET_ACL:
            acl = stage.acl or "private"
            for key in sorted_paths(stage.source_paths):
                self.logger.debug("Setting %s ACL to %s", acl, key)
                self.store.set_object_acl(ctx.bucket, remote_key(key), acl)
        else:  # pragma: no cover - exhaustive over StageOperation
            raise ValueError(f"Unknown stage operation: {stage.operation}")

    def _report_progress(self, message: str, current: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(message, current, total)
        self.logger.info("Stage %d/%d: %s", current, total, message)


__all__ = ["ExecutionContext", "ExecutionReport", "ProgressCallback", "StageExecutor"]
