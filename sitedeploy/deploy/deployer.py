"""Incremental deploys of a static site tree to an S3 bucket."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
import tempfile
from typing import Any, Dict, Optional, Tuple

from ..configuration import ConfigurationBundle
from .collaborators import FileStager, ObjectStore, SiteHasher
from .diff import compute_changes
from .errors import PreconditionError
from .executor import ExecutionContext, ExecutionReport, ProgressCallback, StageExecutor
from .hasher import build_hasher
from .plan import DEFAULT_MANIFEST_ACL, DeploymentPlan, plan_full, plan_incremental
from .s3 import AwsCliObjectStore
from .snapshot import (
    DEFAULT_MANIFEST_DIR,
    DEFAULT_MANIFEST_NAME,
    HOMEPAGE_PATH,
    ManifestLocation,
    Snapshot,
    parse_manifest,
    read_manifest,
)
from .stager import LocalFileStager, reset_staging_dir

DEFAULT_STAGING_ROOT = Path(tempfile.gettempdir()) / "sitedeploy"


@dataclass(frozen=True)
class DeploySettings:
    """Explicit configuration for a single deploy."""

    site_dir: Path
    bucket: str
    staging_root: Path = DEFAULT_STAGING_ROOT
    manifest: ManifestLocation = ManifestLocation()
    manifest_acl: str = DEFAULT_MANIFEST_ACL
    homepage: str = HOMEPAGE_PATH
    exclude_paths: Tuple[str, ...] = ()
    hasher: str = "shell"
    aws_binary: str = "aws"
    aws_profile: str = ""
    aws_region: str = ""

    @property
    def staging_dir(self) -> Path:
        return self.staging_root / self.bucket

    @property
    def bucket_uri(self) -> str:
        return f"s3://{self.bucket}"

    @property
    def manifest_uri(self) -> str:
        return f"{self.bucket_uri}/{self.manifest.key}"

    @property
    def local_manifest_path(self) -> Path:
        return self.manifest.local_path(self.site_dir)

    @classmethod
    def from_bundle(
        cls,
        bundle: ConfigurationBundle,
        site_dir: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> "DeploySettings":
        merged = bundle.merged or {}
        raw = merged.get("deploy", {}) or {}
        aws = merged.get("aws", {}) or {}

        site_raw = str(site_dir or raw.get("site_dir") or "").strip()
        bucket_name = str(bucket or raw.get("bucket") or "").strip()
        if not site_raw:
            raise PreconditionError("No site directory given (argument or deploy.site_dir)")
        if not bucket_name:
            raise PreconditionError("No bucket given (argument or deploy.bucket)")
        if bucket_name.startswith("s3://"):
            bucket_name = bucket_name[len("s3://"):]
        bucket_name = bucket_name.strip("/")

        site_path = Path(site_raw).expanduser()
        if not site_path.is_absolute():
            site_path = (bundle.workdir / site_path).resolve()
        if not site_path.is_dir():
            raise PreconditionError(f"Site directory '{site_path}' does not exist")

        staging_raw = str(raw.get("staging_root") or "").strip()
        staging_root = Path(staging_raw).expanduser() if staging_raw else DEFAULT_STAGING_ROOT

        excludes = raw.get("exclude_paths", []) or []
        if isinstance(excludes, str):
            excludes = [excludes]

        manifest_raw = str(raw.get("manifest_dir") or DEFAULT_MANIFEST_DIR)
        manifest_dir = manifest_raw.strip().strip("/")
        manifest_name = str(raw.get("manifest_name") or DEFAULT_MANIFEST_NAME).strip()
        if manifest_dir in ("", "."):
            raise PreconditionError(
                f"deploy.manifest_dir must name a subdirectory of the site, got '{manifest_raw}'"
            )
        if "/" in manifest_name:
            raise PreconditionError(f"deploy.manifest_name must be a plain file name, got '{manifest_name}'")

        return cls(
            site_dir=site_path,
            bucket=bucket_name,
            staging_root=staging_root,
            manifest=ManifestLocation(
                directory=manifest_dir,
                filename=manifest_name,
            ),
            manifest_acl=str(raw.get("manifest_acl") or DEFAULT_MANIFEST_ACL),
            homepage=str(raw.get("homepage") or HOMEPAGE_PATH),
            exclude_paths=tuple(str(item) for item in excludes),
            hasher=str(raw.get("hasher") or "shell"),
            aws_binary=str(aws.get("binary") or "aws"),
            aws_profile=str(aws.get("profile") or ""),
            aws_region=str(aws.get("region") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site_dir": str(self.site_dir),
            "bucket": self.bucket,
            "staging_dir": str(self.staging_dir),
            "manifest": self.manifest.key,
            "manifest_acl": self.manifest_acl,
            "homepage": self.homepage,
            "exclude_paths": list(self.exclude_paths),
            "hasher": self.hasher,
        }


@dataclass
class DeployResult:
    """Outcome of a deploy that ran to completion."""

    plan: DeploymentPlan
    report: ExecutionReport
    local_files: int = 0
    remote_files: int = 0

    @property
    def mode(self) -> str:
        return self.plan.mode

    def summary(self) -> str:
        if self.plan.is_empty:
            return "Site already up to date; nothing deployed"
        return (
            f"{self.mode} deploy finished: {self.report.stages_completed} stage(s), "
            f"{self.report.deleted_objects} object(s) deleted"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "local_files": self.local_files,
            "remote_files": self.remote_files,
            "plan": self.plan.to_dict(),
            "report": self.report.to_dict(),
        }


class Deployer:
    """Wires hashing, diffing, planning and execution together for one bucket."""

    def __init__(
        self,
        settings: DeploySettings,
        *,
        store: Optional[ObjectStore] = None,
        stager: Optional[FileStager] = None,
        hasher: Optional[SiteHasher] = None,
        logger: Optional[logging.Logger] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.settings = settings
        self.logger = logger or logging.getLogger("sitedeploy.deploy.deployer")
        self.store = store or AwsCliObjectStore(
            binary=settings.aws_binary,
            profile=settings.aws_profile,
            region=settings.aws_region,
            scratch_dir=settings.staging_dir,
        )
        self.stager = stager or LocalFileStager()
        self.hasher = hasher or build_hasher(settings.hasher)
        self.progress_callback = progress_callback

    def deploy(self) -> DeployResult:
        """Deploy the site; raises DeployError on the first failure."""
        local, remote = self.collect_snapshots()
        plan = self.build_plan(local, remote)

        executor = StageExecutor(
            self.store,
            self.stager,
            ExecutionContext(
                site_dir=self.settings.site_dir,
                bucket=self.settings.bucket,
                staging_dir=self.settings.staging_dir,
                manifest=self.settings.manifest,
            ),
            logger=self.logger,
            progress_callback=self.progress_callback,
        )
        report = executor.execute(plan)
        self.logger.info("DEPLOY DONE!")
        return DeployResult(plan=plan, report=report, local_files=len(local), remote_files=len(remote))

    def plan(self) -> DeploymentPlan:
        """Compute the plan a deploy would run, without mutating the bucket."""
        local, remote = self.collect_snapshots()
        return self.build_plan(local, remote)

    def collect_snapshots(self) -> Tuple[Snapshot, Snapshot]:
        reset_staging_dir(self.settings.staging_dir, self.settings.staging_root)
        local = self.local_snapshot()
        remote = self.remote_snapshot()
        return local, remote

    def local_snapshot(self) -> Snapshot:
        """Hash the site tree and load the manifest it produced."""
        settings = self.settings
        manifest_path = settings.local_manifest_path
        self.logger.debug("Creating checksums on %s", manifest_path)
        self.hasher.write_manifest(settings.site_dir, manifest_path, settings.exclude_paths)

        self.logger.debug("Getting checksums from %s", manifest_path)
        snapshot = read_manifest(manifest_path)
        if not snapshot:
            raise PreconditionError(f"Local site {settings.site_dir} IS EMPTY")
        return snapshot

    def remote_snapshot(self) -> Snapshot:
        """Fetch the last committed manifest; empty when there is none."""
        self.logger.debug("Getting last deployed release checksums...")
        raw = self.store.get_object_contents(self.settings.manifest_uri)
        self.logger.debug("Got %d bytes", len(raw))
        snapshot = parse_manifest(raw)
        if not snapshot:
            self.logger.warning(
                "No checksums data to be parsed on %s. Response size: %d",
                self.settings.manifest.key,
                len(raw),
            )
        return snapshot

    def build_plan(self, local: Snapshot, remote: Snapshot) -> DeploymentPlan:
        settings = self.settings
        if not remote:
            self.logger.info("Deploy: FULL")
            return plan_full(
                manifest=settings.manifest,
                manifest_acl=settings.manifest_acl,
                exclude_paths=settings.exclude_paths,
            )

        self.logger.info("Deploy: INCREMENTAL")
        changes = compute_changes(local, remote)
        self.logger.info("Changes: %s", changes.summary())
        return plan_incremental(
            changes,
            homepage=settings.homepage,
            manifest=settings.manifest,
            manifest_acl=settings.manifest_acl,
        )


__all__ = ["DEFAULT_STAGING_ROOT", "DeploySettings", "DeployResult", "Deployer"]
