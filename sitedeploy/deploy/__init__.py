"""Incremental static site deploys for S3 buckets."""

from __future__ import annotations

from .classify import ClassifiedPaths, PathClass, classify_paths
from .collaborators import FileStager, ObjectStore, SiteHasher
from .deployer import Deployer, DeployResult, DeploySettings
from .diff import ChangeSet, compute_changes
from .errors import AclError, DeployError, HashingError, PreconditionError, StagingError, TransferError
from .executor import ExecutionContext, ExecutionReport, StageExecutor
from .hasher import PythonHasher, ShellHasher, build_hasher
from .plan import DeploymentPlan, Stage, StageGroup, StageOperation, plan_full, plan_incremental
from .s3 import AwsCliObjectStore
from .snapshot import HOMEPAGE_PATH, ManifestLocation, Snapshot, parse_manifest, serialize_manifest
from .stager import LocalFileStager, reset_staging_dir

__all__ = [
    # Snapshots
    "HOMEPAGE_PATH",
    "ManifestLocation",
    "Snapshot",
    "parse_manifest",
    "serialize_manifest",
    # Diff / classification
    "ChangeSet",
    "compute_changes",
    "ClassifiedPaths",
    "PathClass",
    "classify_paths",
    # Planning
    "DeploymentPlan",
    "Stage",
    "StageGroup",
    "StageOperation",
    "plan_full",
    "plan_incremental",
    # Execution
    "ExecutionContext",
    "ExecutionReport",
    "StageExecutor",
    # Collaborators
    "FileStager",
    "ObjectStore",
    "SiteHasher",
    "AwsCliObjectStore",
    "LocalFileStager",
    "PythonHasher",
    "ShellHasher",
    "build_hasher",
    "reset_staging_dir",
    # Orchestration
    "Deployer",
    "DeployResult",
    "DeploySettings",
    # Errors
    "DeployError",
    "PreconditionError",
    "HashingError",
    "StagingError",
    "TransferError",
    "AclError",
]
