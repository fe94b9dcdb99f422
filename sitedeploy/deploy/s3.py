"""Object store client backed by the AWS command line interface."""

from __future__ import annotations

import logging
from pathlib import Path
import shlex
import subprocess
import tempfile
from typing import Dict, List, Optional, Sequence, Tuple, Type, Union

from .collaborators import ObjectStore
from .errors import AclError, DeployError, TransferError

logger = logging.getLogger("sitedeploy.deploy.s3")

OptionValue = Union[bool, Sequence[str]]


def standardize_options(positional: Sequence[str], options: Dict[str, OptionValue]) -> List[str]:
    """Flatten CLI options the way ``aws s3`` expects them.

    List values repeat their flag once per item, ``True`` keeps a bare flag,
    ``False`` and empty lists drop it. ``--only-show-errors`` is always
    appended.
    """
    args = list(positional)
    for flag, value in options.items():
        if isinstance(value, bool):
            if value:
                args.append(flag)
            continue
        for item in value:
            args.extend([flag, item])
    args.append("--only-show-errors")
    return args


def filter_args(filters: Sequence[Tuple[str, str]]) -> List[str]:
    """Render ordered (kind, pattern) rules as `--exclude` / `--include` flags, order kept."""
    args: List[str] = []
    for kind, pattern in filters:
        args.extend([f"--{kind}", pattern])
    return args


class AwsCliObjectStore(ObjectStore):
    """Runs ``aws s3`` / ``aws s3api`` commands and maps failures to deploy errors."""

    def __init__(
        self,
        binary: str = "aws",
        profile: str = "",
        region: str = "",
        scratch_dir: Optional[Path] = None,
    ):
        self.binary = binary
        self.profile = profile
        self.region = region
        self.scratch_dir = scratch_dir

    def base_command(self) -> List[str]:
        cmd = [self.binary]
        if self.profile:
            cmd.extend(["--profile", self.profile])
        if self.region:
            cmd.extend(["--region", self.region])
        return cmd

    def copy(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        recursive: bool = False,
    ) -> None:
        args = standardize_options(["cp", source, dest, *filter_args(filters)], {"--recursive": recursive})
        self._exec("s3", args, TransferError)

    def remove(self, uri: str, *, recursive: bool = False) -> None:
        args = standardize_options(["rm", uri], {"--recursive": recursive})
        self._exec("s3", args, TransferError)

    def sync(
        self,
        source: str,
        dest: str,
        *,
        filters: Sequence[Tuple[str, str]] = (),
        delete: bool = False,
    ) -> None:
        args = standardize_options(["sync", source, dest, *filter_args(filters)], {"--delete": delete})
        self._exec("s3", args, TransferError)

    def set_object_acl(self, bucket: str, key: str, acl: str) -> None:
        args = ["put-object-acl", "--bucket", bucket, "--key", key, "--acl", acl]
        self._exec("s3api", args, AclError)

    def get_object_contents(self, uri: str) -> bytes:
        try:
            if self.scratch_dir is not None:
                self.scratch_dir.mkdir(parents=True, exist_ok=True)
            scratch = tempfile.TemporaryDirectory(dir=self.scratch_dir)
        except OSError as exc:
            raise TransferError(f"Cannot prepare scratch space to fetch {uri}: {exc}", operation="cp") from exc
        with scratch as tmp:
            target = Path(tmp) / "object.tmp"
            try:
                self.copy(uri, str(target))
            except TransferError as exc:
                logger.warning("Error getting %s: %s", uri, exc)
                return b""
            if not target.is_file():
                return b""
            return target.read_bytes()

    def _exec(self, service: str, args: Sequence[str], error_cls: Type[DeployError]) -> None:
        cmd = [*self.base_command(), service, *args]
        logger.debug("Executing: %s", " ".join(shlex.quote(part) for part in cmd))
        try:
            completed = _run_aws(cmd)
        except FileNotFoundError as exc:
            raise error_cls(f"AWS CLI '{self.binary}' is not available: {exc}", operation=args[0]) from exc
        except OSError as exc:
            raise error_cls(f"Could not run AWS CLI '{self.binary}': {exc}", operation=args[0]) from exc
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise error_cls(
                f"aws {service} {args[0]} failed with exit code {completed.returncode}: {detail}",
                operation=args[0],
            )


def _run_aws(cmd: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(cmd),
        check=False,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )


__all__ = ["AwsCliObjectStore", "filter_args", "standardize_options"]
