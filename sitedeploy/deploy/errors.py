"""Error taxonomy for site deploys."""

from __future__ import annotations

from typing import Any, Dict, Optional


class DeployError(RuntimeError):
    """Base class for every fatal deploy failure.

    The executor attaches stage context before re-raising so callers can log
    which operation failed and how many paths it covered.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        path_class: Optional[str] = None,
        path_count: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.path_class = path_class
        self.path_count = path_count
        self.stage_index: Optional[int] = None

    def attach_stage(self, index: int, operation: str, path_class: str, path_count: int) -> None:
        """Record the failing stage unless a more specific context is already set."""
        self.stage_index = index
        if self.operation is None:
            self.operation = operation
        if self.path_class is None:
            self.path_class = path_class
        if self.path_count is None:
            self.path_count = path_count

    def context(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "stage_index": self.stage_index,
            "path_class": self.path_class,
            "path_count": self.path_count,
        }

    def __str__(self) -> str:
        if self.stage_index is None:
            return self.message
        return (
            f"{self.message} (stage {self.stage_index + 1}: "
            f"{self.operation} {self.path_class}, {self.path_count} path(s))"
        )


class PreconditionError(DeployError):
    """The inputs make a deploy unsafe; nothing has been mutated."""


class HashingError(DeployError):
    """The local checksum pass failed."""


class StagingError(DeployError):
    """Local file preparation failed before any remote mutation."""


class TransferError(DeployError):
    """A copy, sync or removal against the object store failed."""


class AclError(DeployError):
    """Changing an object's access control failed."""


__all__ = [
    "DeployError",
    "PreconditionError",
    "HashingError",
    "StagingError",
    "TransferError",
    "AclError",
]
