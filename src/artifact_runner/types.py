from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExecutionStatus(str, Enum):
    """Final status recorded on an execution result.

    Example:
        ```python
        status = ExecutionStatus("failed")
        ```
    """

    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ArtifactRequest:
    """Artifact directories a test run asked to keep.

    Example:
        ```python
        req = ArtifactRequest(volume_mount_path="/data/run-1", dirs=["logs", "reports"])
        ```
    """

    volume_mount_path: str
    dirs: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Completed test run handed to the capture step.

    Example:
        ```python
        execution = ExecutionRequest(id="65a1f0c2", artifact_request=None)
        ```
    """

    id: str
    artifact_request: ArtifactRequest | None = None


@dataclass(slots=True)
class ExecutionResult:
    """Outcome of the capture step with an append-only error log.

    Example:
        ```python
        result = ExecutionResult().with_errors(ValueError("boom"))
        ```
    """

    status: ExecutionStatus | None = None
    errors: list[str] = field(default_factory=list)

    def with_errors(self, *errors: BaseException | None) -> "ExecutionResult":
        """Append messages of the non-empty errors and mark the result failed.

        Example:
            ```python
            result = ExecutionResult().with_errors(None, OSError("disk full"))
            ```
        """
        messages = [str(err) for err in errors if err is not None]
        if messages:
            self.errors.extend(messages)
            self.status = ExecutionStatus.FAILED
        return self

    @property
    def error_message(self) -> str:
        """Return all recorded messages joined by newlines.

        Example:
            ```python
            text = ExecutionResult(errors=["a", "b"]).error_message
            ```
        """
        return "\n".join(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the result.

        Example:
            ```python
            payload = ExecutionResult().to_dict()
            ```
        """
        return {
            "status": self.status.value if self.status is not None else None,
            "errors": list(self.errors),
        }
