"""Per-step outcome records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Literal

__all__ = ["StepError", "StepErrorKind", "StepFailure", "StepOutcome", "StepResult"]

StepErrorKind = Literal["invalid_step", "step_execution_error"]


class StepOutcome(StrEnum):
    SUCCESS = "Success"
    FAILED = "Failed"


@dataclass(frozen=True, slots=True)
class StepFailure:
    """Error value a step returns in `Err(...)` when it fails cleanly.

    Attributes:
        message: One-line description of what went wrong
        detail: Optional structured detail (tool output, missed items, ...)
    """

    message: str
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class StepError:
    """Why a step failed.

    `exception` is set only when the step raised instead of returning Err.
    """

    kind: StepErrorKind
    message: str
    detail: str | None = None
    exception: BaseException | None = None


@dataclass(frozen=True, slots=True)
class StepResult:
    name: str
    outcome: StepOutcome
    start_time: datetime
    duration: timedelta
    error: StepError | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is StepOutcome.SUCCESS

    def as_dict(self) -> dict[str, object]:
        """JSON-friendly record, as emitted in pass-through mode."""
        error: dict[str, object] | None = None
        if self.error is not None:
            error = {
                "kind": self.error.kind,
                "message": self.error.message,
                "detail": self.error.detail,
            }
        return {
            "name": self.name,
            "outcome": str(self.outcome),
            "start_time": self.start_time.isoformat(),
            "duration_seconds": round(self.duration.total_seconds(), 3),
            "error": error,
        }
