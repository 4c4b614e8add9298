"""
Operation results.

Every operation reports a kind of outcome plus a human readable detail
instead of a bare boolean.
"""

from dataclasses import dataclass, field
from enum import Enum


class ResultKind(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"  # finished, but some fonts were not matched
    INSPECTION_FAILED = "inspection_failed"
    TOOL_FAILED = "tool_failed"
    PIPELINE_FAILED = "pipeline_failed"


@dataclass(frozen=True)
class Result:
    """Outcome of a single-file operation."""

    kind: ResultKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind in (ResultKind.OK, ResultKind.DEGRADED)

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, detail: str = "") -> "Result":
        return cls(ResultKind.OK, detail)

    @classmethod
    def degraded(cls, detail: str) -> "Result":
        return cls(ResultKind.DEGRADED, detail)

    @classmethod
    def inspection_failed(cls, detail: str) -> "Result":
        return cls(ResultKind.INSPECTION_FAILED, detail)

    @classmethod
    def tool_failed(cls, detail: str) -> "Result":
        return cls(ResultKind.TOOL_FAILED, detail)

    @classmethod
    def pipeline_failed(cls, detail: str) -> "Result":
        return cls(ResultKind.PIPELINE_FAILED, detail)


@dataclass(frozen=True)
class SubsetVerdict:
    """Whether a container already carries subsetted fonts for its ASS tracks."""

    complete: bool
    inspection_failed: bool = False


@dataclass
class BatchReport:
    """
    Aggregate of one batch run.

    ``items`` carries flow-specific output, e.g. the files that still need
    subsetting for a query run.
    """

    total: int = 0
    failed: int = 0
    items: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def __bool__(self) -> bool:
        return self.ok
