"""Data models for diffgate."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Placeholder file name for a finding that carries unparsed model output.
RAW_OUTPUT_FILE = "RAW_OUTPUT"


# ---------------------------------------------------------------------------
# Diff units
# ---------------------------------------------------------------------------

class FileDiff(BaseModel):
    """One file's section of a unified diff, header included."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str

    @field_validator("path")
    @classmethod
    def _path_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("FileDiff path must not be blank")
        return v

    def cost(self, overhead: int) -> int:
        """Characters this unit adds to a prompt, delimiter included."""
        return len(self.content) + len(self.path) + overhead


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------

class Severity(str, enum.Enum):
    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


class Finding(BaseModel):
    """A single issue reported by the model.

    ``severity`` is kept as free text: the model is asked for one of the
    :class:`Severity` labels but anything else it returns is passed through.
    """

    model_config = ConfigDict(frozen=True)

    file: str = ""
    line: int | None = None
    severity: str = Severity.INFO.value
    title: str = ""
    detail: str = ""
    suggestion: str = ""

    @field_validator("line", mode="before")
    @classmethod
    def _positive_line_or_none(cls, v: Any) -> int | None:
        if v is None or isinstance(v, bool):
            return None
        try:
            line = int(v)
        except (TypeError, ValueError, OverflowError):
            return None
        return line if line > 0 else None

    @field_validator("severity", mode="before")
    @classmethod
    def _default_severity(cls, v: Any) -> str:
        if isinstance(v, Severity):
            return v.value
        if v is None or not str(v).strip():
            return Severity.INFO.value
        return str(v)

    @property
    def is_critical(self) -> bool:
        return self.severity.upper() == Severity.CRITICAL.value


# ---------------------------------------------------------------------------
# Run outcome
# ---------------------------------------------------------------------------

class ReviewRun(BaseModel):
    files_total: int = 0
    files_reviewed: int = 0
    batches_total: int = 0
    batches_failed: int = 0
    findings: list[Finding] = Field(default_factory=list)
    report: str = ""
