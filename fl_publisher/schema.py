"""Schema contract for fault-localization input and publication output."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PushState(StrEnum):
    """Terminal state of the diff-scoped publication."""

    PUSHED = "pushed"
    NOT_PUSHED = "not_pushed"


class SuspiciousLocation(BaseModel):
    """One source line identified by its qualified class name."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    class_name: str = Field(min_length=1)
    line_number: int = Field(ge=1)


class Suspiciousness(BaseModel):
    """Confidence score for a line plus the failing tests covering it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    failing_tests: tuple[str, ...] = ()


SuspiciousnessMap = dict[SuspiciousLocation, Suspiciousness]


class SuspiciousEntry(BaseModel):
    """One ranked row of a fault-localization result file."""

    model_config = ConfigDict(extra="forbid")

    class_name: str = Field(min_length=1)
    line_number: int = Field(ge=1)
    score: float = Field(ge=0.0, le=1.0)
    failing_tests: list[str] = Field(default_factory=list)


class FaultLocalizationResult(BaseModel):
    """Ranked suspicious lines, most suspicious first."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(default="v1", pattern=r"^v\d+$")
    entries: list[SuspiciousEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_locations(self) -> FaultLocalizationResult:
        """Reject result files that list the same line twice."""
        seen: set[tuple[str, int]] = set()
        for entry in self.entries:
            key = (entry.class_name, entry.line_number)
            if key in seen:
                raise ValueError(
                    f"Duplicate suspicious location {entry.class_name}:{entry.line_number}."
                )
            seen.add(key)
        return self

    def suspiciousness_map(self) -> SuspiciousnessMap:
        """Return the entries as an ordered location to suspiciousness mapping."""
        return {
            SuspiciousLocation(class_name=entry.class_name, line_number=entry.line_number): (
                Suspiciousness(score=entry.score, failing_tests=tuple(entry.failing_tests))
            )
            for entry in self.entries
        }


class ReportDocument(BaseModel):
    """Markdown report ready to be committed to the results repository."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = Field(min_length=1)
    message: str = Field(min_length=1)
    body: str


class PublicationOutcome(BaseModel):
    """Outcome of the diff-scoped publication returned to the caller."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    state: PushState
    skip_reason: str | None = None

    @model_validator(mode="after")
    def validate_skip_reason(self) -> PublicationOutcome:
        """Require a reason exactly when nothing was pushed."""
        if self.state is PushState.NOT_PUSHED and not self.skip_reason:
            raise ValueError("skip_reason is required when state is not_pushed.")
        if self.state is PushState.PUSHED and self.skip_reason is not None:
            raise ValueError("skip_reason must be empty when state is pushed.")
        return self

    @classmethod
    def pushed(cls) -> PublicationOutcome:
        return cls(state=PushState.PUSHED)

    @classmethod
    def not_pushed(cls, reason: str) -> PublicationOutcome:
        return cls(state=PushState.NOT_PUSHED, skip_reason=reason)


def load_fault_localization_result(path: Path) -> FaultLocalizationResult:
    """Read and validate a fault-localization result JSON file."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    return FaultLocalizationResult.model_validate(payload)
