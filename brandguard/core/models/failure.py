"""
Failure taxonomy and the result type returned by public operations.

Every non-success path of the rule service and the upstream orchestrator
produces a Failure whose ``kind`` names exactly one class of problem, plus
the context the HTTP boundary needs to render it (field, upstream status,
raw upstream body, per-field issues).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class FailureKind(str, Enum):
    """Closed set of failure classes."""

    VALIDATION = "VALIDATION"
    UNPROCESSABLE_ENTITY = "UNPROCESSABLE_ENTITY"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_CONFIG_ERROR = "UPSTREAM_CONFIG_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class FieldIssue(BaseModel):
    """A single violated field: dotted path plus reason."""

    path: str
    reason: str

    def render(self) -> str:
        return f"{self.path}: {self.reason}"


class Failure(BaseModel):
    """
    Classified failure.

    Attributes:
        kind: Failure class discriminant
        message: Human readable summary
        field: Offending input field (caller input failures)
        status: Upstream HTTP status (UPSTREAM_ERROR only)
        body: Raw upstream response body (UPSTREAM_ERROR only)
        issues: Every violated field (rule schema failures)
    """

    kind: FailureKind
    message: str
    field: str | None = None
    status: int | None = None
    body: str | None = None
    issues: list[FieldIssue] = Field(default_factory=list)


class Outcome(BaseModel):
    """
    Result of a public operation: either a value or a Failure, never both.

    ``value`` is returned untouched, so upstream payloads round-trip exactly.
    """

    value: Any = None
    failure: Failure | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> "Outcome":
        if self.failure is not None and self.value is not None:
            raise ValueError("an Outcome carries either a value or a failure")
        return self

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def kind(self) -> FailureKind | None:
        return self.failure.kind if self.failure else None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failed(cls, failure: Failure) -> "Outcome":
        return cls(failure=failure)
