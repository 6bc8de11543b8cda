"""
Typed exceptions used inside brandguard.

Each exception knows its FailureKind. Public operations catch them at their
boundary and convert them with ``to_failure()``; they never escape as
exceptions to callers of the service or orchestrator APIs.
"""

from brandguard.core.models.failure import Failure, FailureKind, FieldIssue


class BrandGuardError(Exception):
    """Base class for classified brandguard errors."""

    kind: FailureKind = FailureKind.DATABASE_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message, field=self.field)


class ValidationError(BrandGuardError):
    """Caller-supplied input is missing or malformed."""

    kind = FailureKind.VALIDATION
    code = "BAD_REQUEST"


class RuleBodyParseError(ValidationError):
    """A rules body could not be parsed as JSON or YAML."""


class RuleSchemaError(BrandGuardError):
    """A parsed rule document violates the rule set schema."""

    kind = FailureKind.UNPROCESSABLE_ENTITY
    code = "UNPROCESSABLE_ENTITY"

    def __init__(self, message: str, issues: list[FieldIssue] | None = None):
        super().__init__(message)
        self.issues = issues or []

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message, issues=self.issues)


class NotFoundError(BrandGuardError):
    """A referenced entity does not exist."""

    kind = FailureKind.NOT_FOUND
    code = "NOT_FOUND"


class UpstreamConfigError(BrandGuardError):
    """An upstream endpoint is not configured."""

    kind = FailureKind.UPSTREAM_CONFIG_ERROR
    code = "UPSTREAM_CONFIG_ERROR"


class UpstreamTimeoutError(BrandGuardError):
    """The upstream call did not complete within the configured window."""

    kind = FailureKind.UPSTREAM_TIMEOUT
    code = "UPSTREAM_TIMEOUT"


class UpstreamError(BrandGuardError):
    """The upstream rejected the call or could not be reached."""

    kind = FailureKind.UPSTREAM_ERROR
    code = "UPSTREAM_ERROR"

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message, status=self.status, body=self.body)


class DatabaseError(BrandGuardError):
    """Local persistence failed."""

    kind = FailureKind.DATABASE_ERROR
    code = "DATABASE_ERROR"
