"""
Rule set validation.

Validates an untyped value against the V2 RuleSet schema. Validation is
total: it either returns the validated RuleSet or a ValidationFailure that
lists every violated field, never raising for bad data.
"""

from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from brandguard.core.errors import RuleSchemaError
from brandguard.core.models.failure import Failure, FailureKind, FieldIssue
from brandguard.core.models.rule_set import RuleSet
from brandguard.observability.logger import get_logger
from brandguard.observability.metrics import record_validation

logger = get_logger(__name__)

ISSUE_SEPARATOR = "; "


def format_location(loc: tuple[Any, ...]) -> str:
    """Render a Pydantic error location as a dotted field path."""
    if not loc:
        return "(root)"
    return ".".join(str(part) for part in loc)


class ValidationFailure(BaseModel):
    """Every schema violation found in a rule document."""

    issues: list[FieldIssue] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return ISSUE_SEPARATOR.join(issue.render() for issue in self.issues)

    @property
    def paths(self) -> list[str]:
        return [issue.path for issue in self.issues]

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationFailure":
        return cls(
            issues=[
                FieldIssue(path=format_location(error["loc"]), reason=error["msg"])
                for error in exc.errors()
            ]
        )

    def to_error(self) -> RuleSchemaError:
        return RuleSchemaError(self.message, issues=self.issues)

    def to_failure(self) -> Failure:
        return Failure(kind=FailureKind.UNPROCESSABLE_ENTITY, message=self.message, issues=self.issues)


def validate_rules(value: Any) -> RuleSet | ValidationFailure:
    """
    Validate a parsed rule document.

    Args:
        value: Untyped value, typically the output of parse_rules_body

    Returns:
        The validated RuleSet with defaults applied, or a ValidationFailure
        whose message joins every "path: reason" with "; "
    """
    try:
        rule_set = RuleSet.model_validate(value)
    except PydanticValidationError as e:
        failure = ValidationFailure.from_pydantic(e)
        record_validation(False, failure.paths)
        logger.info(
            "Rule set rejected",
            extra={"issue_count": len(failure.issues), "paths": failure.paths[:20]},
        )
        return failure

    record_validation(True)
    return rule_set


def require_valid_rules(value: Any) -> RuleSet:
    """
    Validate a parsed rule document, raising on failure.

    Raises:
        RuleSchemaError: If the document violates the schema
    """
    result = validate_rules(value)
    if isinstance(result, ValidationFailure):
        raise result.to_error()
    return result
