"""
Rendering of outcomes for the HTTP boundary.

Maps each FailureKind to its HTTP status and JSON body. The UPSTREAM_*
codes are preserved in the body so operators can tell a deployment problem
(UPSTREAM_CONFIG_ERROR) from an outage of the workflow engine.
"""

from typing import Any

from pydantic import BaseModel

from brandguard.core.models import Failure, FailureKind, Outcome

STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.VALIDATION: 400,
    FailureKind.UNPROCESSABLE_ENTITY: 422,
    FailureKind.NOT_FOUND: 404,
    FailureKind.UPSTREAM_TIMEOUT: 504,
    FailureKind.UPSTREAM_ERROR: 502,
    FailureKind.UPSTREAM_CONFIG_ERROR: 500,
    FailureKind.DATABASE_ERROR: 500,
}

# Wire codes; caller input failures keep the historical BAD_REQUEST code
CODE_BY_KIND: dict[FailureKind, str] = {
    FailureKind.VALIDATION: "BAD_REQUEST",
    FailureKind.UNPROCESSABLE_ENTITY: "UNPROCESSABLE_ENTITY",
    FailureKind.NOT_FOUND: "NOT_FOUND",
    FailureKind.UPSTREAM_TIMEOUT: "UPSTREAM_TIMEOUT",
    FailureKind.UPSTREAM_ERROR: "UPSTREAM_ERROR",
    FailureKind.UPSTREAM_CONFIG_ERROR: "UPSTREAM_CONFIG_ERROR",
    FailureKind.DATABASE_ERROR: "DATABASE_ERROR",
}


def render_failure(failure: Failure) -> tuple[int, dict[str, Any]]:
    """
    HTTP status and JSON body for a failure.

    Examples:
        >>> render_failure(Failure(kind=FailureKind.NOT_FOUND, message="gone"))
        (404, {'code': 'NOT_FOUND', 'message': 'gone'})
    """
    body: dict[str, Any] = {"code": CODE_BY_KIND[failure.kind], "message": failure.message}

    if failure.kind is FailureKind.VALIDATION and failure.field:
        body["field"] = failure.field
    elif failure.kind is FailureKind.UNPROCESSABLE_ENTITY and failure.issues:
        body["issues"] = [issue.model_dump() for issue in failure.issues]
    elif failure.kind is FailureKind.UPSTREAM_ERROR:
        body["upstreamStatus"] = failure.status
        body["details"] = failure.body

    return STATUS_BY_KIND[failure.kind], body


def to_json_value(value: Any) -> Any:
    """JSON-compatible form of an outcome value (records, lists of records, raw payloads)."""
    if hasattr(value, "to_document"):
        return value.to_document()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_json_value(item) for item in value]
    return value


def render_outcome(outcome: Outcome, success_status: int = 200) -> tuple[int, Any]:
    """
    HTTP status and JSON body for any outcome.

    Successful values are passed through unchanged apart from record
    serialization, so a raw upstream payload (even JSON null) round-trips.
    """
    if outcome.failure is not None:
        return render_failure(outcome.failure)
    return success_status, to_json_value(outcome.value)
