"""
Unit tests for outcome rendering at the HTTP boundary.
"""

from datetime import datetime, timezone

import pytest

from brandguard.api import render_failure, render_outcome
from brandguard.core.errors import (
    DatabaseError,
    NotFoundError,
    RuleSchemaError,
    UpstreamConfigError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from brandguard.core.models import EvaluationResultRecord, Failure, FailureKind, FieldIssue, Outcome


@pytest.mark.parametrize("error,status,code", [
    (ValidationError("Missing or invalid brandId", field="brandId"), 400, "BAD_REQUEST"),
    (RuleSchemaError("voice: Field required"), 422, "UNPROCESSABLE_ENTITY"),
    (NotFoundError("Evaluation not found: e1"), 404, "NOT_FOUND"),
    (UpstreamTimeoutError("Upstream request timed out"), 504, "UPSTREAM_TIMEOUT"),
    (UpstreamError("Upstream service returned an error", status=502, body="bad"), 502, "UPSTREAM_ERROR"),
    (UpstreamConfigError("FIX_URL is not configured"), 500, "UPSTREAM_CONFIG_ERROR"),
    (DatabaseError("Upstream did not return a resultUrl"), 500, "DATABASE_ERROR"),
])
def test_status_and_code_per_kind(error, status, code):
    rendered_status, body = render_failure(error.to_failure())

    assert rendered_status == status
    assert body["code"] == code
    assert body["message"] == error.message


def test_validation_failure_names_field():
    _, body = render_failure(ValidationError("Missing or invalid assetUrl", field="assetUrl").to_failure())
    assert body == {"code": "BAD_REQUEST", "message": "Missing or invalid assetUrl", "field": "assetUrl"}


def test_upstream_error_carries_status_and_details():
    _, body = render_failure(UpstreamError("Upstream service returned an error", status=503, body="down").to_failure())

    assert body["upstreamStatus"] == 503
    assert body["details"] == "down"


def test_schema_failure_lists_issues():
    issues = [FieldIssue(path="voice.traits.humor.0", reason="Input should be greater than or equal to 1")]
    failure = Failure(kind=FailureKind.UNPROCESSABLE_ENTITY, message=issues[0].render(), issues=issues)

    _, body = render_failure(failure)

    assert body["issues"] == [{"path": "voice.traits.humor.0", "reason": "Input should be greater than or equal to 1"}]


def test_raw_payload_round_trips():
    payload = {"resultUrl": "https://cdn.example.com/x.png", "extra": True, "nested": [None, 1.5]}
    assert render_outcome(Outcome.success(payload)) == (200, payload)


def test_records_are_serialized():
    record = EvaluationResultRecord(
        id="r1",
        evaluation_id="e1",
        url="https://cdn.example.com/x.png",
        payload={"k": "v"},
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )

    status, body = render_outcome(Outcome.success([record]), success_status=201)

    assert status == 201
    assert body[0]["evaluationId"] == "e1"
    assert body[0]["createdAt"].startswith("2024-05-01T00:00:00")


def test_outcome_is_exclusive():
    with pytest.raises(ValueError):
        Outcome(value={"a": 1}, failure=Failure(kind=FailureKind.NOT_FOUND, message="x"))
