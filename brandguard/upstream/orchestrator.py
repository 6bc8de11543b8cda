"""
Orchestration of the external evaluate and fix workflows.

Both operations make a single JSON POST to a configured endpoint, bounded
by a deadline over the whole exchange, and classify every failure into the
closed FailureKind taxonomy. The HTTP client is scoped by a ``with`` block
and closed on every exit path, which also drops a request still in flight.
Stored evaluations can be looked up by id or as the newest for a brand and
rule set.
"""

import concurrent.futures
import time
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from brandguard.config import UpstreamSettings
from brandguard.core.errors import (
    BrandGuardError,
    DatabaseError,
    NotFoundError,
    UpstreamConfigError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from brandguard.core.models import EvaluateRequest, EvaluationResultRecord, FailureKind, Outcome
from brandguard.observability.logger import get_logger, log_operation
from brandguard.observability.metrics import (
    record_upstream_outcome,
    track_duration,
    upstream_request_duration_seconds,
)
from brandguard.persistence.base import EvaluationRepository, EvaluationResultRepository
from brandguard.utils.validation import validate_asset_reference, validate_identifier

logger = get_logger(__name__)

ASSET_TYPES = ("IMAGE", "VIDEO")
RESULT_URL_KEYS = ("resultUrl", "url")

ClientFactory = Callable[[float], httpx.Client]


def default_client_factory(timeout_seconds: float) -> httpx.Client:
    return httpx.Client(timeout=timeout_seconds)


def read_response(client: httpx.Client, url: str, body: dict[str, Any]) -> httpx.Response:
    """POST ``body`` as JSON and read the whole response body."""
    with client.stream("POST", url, json=body) as response:
        response.read()
    return response


def extract_result_url(payload: Any) -> str | None:
    """First truthy value under ``resultUrl`` then ``url``, if it is a string."""
    if not isinstance(payload, Mapping):
        return None
    candidate = next((payload[key] for key in RESULT_URL_KEYS if payload.get(key)), None)
    return candidate if isinstance(candidate, str) else None


class UpstreamOrchestrator:
    """
    Evaluate assets and request fixes through the upstream workflow engine.

    Construct once at process start and reuse; the instance holds no
    per-call state.
    """

    def __init__(
        self,
        settings: UpstreamSettings,
        evaluations: EvaluationRepository,
        results: EvaluationResultRepository,
        client_factory: ClientFactory | None = None,
    ):
        """
        Args:
            settings: Endpoints and timeouts
            evaluations: Where successful evaluations are recorded
            results: Where fix workflow outputs are recorded
            client_factory: Builds an httpx.Client for a timeout in seconds
        """
        self.settings = settings
        self.evaluations = evaluations
        self.results = results
        self.client_factory = client_factory or default_client_factory

    # =======================
    # PUBLIC OPERATIONS
    # =======================

    def evaluate(self, request: EvaluateRequest | Mapping[str, Any]) -> Outcome:
        """
        Evaluate an asset against a brand rule set.

        Returns:
            Outcome whose value is the upstream JSON payload, unchanged
        """
        try:
            payload = self._evaluate(request)
        except BrandGuardError as e:
            return self._failed("evaluate", e)

        record_upstream_outcome("evaluate", "success")
        return Outcome.success(payload)

    def fix(self, evaluation_id: Any) -> Outcome:
        """
        Ask the fix workflow to repair a failed evaluation.

        Returns:
            Outcome whose value is the created EvaluationResultRecord
        """
        try:
            created = self._fix(evaluation_id)
        except BrandGuardError as e:
            return self._failed("fix", e)

        record_upstream_outcome("fix", "success")
        return Outcome.success(created)

    def list_results(self, evaluation_id: Any) -> Outcome:
        """Stored fix results for an evaluation, newest first."""
        try:
            evaluation_id = validate_identifier(evaluation_id, "evaluationId")
            return Outcome.success(self.results.list_by_evaluation_id(evaluation_id))
        except BrandGuardError as e:
            return Outcome.failed(e.to_failure())

    def get_evaluation(self, evaluation_id: Any) -> Outcome:
        """Stored evaluation by id, or NOT_FOUND."""
        try:
            evaluation_id = validate_identifier(evaluation_id, "evaluationId")
            evaluation = self.evaluations.find_evaluation_by_id(evaluation_id)
            if evaluation is None:
                raise NotFoundError(f"Evaluation not found: {evaluation_id}")
            return Outcome.success(evaluation)
        except BrandGuardError as e:
            return Outcome.failed(e.to_failure())

    def latest_evaluation(self, brand_id: Any, rule_id: Any) -> Outcome:
        """
        Most recent stored evaluation for a brand and rule set.

        Returns:
            Outcome whose value is an EvaluationRecord; NOT_FOUND when the
            pair has never been evaluated
        """
        try:
            brand_id = validate_identifier(brand_id, "brandId")
            rule_id = validate_identifier(rule_id, "ruleId")
            evaluation = self.evaluations.find_latest_by_brand_and_rule(brand_id, rule_id)
            if evaluation is None:
                raise NotFoundError(f"No evaluation for brand {brand_id} and rule {rule_id}")
            return Outcome.success(evaluation)
        except BrandGuardError as e:
            return Outcome.failed(e.to_failure())

    # =======================
    # INTERNALS
    # =======================

    def _evaluate(self, request: EvaluateRequest | Mapping[str, Any]) -> Any:
        request = self._read_request(request).normalized()

        brand_id = validate_identifier(request.brand_id, "brandId")
        rule_id = validate_identifier(request.rule_id, "ruleId")
        asset_url = validate_asset_reference(request.asset_url, "assetUrl")
        if request.asset_type not in ASSET_TYPES:
            raise ValidationError("Missing or invalid assetType", field="assetType")

        request = request.model_copy(update={"brand_id": brand_id, "rule_id": rule_id, "asset_url": asset_url})

        url = self.settings.evaluate_url
        if not url:
            raise UpstreamConfigError("EVALUATE_URL is not configured")

        with log_operation("upstream evaluate", logger=logger, brand_id=brand_id, rule_id=rule_id):
            response = self._post("evaluate", url, request.upstream_body(), self.settings.evaluate_timeout_ms)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Upstream returned a response that is not JSON",
                status=response.status_code,
                body=response.text,
            ) from e

        self.evaluations.create_evaluation(request, payload)
        return payload

    def _fix(self, evaluation_id: Any) -> EvaluationResultRecord:
        evaluation_id = validate_identifier(evaluation_id, "evaluationId")

        evaluation = self.evaluations.find_evaluation_by_id(evaluation_id)
        if evaluation is None:
            raise NotFoundError(f"Evaluation not found: {evaluation_id}")

        url = self.settings.fix_url
        if not url:
            raise UpstreamConfigError("FIX_URL is not configured")

        with log_operation("upstream fix", logger=logger, evaluation_id=evaluation_id):
            response = self._post(
                "fix", url, {"evaluation": evaluation.to_document()}, self.settings.fix_timeout_ms
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        result_url = extract_result_url(payload)
        if not result_url:
            raise DatabaseError("Upstream did not return a resultUrl")

        return self.results.create_result(evaluation_id, result_url, payload)

    def _read_request(self, request: EvaluateRequest | Mapping[str, Any]) -> EvaluateRequest:
        if isinstance(request, EvaluateRequest):
            return request
        try:
            return EvaluateRequest.model_validate(request)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "body"
            raise ValidationError(f"Missing or invalid {field}", field=field) from e

    def _post(self, operation: str, url: str, body: dict[str, Any], timeout_ms: int) -> httpx.Response:
        """
        POST a JSON body and return a successful, fully read response.

        ``timeout_ms`` bounds the whole exchange (connect, send, headers and
        body). When it runs out the client is closed, which drops the
        connection under the in-flight request, and the call is reported as
        timed out without waiting for the request to unwind.

        Raises:
            UpstreamTimeoutError: If the call did not finish within timeout_ms
            UpstreamError: If the call failed or returned a non-2xx status
        """
        timeout_seconds = timeout_ms / 1000
        deadline = time.monotonic() + timeout_seconds
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"upstream-{operation}")
        try:
            with self.client_factory(timeout_seconds) as client:
                with track_duration(upstream_request_duration_seconds, operation=operation):
                    future = executor.submit(read_response, client, url, body)
                    try:
                        response = future.result(timeout=max(deadline - time.monotonic(), 0))
                    except concurrent.futures.TimeoutError as e:
                        future.cancel()
                        raise UpstreamTimeoutError(f"Upstream request exceeded {timeout_ms} ms") from e
                    except httpx.TimeoutException as e:
                        raise UpstreamTimeoutError("Upstream request timed out") from e
                    except httpx.HTTPError as e:
                        raise UpstreamError(f"Upstream request failed: {e}") from e
        finally:
            executor.shutdown(wait=False)

        if not response.is_success:
            raise UpstreamError(
                "Upstream service returned an error",
                status=response.status_code,
                body=response.text,
            )

        return response

    def _failed(self, operation: str, error: BrandGuardError) -> Outcome:
        failure = error.to_failure()
        record_upstream_outcome(operation, failure.kind.value)

        extra = {"operation": operation, "kind": failure.kind.value, "upstream_status": failure.status}
        if failure.kind is FailureKind.UPSTREAM_CONFIG_ERROR:
            logger.error(f"Upstream {operation} is misconfigured: {failure.message}", extra=extra)
        elif failure.kind in (FailureKind.VALIDATION, FailureKind.NOT_FOUND):
            logger.info(f"Rejected {operation} request: {failure.message}", extra=extra)
        else:
            logger.warning(f"Upstream {operation} failed: {failure.message}", extra=extra)

        return Outcome.failed(failure)
