"""
PostgreSQL storage for evaluations and fix results.
"""

import json
from typing import Any

from brandguard.core.models import EvaluateRequest, EvaluationRecord, EvaluationResultRecord
from brandguard.observability.logger import get_logger

from .base import EvaluationRepository, EvaluationResultRepository
from .connection import DatabaseConnectionPool, database_errors

logger = get_logger(__name__)

_EVALUATION_COLUMNS = "id, brand_id, rule_id, asset_url, asset_type, context, image_url, result, created_at"
_RESULT_COLUMNS = "id, evaluation_id, url, payload, created_at"


class PostgresEvaluationRepository(EvaluationRepository):
    """Evaluation repository backed by the ``evaluation`` table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def create_evaluation(self, request: EvaluateRequest, raw_result: Any) -> EvaluationRecord:
        """
        Persist an evaluation and the raw upstream result.

        Args:
            request: Normalized evaluate request (asset_url and asset_type set)
            raw_result: Upstream JSON payload, stored unchanged

        Returns:
            The created EvaluationRecord
        """
        asset_type = request.asset_type or "IMAGE"
        # Image assets keep the legacy image_url column populated
        image_url = request.asset_url if asset_type == "IMAGE" else None

        query = f"""
            INSERT INTO evaluation (brand_id, rule_id, asset_url, asset_type, context, image_url, result)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {_EVALUATION_COLUMNS}
        """
        params = (
            request.brand_id,
            request.rule_id,
            request.asset_url,
            asset_type,
            request.context,
            image_url,
            json.dumps(raw_result),
        )
        with database_errors("evaluation", "create"):
            rows = self.pool.execute_query(query, params)
            record = EvaluationRecord.model_validate(rows[0])

        logger.info(
            "Saved evaluation",
            extra={"evaluation_id": record.id, "brand_id": record.brand_id, "rule_id": record.rule_id},
        )
        return record

    def find_evaluation_by_id(self, evaluation_id: str) -> EvaluationRecord | None:
        query = f"SELECT {_EVALUATION_COLUMNS} FROM evaluation WHERE id = %s"
        with database_errors("evaluation", "find"):
            rows = self.pool.execute_query(query, (evaluation_id,))
            return EvaluationRecord.model_validate(rows[0]) if rows else None

    def find_latest_by_brand_and_rule(self, brand_id: str, rule_id: str) -> EvaluationRecord | None:
        query = f"""
            SELECT {_EVALUATION_COLUMNS} FROM evaluation
            WHERE brand_id = %s AND rule_id = %s
            ORDER BY created_at DESC
            LIMIT 1
        """
        with database_errors("evaluation", "find_latest"):
            rows = self.pool.execute_query(query, (brand_id, rule_id))
            return EvaluationRecord.model_validate(rows[0]) if rows else None


class PostgresEvaluationResultRepository(EvaluationResultRepository):
    """Fix result repository backed by the ``evaluation_result`` table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def create_result(self, evaluation_id: str, url: str, payload: Any) -> EvaluationResultRecord:
        query = f"""
            INSERT INTO evaluation_result (evaluation_id, url, payload)
            VALUES (%s, %s, %s)
            RETURNING {_RESULT_COLUMNS}
        """
        with database_errors("evaluation_result", "create"):
            rows = self.pool.execute_query(query, (evaluation_id, url, json.dumps(payload)))
            return EvaluationResultRecord.model_validate(rows[0])

    def list_by_evaluation_id(self, evaluation_id: str) -> list[EvaluationResultRecord]:
        query = f"""
            SELECT {_RESULT_COLUMNS} FROM evaluation_result
            WHERE evaluation_id = %s
            ORDER BY created_at DESC
        """
        with database_errors("evaluation_result", "list"):
            rows = self.pool.execute_query(query, (evaluation_id,))
            return [EvaluationResultRecord.model_validate(row) for row in rows]
