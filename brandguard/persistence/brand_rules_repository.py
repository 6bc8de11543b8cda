"""
PostgreSQL storage for brand rule sets.

Updates replace the whole rule document; concurrent writers for the same
record are not serialized, so the last write wins.
"""

import json

from brandguard.core.models import BrandRulesRecord, RuleSet
from brandguard.observability.logger import get_logger

from .base import RuleRepository
from .connection import DatabaseConnectionPool, database_errors

logger = get_logger(__name__)

_COLUMNS = "id, brand_id, rules, created_at, updated_at"


class PostgresRuleRepository(RuleRepository):
    """Rule repository backed by the ``brand_rules`` table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def save(self, brand_id: str, rule_set: RuleSet) -> BrandRulesRecord:
        query = f"""
            INSERT INTO brand_rules (brand_id, rules)
            VALUES (%s, %s)
            RETURNING {_COLUMNS}
        """
        with database_errors("brand_rules", "save"):
            rows = self.pool.execute_query(query, (brand_id, json.dumps(rule_set.to_document())))
            record = BrandRulesRecord.model_validate(rows[0])

        logger.info("Saved brand rules", extra={"brand_id": brand_id, "rule_id": record.id})
        return record

    def replace(self, rule_id: str, rule_set: RuleSet) -> BrandRulesRecord | None:
        query = f"""
            UPDATE brand_rules
            SET rules = %s, updated_at = now()
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        with database_errors("brand_rules", "replace"):
            rows = self.pool.execute_query(query, (json.dumps(rule_set.to_document()), rule_id))
            return BrandRulesRecord.model_validate(rows[0]) if rows else None

    def find_by_id(self, rule_id: str) -> BrandRulesRecord | None:
        query = f"SELECT {_COLUMNS} FROM brand_rules WHERE id = %s"
        with database_errors("brand_rules", "find"):
            rows = self.pool.execute_query(query, (rule_id,))
            return BrandRulesRecord.model_validate(rows[0]) if rows else None

    def delete_by_id(self, rule_id: str) -> bool:
        with database_errors("brand_rules", "delete"):
            deleted = self.pool.execute_command("DELETE FROM brand_rules WHERE id = %s", (rule_id,))
        return deleted > 0

    def list_by_brand(self, brand_id: str) -> list[BrandRulesRecord]:
        query = f"""
            SELECT {_COLUMNS} FROM brand_rules
            WHERE brand_id = %s
            ORDER BY updated_at DESC
        """
        with database_errors("brand_rules", "list"):
            rows = self.pool.execute_query(query, (brand_id,))
            return [BrandRulesRecord.model_validate(row) for row in rows]

    def find_all(self) -> list[BrandRulesRecord]:
        query = f"SELECT {_COLUMNS} FROM brand_rules ORDER BY updated_at DESC"
        with database_errors("brand_rules", "list"):
            rows = self.pool.execute_query(query)
            return [BrandRulesRecord.model_validate(row) for row in rows]
