"""
Relational persistence for rule sets, evaluations and fix results.
"""

from .base import EvaluationRepository, EvaluationResultRepository, RuleRepository
from .brand_rules_repository import PostgresRuleRepository
from .connection import DatabaseConnectionPool
from .evaluation_repository import PostgresEvaluationRepository, PostgresEvaluationResultRepository
from .schema_mgmt import ensure_schema

__all__ = [
    "DatabaseConnectionPool",
    "EvaluationRepository",
    "EvaluationResultRepository",
    "PostgresEvaluationRepository",
    "PostgresEvaluationResultRepository",
    "PostgresRuleRepository",
    "RuleRepository",
    "ensure_schema",
]
