"""
Repository interfaces consumed by the rule service and the orchestrator.

Implementations must raise DatabaseError for any infrastructure failure.
"""

from abc import ABC, abstractmethod
from typing import Any

from brandguard.core.models import (
    BrandRulesRecord,
    EvaluateRequest,
    EvaluationRecord,
    EvaluationResultRecord,
    RuleSet,
)


class RuleRepository(ABC):
    """Stores validated rule sets per brand."""

    @abstractmethod
    def save(self, brand_id: str, rule_set: RuleSet) -> BrandRulesRecord:
        pass

    @abstractmethod
    def replace(self, rule_id: str, rule_set: RuleSet) -> BrandRulesRecord | None:
        """Replace the whole rule document; None when the record is absent."""
        pass

    @abstractmethod
    def find_by_id(self, rule_id: str) -> BrandRulesRecord | None:
        pass

    @abstractmethod
    def delete_by_id(self, rule_id: str) -> bool:
        """Delete a record; False when nothing was deleted."""
        pass

    @abstractmethod
    def list_by_brand(self, brand_id: str) -> list[BrandRulesRecord]:
        pass

    @abstractmethod
    def find_all(self) -> list[BrandRulesRecord]:
        pass


class EvaluationRepository(ABC):
    """Stores evaluation requests together with the raw upstream result."""

    @abstractmethod
    def create_evaluation(self, request: EvaluateRequest, raw_result: Any) -> EvaluationRecord:
        pass

    @abstractmethod
    def find_evaluation_by_id(self, evaluation_id: str) -> EvaluationRecord | None:
        pass

    @abstractmethod
    def find_latest_by_brand_and_rule(self, brand_id: str, rule_id: str) -> EvaluationRecord | None:
        """Newest evaluation for the pair; None when there is none."""
        pass


class EvaluationResultRepository(ABC):
    """Stores fix workflow outputs keyed by evaluation."""

    @abstractmethod
    def create_result(self, evaluation_id: str, url: str, payload: Any) -> EvaluationResultRecord:
        pass

    @abstractmethod
    def list_by_evaluation_id(self, evaluation_id: str) -> list[EvaluationResultRecord]:
        pass
