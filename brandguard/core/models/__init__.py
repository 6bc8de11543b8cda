"""
Core data models for brandguard.

All models use Pydantic for runtime validation and type safety.
"""

from .failure import Failure, FailureKind, FieldIssue, Outcome
from .legacy_rule_set import LegacyRuleSet
from .records import (
    BrandRulesRecord,
    EvaluateRequest,
    EvaluationRecord,
    EvaluationResultRecord,
)
from .rule_set import (
    ALL_PLACEMENTS,
    DEFAULT_TRAITS,
    MAX_DISCLAIMERS,
    TRAIT_NAMES,
    RuleSet,
)

__all__ = [
    "ALL_PLACEMENTS",
    "DEFAULT_TRAITS",
    "MAX_DISCLAIMERS",
    "TRAIT_NAMES",
    "BrandRulesRecord",
    "EvaluateRequest",
    "EvaluationRecord",
    "EvaluationResultRecord",
    "Failure",
    "FailureKind",
    "FieldIssue",
    "LegacyRuleSet",
    "Outcome",
    "RuleSet",
]
