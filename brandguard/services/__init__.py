"""
Application services built on the rule engine and the repositories.
"""

from .brand_rules_service import BrandRulesService, load_legacy_rule_set, load_rule_set

__all__ = [
    "BrandRulesService",
    "load_legacy_rule_set",
    "load_rule_set",
]
