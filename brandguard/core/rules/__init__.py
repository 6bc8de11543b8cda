"""
Rule body parsing, validation and legacy migration.
"""

from .body_parser import parse_rules_body
from .rule_migrator import TONE_PRESETS, migrate_rules_v1_to_v2
from .rule_validator import ValidationFailure, require_valid_rules, validate_rules

__all__ = [
    "TONE_PRESETS",
    "ValidationFailure",
    "migrate_rules_v1_to_v2",
    "parse_rules_body",
    "require_valid_rules",
    "validate_rules",
]
