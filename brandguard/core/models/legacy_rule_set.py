"""
RuleSet (V1): the legacy flat rule representation.

Only ever used as migration input; a V1 document is never persisted.
The bounds below describe a well-formed V1 document, i.e. one whose
migration always yields a valid V2 rule set.
"""

from typing import Annotated

from pydantic import Field

from .rule_set import PlacementPosition, RuleModel

NonEmptyStr = Annotated[str, Field(min_length=1)]


class LegacyTone(RuleModel):
    allowed: list[str] = Field(default_factory=list)
    banned_words: list[str] = Field(default_factory=list, max_length=5000)


class LegacyLogoUsage(RuleModel):
    allowed_positions: list[PlacementPosition] = Field(default_factory=list)
    banned_backgrounds: list[str] = Field(default_factory=list)
    invert_on_dark: bool = False
    min_clear_space_ratio: float = Field(0.0, allow_inf_nan=False)


class LegacySensitive(RuleModel):
    disallow_categories: list[str] = Field(default_factory=list)
    min_audience_age: int | None = Field(None, ge=0, le=120)


class LegacyRuleSet(RuleModel):
    """
    Legacy brand rules.

    Attributes:
        prohibited_claims: Claims that must never appear (become banned phrases)
        tone: Allowed tone names and banned words
        logo_usage: Placement and clear-space constraints
        sensitive: Disallowed content categories
        required_disclaimers: Disclaimer texts
    """

    prohibited_claims: list[str] = Field(default_factory=list, max_length=1000)
    tone: LegacyTone = Field(default_factory=LegacyTone)
    logo_usage: LegacyLogoUsage = Field(default_factory=LegacyLogoUsage)
    sensitive: LegacySensitive = Field(default_factory=LegacySensitive)
    required_disclaimers: list[NonEmptyStr] = Field(default_factory=list, max_length=200)
