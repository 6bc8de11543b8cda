"""
RuleSet (V2): the canonical, validated shape of a brand rule set.

Structure, numeric bounds, enumerations and defaults all live on these
Pydantic models; ``brandguard.core.rules.rule_validator`` turns their
errors into a single aggregated failure.

Documents use camelCase keys on the wire. Both ``bannedPhrases`` and the
legacy ``bannedPatterns`` are accepted wherever a banned phrase list is
expected; after validation only ``bannedPhrases`` exists.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    model_validator,
)
from pydantic.alias_generators import to_camel

PlacementPosition = Literal["top-left", "top-right", "bottom-left", "bottom-right", "center"]
Severity = Literal["hard_fail", "soft_warn"]
Evaluator = Literal["contrast", "keyword", "complexity", "readability", "size", "governance"]
SubstantiationType = Literal["clinical_study", "survey", "internal_data", "third_party"]
PolicyAllowance = Literal["allowed", "disallowed", "conditional"]

ALL_PLACEMENTS: tuple[str, ...] = ("top-left", "top-right", "bottom-left", "bottom-right", "center")
TRAIT_NAMES: tuple[str, ...] = ("formality", "warmth", "energy", "humor", "confidence")

DEFAULT_TRAITS: dict[str, tuple[int, int]] = {
    "formality": (2, 4),
    "warmth": (3, 5),
    "energy": (2, 4),
    "humor": (1, 2),
    "confidence": (3, 5),
}

MAX_DISCLAIMERS = 200

# Lookup order for the aliased banned phrase list
BANNED_PHRASE_KEYS = ("bannedPhrases", "banned_phrases", "bannedPatterns")

ChannelId = Annotated[str, Field(min_length=1)]
RegionId = Annotated[str, Field(min_length=2, max_length=3)]
NonEmptyStr = Annotated[str, Field(min_length=1)]
TraitBound = Annotated[StrictInt, Field(ge=1, le=5)]


def _ordered_interval(value: tuple[int, int]) -> tuple[int, int]:
    lo, hi = value
    if lo > hi:
        raise ValueError("lower bound must be <= upper bound")
    return value


def _unique_placements(value: list[str]) -> list[str]:
    return list(dict.fromkeys(value))


TraitRange = Annotated[tuple[TraitBound, TraitBound], AfterValidator(_ordered_interval)]
PlacementGrid = Annotated[list[PlacementPosition], AfterValidator(_unique_placements)]


def resolve_banned_phrases(data: Any) -> Any:
    """
    Collapse the banned phrase aliases into the canonical ``bannedPhrases`` key.

    The first key of BANNED_PHRASE_KEYS present wins; the others are dropped.
    The input mapping is copied, never modified.
    """
    if not isinstance(data, Mapping):
        return data

    present = [key for key in BANNED_PHRASE_KEYS if key in data]
    if not present:
        return data

    resolved = {key: value for key, value in data.items() if key not in BANNED_PHRASE_KEYS}
    resolved["bannedPhrases"] = data[present[0]]
    return resolved


class RuleModel(BaseModel):
    """Base for rule set sections: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =======================
# VOICE
# =======================

class VoiceTraits(RuleModel):
    formality: TraitRange = DEFAULT_TRAITS["formality"]
    warmth: TraitRange = DEFAULT_TRAITS["warmth"]
    energy: TraitRange = DEFAULT_TRAITS["energy"]
    humor: TraitRange = DEFAULT_TRAITS["humor"]
    confidence: TraitRange = DEFAULT_TRAITS["confidence"]


class VoiceReadability(RuleModel):
    target_grade: StrictInt = Field(8, ge=1, le=14)
    max_exclamations: StrictInt = Field(1, ge=0, le=5)
    allow_emojis: StrictBool = False


class VoiceLexicon(RuleModel):
    allowed_words: list[str] = Field(default_factory=list, max_length=5000)
    banned_words: list[str] = Field(default_factory=list, max_length=5000)
    banned_phrases: list[str] = Field(default_factory=list, max_length=1000)
    cta_whitelist: list[str] = Field(default_factory=list, max_length=1000)
    readability: VoiceReadability = Field(default_factory=VoiceReadability)

    @model_validator(mode="before")
    @classmethod
    def _canonical_banned_phrases(cls, data: Any) -> Any:
        return resolve_banned_phrases(data)


class VoiceTraitsOverride(RuleModel):
    """Per-channel trait override; unset traits inherit the base voice."""

    formality: TraitRange | None = None
    warmth: TraitRange | None = None
    energy: TraitRange | None = None
    humor: TraitRange | None = None
    confidence: TraitRange | None = None


class VoiceLexiconOverride(RuleModel):
    allowed_words: list[str] | None = Field(None, max_length=5000)
    banned_words: list[str] | None = Field(None, max_length=5000)
    banned_phrases: list[str] | None = Field(None, max_length=1000)
    cta_whitelist: list[str] | None = Field(None, max_length=1000)
    readability: VoiceReadability | None = None

    @model_validator(mode="before")
    @classmethod
    def _canonical_banned_phrases(cls, data: Any) -> Any:
        return resolve_banned_phrases(data)


class ChannelOverride(RuleModel):
    traits: VoiceTraitsOverride | None = None
    lexicon: VoiceLexiconOverride | None = None


class Voice(RuleModel):
    traits: VoiceTraits = Field(default_factory=VoiceTraits)
    lexicon: VoiceLexicon = Field(default_factory=VoiceLexicon)
    per_channel_overrides: dict[ChannelId, ChannelOverride] = Field(default_factory=dict)


# =======================
# LOGO / VISUAL
# =======================

class MinSizePx(RuleModel):
    width: StrictInt = Field(0, ge=0)
    height: StrictInt = Field(0, ge=0)


class BackgroundConstraints(RuleModel):
    # WCAG contrast ratios live in [1, 21]
    min_contrast_ratio: StrictFloat = Field(4.5, ge=1, le=21)
    invert_threshold_luminance: StrictFloat = Field(0.35, ge=0, le=1)
    max_background_complexity: StrictFloat = Field(0.25, ge=0, le=1)
    blur_overlay_required_above_complexity: StrictBool = True


class LogoUsage(RuleModel):
    min_size_px: MinSizePx = Field(default_factory=MinSizePx)
    # Multiple of the logo size
    min_clear_space_x: StrictFloat = Field(0, ge=0, le=5)
    aspect_ratio_lock: StrictBool = True
    placement_grid: PlacementGrid = Field(default_factory=lambda: list(ALL_PLACEMENTS))
    background: BackgroundConstraints = Field(default_factory=BackgroundConstraints)


# =======================
# CLAIMS / COMPLIANCE
# =======================

class RequiredSubstantiation(RuleModel):
    type: SubstantiationType
    applies_to_patterns: list[str] = Field(default_factory=list, max_length=1000)


class Disclaimer(RuleModel):
    template: NonEmptyStr
    regions: list[RegionId] = Field(default_factory=list)
    channels: list[ChannelId] = Field(default_factory=list)


class Claims(RuleModel):
    banned_phrases: list[str] = Field(default_factory=list, max_length=5000)
    required_substantiation: list[RequiredSubstantiation] = Field(default_factory=list)
    disclaimers: list[Disclaimer] = Field(default_factory=list, max_length=MAX_DISCLAIMERS)

    @model_validator(mode="before")
    @classmethod
    def _canonical_banned_phrases(cls, data: Any) -> Any:
        return resolve_banned_phrases(data)


# =======================
# SENSITIVE / ACCESSIBILITY / GOVERNANCE
# =======================

class SensitivePolicy(RuleModel):
    allowed: PolicyAllowance = "conditional"
    min_audience_age: StrictInt | None = Field(None, ge=0, le=120)
    regions: list[RegionId] = Field(default_factory=list)
    channels: list[ChannelId] = Field(default_factory=list)
    requires_legal_review: StrictBool = False


class Sensitive(RuleModel):
    policies: dict[str, SensitivePolicy] = Field(default_factory=dict)


class Wcag(RuleModel):
    min_contrast_ratio: StrictFloat = Field(4.5, ge=1, le=21)
    min_font_size_px: StrictInt = Field(14, ge=8, le=72)
    captions_required: StrictBool = True
    alt_text_required: StrictBool = True


class Accessibility(RuleModel):
    wcag: Wcag = Field(default_factory=Wcag)


class GovernanceCheck(RuleModel):
    id: NonEmptyStr
    description: NonEmptyStr
    severity: Severity = "hard_fail"
    evaluator: Evaluator
    remediation_hint: NonEmptyStr | None = None


class Governance(RuleModel):
    severity_default: Severity = "hard_fail"
    checks: list[GovernanceCheck] = Field(default_factory=list)


class RuleSet(RuleModel):
    """
    A validated brand rule set.

    ``voice`` and ``logoUsage`` are required; every other section falls
    back to its defaults. ``platformRules`` is an opaque extension point.
    """

    voice: Voice
    logo_usage: LogoUsage
    claims: Claims = Field(default_factory=Claims)
    sensitive: Sensitive = Field(default_factory=Sensitive)
    accessibility: Accessibility = Field(default_factory=Accessibility)
    platform_rules: dict[str, Any] = Field(default_factory=dict)
    governance: Governance = Field(default_factory=Governance)

    def to_document(self) -> dict[str, Any]:
        """Canonical JSON-compatible document (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
