"""
V1 to V2 rule migration.

Pure and deterministic: the same legacy document always produces the same
V2-shaped document. The output is deliberately not validated here; callers
pass it through ``validate_rules`` like any other rule document.
"""

from collections.abc import Mapping
from typing import Any

from brandguard.core.models.legacy_rule_set import LegacyRuleSet
from brandguard.core.models.rule_set import ALL_PLACEMENTS, DEFAULT_TRAITS, TRAIT_NAMES
from brandguard.observability.metrics import increment_counter, rule_migrations_total

Interval = tuple[int, int]

TONE_PRESETS: dict[str, dict[str, Interval]] = {
    "formal": {"formality": (4, 5), "warmth": (1, 3), "energy": (1, 3), "humor": (1, 1), "confidence": (3, 5)},
    "friendly": {"formality": (2, 3), "warmth": (4, 5), "energy": (3, 4), "humor": (1, 3), "confidence": (3, 4)},
    "playful": {"formality": (1, 2), "warmth": (4, 5), "energy": (4, 5), "humor": (3, 5), "confidence": (2, 4)},
    "authoritative": {"formality": (4, 5), "warmth": (2, 3), "energy": (2, 3), "humor": (1, 1), "confidence": (4, 5)},
}

DEFAULT_READABILITY = {"targetGrade": 8, "maxExclamations": 1, "allowEmojis": False}

DEFAULT_BACKGROUND = {
    "minContrastRatio": 4.5,
    "invertThresholdLuminance": 0.35,
    "maxBackgroundComplexity": 0.25,
    "blurOverlayRequiredAboveComplexity": True,
}

DEFAULT_WCAG = {
    "minContrastRatio": 4.5,
    "minFontSizePx": 14,
    "captionsRequired": True,
    "altTextRequired": True,
}

MAX_CLEAR_SPACE = 5.0


def merge_intervals(a: Interval, b: Interval) -> Interval:
    """Smallest interval covering both a and b."""
    return (min(a[0], b[0]), max(a[1], b[1]))


def migrate_traits(allowed_tones: list[str]) -> dict[str, list[int]]:
    """
    Widen the default trait intervals by every recognised tone preset.

    Unknown tone names are ignored.
    """
    traits: dict[str, Interval] = dict(DEFAULT_TRAITS)
    for tone in allowed_tones:
        preset = TONE_PRESETS.get(tone)
        if preset is None:
            continue
        traits = {name: merge_intervals(traits[name], preset[name]) for name in TRAIT_NAMES}
    return {name: list(traits[name]) for name in TRAIT_NAMES}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def migrate_rules_v1_to_v2(v1: LegacyRuleSet | Mapping[str, Any]) -> dict[str, Any]:
    """
    Translate a legacy rule set into a V2 rule document.

    Args:
        v1: A LegacyRuleSet, or a mapping that is read as one

    Returns:
        A camelCase V2 document ready for validate_rules. Lists are copies;
        nothing in the output aliases the input.

    Raises:
        pydantic.ValidationError: Only when a raw mapping is not a
            well-formed V1 document
    """
    if not isinstance(v1, LegacyRuleSet):
        v1 = LegacyRuleSet.model_validate(v1)

    prohibited = list(v1.prohibited_claims)
    sensitive = v1.sensitive

    voice = {
        "traits": migrate_traits(v1.tone.allowed),
        "lexicon": {
            "allowedWords": [],
            "bannedWords": list(v1.tone.banned_words),
            "bannedPatterns": list(prohibited),
            "ctaWhitelist": [],
            "readability": dict(DEFAULT_READABILITY),
        },
        "perChannelOverrides": {},
    }

    logo_usage = {
        "minSizePx": {"width": 0, "height": 0},
        "minClearSpaceX": _clamp(v1.logo_usage.min_clear_space_ratio, 0.0, MAX_CLEAR_SPACE),
        # V1 had no notion of aspect ratio locking
        "aspectRatioLock": True,
        "placementGrid": list(v1.logo_usage.allowed_positions or ALL_PLACEMENTS),
        "background": dict(DEFAULT_BACKGROUND),
    }

    claims = {
        "bannedPatterns": list(prohibited),
        "requiredSubstantiation": [],
        "disclaimers": [
            {"template": text, "regions": [], "channels": []}
            for text in v1.required_disclaimers
        ],
    }

    policies: dict[str, dict[str, Any]] = {}
    for category in sensitive.disallow_categories:
        policy: dict[str, Any] = {
            "allowed": "disallowed",
            "regions": [],
            "channels": [],
            "requiresLegalReview": False,
        }
        if sensitive.min_audience_age is not None:
            policy["minAudienceAge"] = sensitive.min_audience_age
        policies[category] = policy

    increment_counter(rule_migrations_total)

    return {
        "voice": voice,
        "logoUsage": logo_usage,
        "claims": claims,
        "sensitive": {"policies": policies},
        "accessibility": {"wcag": dict(DEFAULT_WCAG)},
        "platformRules": {},
        "governance": {"severityDefault": "hard_fail", "checks": []},
    }
