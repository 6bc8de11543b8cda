"""
Unit tests for V1 to V2 rule migration.

Includes property-based testing with hypothesis for migration totality.
"""

import copy

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from brandguard.core.models import ALL_PLACEMENTS, DEFAULT_TRAITS, LegacyRuleSet, RuleSet
from brandguard.core.rules import TONE_PRESETS, migrate_rules_v1_to_v2, validate_rules
from brandguard.core.rules.rule_migrator import merge_intervals, migrate_traits


def _contains(outer, inner) -> bool:
    return outer[0] <= inner[0] and inner[1] <= outer[1]


class TestTraitMigration:
    """Tone presets widen the default trait intervals"""

    def test_no_tones_gives_defaults(self):
        assert migrate_traits([]) == {name: list(interval) for name, interval in DEFAULT_TRAITS.items()}

    def test_formal_and_playful_is_superset_of_both(self):
        traits = migrate_traits(["formal", "playful"])

        for preset in ("formal", "playful"):
            for name, interval in TONE_PRESETS[preset].items():
                assert _contains(traits[name], interval), f"{name} does not cover {preset}"

    def test_unknown_tones_are_ignored(self):
        assert migrate_traits(["sarcastic", "formal"]) == migrate_traits(["formal"])

    def test_merge_intervals(self):
        assert merge_intervals((2, 4), (1, 3)) == (1, 4)
        assert merge_intervals((1, 1), (5, 5)) == (1, 5)

    def test_presets_cover_every_trait(self):
        for preset in TONE_PRESETS.values():
            assert set(preset) == set(DEFAULT_TRAITS)
            assert all(1 <= lo <= hi <= 5 for lo, hi in preset.values())


class TestMigration:
    """Field mapping from V1 to V2"""

    def test_representative_document(self, legacy_rules):
        v2 = migrate_rules_v1_to_v2(legacy_rules)

        assert v2["voice"]["lexicon"]["bannedWords"] == ["cheap"]
        assert v2["voice"]["lexicon"]["bannedPatterns"] == ["cures everything", "100% guaranteed"]
        assert v2["claims"]["bannedPatterns"] == ["cures everything", "100% guaranteed"]
        assert v2["claims"]["requiredSubstantiation"] == []
        assert v2["claims"]["disclaimers"] == [{"template": "Terms apply.", "regions": [], "channels": []}]
        assert v2["logoUsage"]["placementGrid"] == ["top-left", "center"]
        assert v2["logoUsage"]["minClearSpaceX"] == 0.5
        assert v2["logoUsage"]["aspectRatioLock"] is True
        assert v2["governance"] == {"severityDefault": "hard_fail", "checks": []}

    def test_fixed_defaults_ignore_v1_content(self, legacy_rules):
        v2 = migrate_rules_v1_to_v2(legacy_rules)

        assert v2["logoUsage"]["background"] == {
            "minContrastRatio": 4.5,
            "invertThresholdLuminance": 0.35,
            "maxBackgroundComplexity": 0.25,
            "blurOverlayRequiredAboveComplexity": True,
        }
        assert v2["accessibility"]["wcag"] == {
            "minContrastRatio": 4.5,
            "minFontSizePx": 14,
            "captionsRequired": True,
            "altTextRequired": True,
        }

    def test_sensitive_policies(self, legacy_rules):
        policies = migrate_rules_v1_to_v2(legacy_rules)["sensitive"]["policies"]

        assert set(policies) == {"alcohol", "gambling"}
        assert policies["alcohol"] == {
            "allowed": "disallowed",
            "minAudienceAge": 21,
            "regions": [],
            "channels": [],
            "requiresLegalReview": False,
        }

    def test_policies_omit_age_when_unset(self):
        policies = migrate_rules_v1_to_v2({"sensitive": {"disallowCategories": ["tobacco"]}})["sensitive"]["policies"]
        assert "minAudienceAge" not in policies["tobacco"]

    def test_unlisted_categories_are_absent(self, legacy_rules):
        policies = migrate_rules_v1_to_v2(legacy_rules)["sensitive"]["policies"]
        assert "tobacco" not in policies

    def test_empty_object(self):
        v2 = migrate_rules_v1_to_v2({})

        assert v2["logoUsage"]["placementGrid"] == list(ALL_PLACEMENTS)
        assert v2["logoUsage"]["minClearSpaceX"] == 0
        assert v2["sensitive"]["policies"] == {}
        assert v2["claims"]["disclaimers"] == []
        assert isinstance(validate_rules(v2), RuleSet)

    @pytest.mark.parametrize("ratio,expected", [(-2.0, 0.0), (0.0, 0.0), (3.25, 3.25), (5.0, 5.0), (12.0, 5.0)])
    def test_clear_space_is_clamped(self, ratio, expected):
        v2 = migrate_rules_v1_to_v2({"logoUsage": {"minClearSpaceRatio": ratio}})
        assert v2["logoUsage"]["minClearSpaceX"] == expected

    def test_accepts_model_instance(self, legacy_rules):
        assert migrate_rules_v1_to_v2(LegacyRuleSet.model_validate(legacy_rules)) == migrate_rules_v1_to_v2(legacy_rules)

    def test_output_does_not_alias_input(self, legacy_rules):
        before = copy.deepcopy(legacy_rules)

        v2 = migrate_rules_v1_to_v2(legacy_rules)
        v2["claims"]["bannedPatterns"].append("mutated")
        v2["logoUsage"]["placementGrid"].clear()

        assert legacy_rules == before

    def test_migrated_document_validates(self, legacy_rules):
        rule_set = validate_rules(migrate_rules_v1_to_v2(legacy_rules))

        assert isinstance(rule_set, RuleSet)
        assert rule_set.claims.banned_phrases == ["cures everything", "100% guaranteed"]
        assert rule_set.voice.lexicon.banned_phrases == ["cures everything", "100% guaranteed"]


# =======================
# PROPERTY-BASED TESTS
# =======================

legacy_documents = st.fixed_dictionaries(
    {},
    optional={
        "prohibitedClaims": st.lists(st.text(max_size=20), max_size=10),
        "tone": st.fixed_dictionaries(
            {},
            optional={
                "allowed": st.lists(st.sampled_from(sorted(TONE_PRESETS)) | st.text(max_size=10), max_size=5),
                "bannedWords": st.lists(st.text(max_size=10), max_size=10),
            },
        ),
        "logoUsage": st.fixed_dictionaries(
            {},
            optional={
                "allowedPositions": st.lists(st.sampled_from(ALL_PLACEMENTS), max_size=7),
                "invertOnDark": st.booleans(),
                "minClearSpaceRatio": st.floats(allow_nan=False, allow_infinity=False),
            },
        ),
        "sensitive": st.fixed_dictionaries(
            {},
            optional={
                "disallowCategories": st.lists(st.text(max_size=15), max_size=5),
                "minAudienceAge": st.integers(min_value=0, max_value=120),
            },
        ),
        "requiredDisclaimers": st.lists(st.text(min_size=1, max_size=40), max_size=10),
    },
)


class TestMigrationProperties:
    """Migration is total and deterministic for well-formed V1 input"""

    @settings(max_examples=200)
    @given(legacy_documents)
    def test_output_always_validates(self, v1):
        assert isinstance(validate_rules(migrate_rules_v1_to_v2(v1)), RuleSet)

    @given(legacy_documents)
    def test_migration_is_deterministic(self, v1):
        assert migrate_rules_v1_to_v2(v1) == migrate_rules_v1_to_v2(copy.deepcopy(v1))

    @given(st.lists(st.sampled_from(sorted(TONE_PRESETS)), min_size=1, max_size=4))
    def test_traits_cover_every_selected_preset(self, tones):
        traits = migrate_traits(tones)

        for tone in tones:
            for name, interval in TONE_PRESETS[tone].items():
                assert _contains(traits[name], interval)
