import random

from artspark.features.prompts.catalog import TWISTS, twists_for_medium
from artspark.features.prompts.difficulty import (
    DEFAULT_TIER,
    LOWEST_TIER,
    MIDDLE_TIER,
    TIERS,
    TIERS_BY_ID,
    resolve_tier,
)
from artspark.features.prompts.templates import EXPLORER_TIPS, TemplateAssembler, compatible_templates


def test_tiers_are_ordered_by_chance():
    twist = [t.twist_chance for t in TIERS]
    color = [t.color_rule_chance for t in TIERS]
    assert twist == sorted(twist)
    assert color == sorted(color)
    assert LOWEST_TIER.id == "explorer"
    assert LOWEST_TIER.twist_chance == 0.0


def test_legacy_difficulty_migrates():
    assert resolve_tier("beginner").id == "explorer"
    assert resolve_tier("intermediate").id == "confident"
    assert resolve_tier("advanced").id == "master"


def test_missing_difficulty_uses_default():
    assert resolve_tier(None) is DEFAULT_TIER
    assert resolve_tier("") is DEFAULT_TIER


def test_unknown_difficulty_falls_to_middle_tier():
    assert resolve_tier("grandmaster") is MIDDLE_TIER
    assert MIDDLE_TIER.id == "confident"


def test_current_ids_resolve_case_insensitively():
    for tier in TIERS:
        assert resolve_tier(tier.id.upper()) is tier


def test_compatible_templates_respect_restrictions():
    pool = compatible_templates("watercolor", "landscapes", "guided")
    assert pool
    for template in pool:
        assert template.tier == "guided"
        assert template.fits("watercolor", "landscapes")


def test_compatible_templates_never_include_foreign_mediums():
    for template in compatible_templates("digital", "animals", "standard"):
        assert template.mediums is None or "digital" in template.mediums


def test_assemble_uses_display_phrases():
    assembler = TemplateAssembler(random.Random(1))
    for seed in range(20):
        assembler = TemplateAssembler(random.Random(seed))
        text = assembler.assemble("oil", "landscapes", TIERS_BY_ID["master"])
        assert "oil paint" in text.lower()
        assert "a landscape" in text.lower()
        assert text[0].isupper()
        assert text.endswith(".")


def test_assemble_appends_color_rule_then_twist():
    assembler = TemplateAssembler(random.Random(7))
    text = assembler.assemble(
        "acrylic",
        "still-life",
        TIERS_BY_ID["proficient"],
        color_rule="earthy",
        twist="Focus on negative space",
    )
    assert text.endswith(". Work with a earthy palette. Focus on negative space.")


def test_assemble_adds_tip_only_for_lowest_tier():
    for seed in range(10):
        explorer_text = TemplateAssembler(random.Random(seed)).assemble("pencil", "animals", LOWEST_TIER)
        assert any(explorer_text.endswith(" " + tip) for tip in EXPLORER_TIPS)

        confident_text = TemplateAssembler(random.Random(seed)).assemble("pencil", "animals", TIERS_BY_ID["confident"])
        assert not any(tip in confident_text for tip in EXPLORER_TIPS)


def test_same_seed_same_text():
    a = TemplateAssembler(random.Random(99)).assemble("ink", "urban", DEFAULT_TIER, color_rule="cool")
    b = TemplateAssembler(random.Random(99)).assemble("ink", "urban", DEFAULT_TIER, color_rule="cool")
    assert a == b


def test_twists_filtered_by_medium():
    pencil_twists = {t.text for t in twists_for_medium("pencil")}
    assert "Complete it in under 15 minutes" in pencil_twists
    assert "Work wet-on-wet for the entire piece" not in pencil_twists
    assert "Limit yourself to 3 colors plus white" not in pencil_twists

    watercolor_twists = {t.text for t in twists_for_medium("watercolor")}
    assert "Use salt or alcohol for texture effects" in watercolor_twists
    assert "Use a palette knife instead of brushes" not in watercolor_twists


def test_unknown_medium_only_gets_universal_twists():
    universal = [t for t in TWISTS if t.compatible_with == "all"]
    assert twists_for_medium("spray-paint") == universal
