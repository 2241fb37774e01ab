"""
Prompt text assembly.

Templates use {medium} and {subject} placeholders and are tagged with a tier:

- guided: step-by-step and encouraging (explorer)
- standard: balanced direction (developing, confident)
- open: minimal, assumes expertise (proficient, master)

A template may restrict itself to some mediums and/or some subjects; with no
restriction it is universal.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from artspark.features.prompts.catalog import medium_phrase, palette_label, subject_phrase
from artspark.features.prompts.difficulty import DifficultyTier, TemplateTier, is_lowest_tier

_PORTRAIT_LIKE = ("animals", "people-portraits", "still-life", "botanicals", "food")
_PLACES = ("landscapes", "urban", "architecture")


@dataclass(frozen=True)
class PromptTemplate:
    template: str
    tier: TemplateTier
    mediums: Optional[FrozenSet[str]] = None
    subjects: Optional[FrozenSet[str]] = None

    def fits(self, medium: str, subject: str) -> bool:
        medium_ok = self.mediums is None or medium in self.mediums
        subject_ok = self.subjects is None or subject in self.subjects
        return medium_ok and subject_ok


def _t(template: str, tier: TemplateTier, mediums=None, subjects=None) -> PromptTemplate:
    return PromptTemplate(
        template,
        tier,
        frozenset(mediums) if mediums else None,
        frozenset(subjects) if subjects else None,
    )


TEMPLATES: List[PromptTemplate] = [
    # guided
    _t("Start by lightly sketching {subject} in pencil, then layer {medium} washes from lightest to darkest, letting each layer dry before adding the next", "guided", mediums=["watercolor"]),
    _t("Begin with a simple {subject} outline, then practice {medium} wet-on-dry technique: paint a wash, let it dry, then add details on top", "guided", mediums=["watercolor", "gouache"]),
    _t("Start by drawing the basic shapes of {subject} in {medium} using light pressure, then gradually refine the details", "guided", mediums=["pencil", "charcoal"]),
    _t("Practice drawing {subject} in {medium}: begin with a 30 second gesture sketch, then do a careful 10 minute version", "guided", mediums=["pencil", "charcoal", "ink"]),
    _t("Block in the main shapes of {subject} with large brushstrokes of {medium} first, and leave details until the whole canvas has color", "guided", mediums=["acrylic", "oil", "gouache"]),
    _t("Create {subject} digitally: sketch on one layer, then add a new layer underneath for color blocking before refining", "guided", mediums=["digital"]),
    _t("Study {subject} in {medium}: take a full minute to observe your subject before making any marks, noticing shapes and values", "guided"),
    _t("Create {subject} in {medium} today. Start with the biggest shapes first, then work your way to smaller details", "guided"),
    _t("Warm up with quick thumbnail sketches of {subject}, then create a finished {medium} piece from your favorite composition", "guided"),
    _t("Draw {subject} in {medium}: identify the light source, then shade the shadow side to give your work a 3D feeling", "guided", subjects=_PORTRAIT_LIKE),
    _t("Sketch {subject} in {medium}: use a viewfinder made from your fingers to crop an interesting composition before you start", "guided", subjects=_PLACES),

    # standard
    _t("Paint a {subject} study in {medium}, letting the water guide your washes", "standard", mediums=["watercolor"]),
    _t("Create a loose {medium} sketch of {subject}, capturing the essence rather than the details", "standard", mediums=["watercolor", "gouache"]),
    _t("Explore {subject} in {medium}, building from light to dark in transparent layers", "standard", mediums=["watercolor"]),
    _t("Draw {subject} in {medium}, focusing on the interplay of light and shadow", "standard", mediums=["pencil", "charcoal", "ink"]),
    _t("Create a {medium} study of {subject} using value alone to define form", "standard", mediums=["pencil", "charcoal"]),
    _t("Sketch {subject} in {medium}, aiming for gesture and feeling over precision", "standard", mediums=["pencil", "charcoal", "ink"]),
    _t("Render {subject} in {medium}, paying close attention to where edges are sharp and where they are lost", "standard", mediums=["pencil", "charcoal"]),
    _t("Paint {subject} in {medium}, building up color with bold, confident strokes", "standard", mediums=["oil", "acrylic"]),
    _t("Create a {medium} piece of {subject}, exploring how thick and thin paint create texture", "standard", mediums=["oil", "acrylic"]),
    _t("Paint {subject} in {medium}: block in large shapes first, then refine selectively", "standard", mediums=["oil", "acrylic", "gouache"]),
    _t("Create a {medium} piece of {subject} exploring shape language and silhouette", "standard", mediums=["digital"]),
    _t("Design {subject} digitally, using a limited brush set to unify the piece", "standard", mediums=["digital"]),
    _t("Compose {subject} in {medium}, combining found textures and materials", "standard", mediums=["collage", "mixed-media", "paper-art"]),
    _t("Create a {medium} piece of {subject} and let unexpected material combinations tell the story", "standard", mediums=["collage", "mixed-media"]),
    _t("Study {subject} in {medium}, observing how the form catches light from a single source", "standard", subjects=_PORTRAIT_LIKE),
    _t("Create a {medium} piece of {subject} that captures atmosphere and depth", "standard", subjects=_PLACES),
    _t("Interpret {subject} in {medium}, emphasizing rhythm and visual flow", "standard", subjects=["abstract", "patterns"]),
    _t("Explore {subject} in {medium} and tell a story through composition and detail", "standard", subjects=["mythology", "fantasy"]),
    _t("Render {subject} in {medium}, focusing on the textures and surfaces you observe", "standard", subjects=["still-life", "food", "botanicals"]),
    _t("Capture the character of {subject} in {medium} and what makes this subject unique", "standard", subjects=["animals", "people-portraits"]),
    _t("Create a {medium} study of {subject} that plays with foreground and background relationships", "standard", subjects=["landscapes", "urban", "architecture", "botanicals"]),
    _t("Express {subject} in {medium} through shapes and gesture rather than literal detail", "standard", subjects=["abstract", "fantasy", "mythology"]),
    _t("Create a {medium} piece inspired by {subject}, focusing on what draws your eye first", "standard"),
    _t("Study {subject} in {medium}, taking time to really observe before you begin", "standard"),
    _t("Interpret {subject} through {medium} and bring your own perspective to the subject", "standard"),
    _t("Explore {subject} in {medium}, paying attention to the shapes between objects", "standard"),
    _t("Create {subject} in {medium}, challenging yourself to work more intuitively today", "standard"),

    # open
    _t("Explore {subject} in {medium}", "open"),
    _t("{subject}. {medium}. Your interpretation", "open"),
    _t("Deconstruct {subject} through {medium} and find the unexpected", "open"),
    _t("{medium} study: {subject}, emphasis on negative space", "open"),
    _t("Reinterpret {subject} in {medium} and subvert one convention", "open"),
    _t("{subject} in {medium}. Limit yourself to 30 minutes", "open"),
    _t("Investigate the tension between form and void: {subject}, {medium}", "open"),
    _t("{subject}: push {medium} to its extremes of wet and dry", "open", mediums=["watercolor", "ink"]),
    _t("{subject} in {medium}: impasto vs. scumble", "open", mediums=["oil", "acrylic"]),
    _t("{subject}. {medium}. One continuous line", "open", mediums=["pencil", "ink", "charcoal"]),
    _t("Layer, obscure, reveal: {subject} in {medium}", "open", mediums=["collage", "mixed-media"]),
]

EXPLORER_TIPS = (
    "Tip: Start with light pencil guidelines before adding color.",
    "Tip: Take a moment to observe your subject before making any marks.",
    "Tip: Don't worry about perfection, focus on the process and enjoy it!",
    "Tip: Work from large shapes to small details.",
    "Tip: Squint at your subject to see the big value patterns.",
    "Tip: Take breaks and come back with fresh eyes.",
    "Tip: Use a reference photo if you need one. All artists do!",
)


def compatible_templates(medium: str, subject: str, tier: Optional[TemplateTier] = None) -> List[PromptTemplate]:
    """Templates usable for medium+subject at tier; all tiers if none match."""
    fitting = [t for t in TEMPLATES if t.fits(medium, subject)]
    if tier is None:
        return fitting
    tiered = [t for t in fitting if t.tier == tier]
    return tiered or fitting


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


class TemplateAssembler:
    """Renders prompt text. Pure apart from draws on the supplied random source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def base_text(self, medium: str, subject: str, difficulty: DifficultyTier) -> str:
        pool = compatible_templates(medium, subject, difficulty.template_tier)
        template = self._rng.choice(pool)
        text = (
            template.template
            .replace("{medium}", medium_phrase(medium))
            .replace("{subject}", subject_phrase(subject))
        )
        return _capitalize_first(text)

    def assemble(
        self,
        medium: str,
        subject: str,
        difficulty: DifficultyTier,
        color_rule: Optional[str] = None,
        twist: Optional[str] = None,
    ) -> str:
        text = self.base_text(medium, subject, difficulty)

        if color_rule:
            text += f". Work with a {palette_label(color_rule).lower()} palette"

        if twist:
            text += f". {twist}"

        if not text.endswith("."):
            text += "."

        if is_lowest_tier(difficulty):
            text += " " + self._rng.choice(EXPLORER_TIPS)

        return text
