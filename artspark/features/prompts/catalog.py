"""
Static catalog for prompt generation: mediums, subjects, color palettes and
creative twists.

Ids are what preferences and prompts store; labels are user facing. The
``phrase`` forms are what templates splice into sentences.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class TutorialLink:
    title: str
    url: str


@dataclass(frozen=True)
class MediumInfo:
    id: str
    label: str
    phrase: str
    tutorials: Tuple[TutorialLink, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SubjectInfo:
    id: str
    label: str
    phrase: str


@dataclass(frozen=True)
class PaletteInfo:
    id: str
    label: str
    description: str


MEDIUMS: Dict[str, MediumInfo] = {
    m.id: m
    for m in [
        MediumInfo("watercolor", "Watercolor", "watercolor", (
            TutorialLink("Watercolor Basics for Beginners", "https://www.youtube.com/watch?v=fMq0yQ5V7Hs"),
            TutorialLink("How to Paint with Watercolors", "https://www.wikihow.com/Paint-With-Watercolors"),
        )),
        MediumInfo("gouache", "Gouache", "gouache", (
            TutorialLink("Gouache Painting for Beginners", "https://www.youtube.com/watch?v=Ex31ln_xGTY"),
        )),
        MediumInfo("acrylic", "Acrylic", "acrylic", (
            TutorialLink("Acrylic Painting for Beginners", "https://www.youtube.com/watch?v=oCBkMpuWtUU"),
            TutorialLink("How to Paint with Acrylics", "https://www.wikihow.com/Paint-With-Acrylics"),
        )),
        MediumInfo("oil", "Oil Paint", "oil paint", (
            TutorialLink("Oil Painting Basics for Beginners", "https://www.youtube.com/watch?v=wnhVZGBpngQ"),
        )),
        MediumInfo("pencil", "Pencil", "pencil", (
            TutorialLink("Drawing Fundamentals - Proko", "https://www.youtube.com/watch?v=1EPNYWeEf1U"),
            TutorialLink("How to Draw for Beginners", "https://www.wikihow.com/Draw"),
        )),
        MediumInfo("ink", "Ink", "ink", (
            TutorialLink("How to Draw with Ink", "https://www.wikihow.com/Draw-With-Ink"),
        )),
        MediumInfo("digital", "Digital", "digital", (
            TutorialLink("Digital Art for Beginners", "https://www.youtube.com/watch?v=7QLXGX_3kqE"),
        )),
        MediumInfo("collage", "Collage", "collage", (
            TutorialLink("How to Make a Collage", "https://www.wikihow.com/Make-a-Collage"),
        )),
        MediumInfo("paper-art", "Paper Art", "paper art", (
            TutorialLink("How to Do Paper Art", "https://www.wikihow.com/Make-Paper-Art"),
        )),
        MediumInfo("pastel", "Pastel", "pastel", (
            TutorialLink("How to Use Pastels", "https://www.wikihow.com/Use-Pastels"),
        )),
        MediumInfo("charcoal", "Charcoal", "charcoal", (
            TutorialLink("How to Draw with Charcoal", "https://www.wikihow.com/Draw-With-Charcoal"),
        )),
        MediumInfo("mixed-media", "Mixed Media", "mixed media", (
            TutorialLink("How to Create Mixed Media Art", "https://www.wikihow.com/Create-Mixed-Media-Art"),
        )),
    ]
}

SUBJECTS: Dict[str, SubjectInfo] = {
    s.id: s
    for s in [
        SubjectInfo("animals", "Animals", "animals"),
        SubjectInfo("landscapes", "Landscapes", "a landscape"),
        SubjectInfo("people-portraits", "People & Portraits", "a portrait"),
        SubjectInfo("still-life", "Still Life", "a still life"),
        SubjectInfo("abstract", "Abstract", "an abstract composition"),
        SubjectInfo("urban", "Urban Scenes", "an urban scene"),
        SubjectInfo("botanicals", "Botanicals", "botanicals"),
        SubjectInfo("fantasy", "Fantasy", "a fantasy scene"),
        SubjectInfo("food", "Food", "food"),
        SubjectInfo("architecture", "Architecture", "architecture"),
        SubjectInfo("patterns", "Patterns", "patterns"),
        SubjectInfo("mythology", "Mythology", "a mythological scene"),
    ]
}

PALETTES: Dict[str, PaletteInfo] = {
    p.id: p
    for p in [
        PaletteInfo("earthy", "Earthy", "Warm browns, greens, and golds inspired by nature"),
        PaletteInfo("vibrant", "Vibrant", "Bold, saturated colors that pop off the page"),
        PaletteInfo("monochrome", "Monochrome", "Single-hue work using values from light to dark"),
        PaletteInfo("pastels", "Pastels", "Soft, light-washed tones with gentle contrast"),
        PaletteInfo("complementary", "Complementary", "Opposite colors on the wheel for maximum contrast"),
        PaletteInfo("warm", "Warm", "Reds, oranges, and yellows for energy and warmth"),
        PaletteInfo("cool", "Cool", "Blues, greens, and purples for calm and depth"),
        PaletteInfo("random-ok", "I'm okay with any", "We'll surprise you with any palette"),
    ]
}

# Preference meaning "surprise me"; resolved to a concrete palette at generation time
ANY_PALETTE = "random-ok"
CONCRETE_PALETTES = tuple(p for p in PALETTES if p != ANY_PALETTE)

COLOR_MEDIUMS = frozenset({"watercolor", "gouache", "acrylic", "oil", "pastel", "digital", "collage", "mixed-media"})
WET_MEDIUMS = frozenset({"watercolor", "gouache", "acrylic", "oil"})
DRY_MEDIUMS = frozenset({"pencil", "charcoal", "ink", "pastel", "digital", "collage", "paper-art"})

_MEDIUM_GROUPS = {
    "color": COLOR_MEDIUMS,
    "wet": WET_MEDIUMS,
    "dry": DRY_MEDIUMS,
}

# "all" or a medium group name, or an explicit list of medium ids
Compatibility = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Twist:
    text: str
    compatible_with: Compatibility = "all"

    def supports(self, medium: str) -> bool:
        if self.compatible_with == "all":
            return True
        if isinstance(self.compatible_with, str):
            return medium in _MEDIUM_GROUPS.get(self.compatible_with, ())
        return medium in self.compatible_with


TWISTS: List[Twist] = [
    Twist("Work from memory, not reference"),
    Twist("Focus on negative space"),
    Twist("Emphasize light and shadow"),
    Twist("Simplify to essential shapes only"),
    Twist("Try a perspective you've never used"),
    Twist("Work larger than usual"),
    Twist("Work smaller than usual"),
    Twist("Focus on movement and energy"),
    Twist("Create a mood, not just a scene"),
    Twist("Break one rule you usually follow"),
    Twist("Spend extra time on composition before starting"),
    Twist("Leave it intentionally unfinished"),
    Twist("Work in a series: do 3 quick variations"),
    Twist("Limit yourself to 3 colors plus white", "color"),
    Twist("Use complementary colors as your foundation", "color"),
    Twist("Build the entire piece from warm tones only", "color"),
    Twist("Build the entire piece from cool tones only", "color"),
    Twist("Start with the darkest values first", "color"),
    Twist("Use an unexpected color for your shadows", "color"),
    Twist("Complete it in under 15 minutes", "dry"),
    Twist("Use only continuous line, don't lift your tool", "dry"),
    Twist("Build form using only hatching and cross-hatching", "dry"),
    Twist("Let the medium do the work and embrace happy accidents", "wet"),
    Twist("Work wet-on-wet for the entire piece", "wet"),
    Twist("Use a palette knife instead of brushes", ("acrylic", "oil", "gouache")),
    Twist("Use salt or alcohol for texture effects", ("watercolor",)),
    Twist("Layer transparent washes with no opaque passages", ("watercolor", "ink")),
    Twist("Smudge and blend with your fingers", ("charcoal", "pastel")),
]


def twists_for_medium(medium: str) -> List[Twist]:
    return [t for t in TWISTS if t.supports(medium)]


def medium_phrase(medium: str) -> str:
    info = MEDIUMS.get(medium)
    return info.phrase if info else medium


def subject_phrase(subject: str) -> str:
    info = SUBJECTS.get(subject)
    return info.phrase if info else subject


def palette_label(palette: str) -> str:
    info = PALETTES.get(palette)
    return info.label if info else palette


def tutorial_links(medium: str) -> List[TutorialLink]:
    """Empty for unknown or custom mediums."""
    info: Optional[MediumInfo] = MEDIUMS.get(medium)
    return list(info.tutorials) if info else []
