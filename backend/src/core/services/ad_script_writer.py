"""Deterministic ad package composer.

Builds a complete :class:`AdPackage` from a brief without calling a model.
Used as the default ad writer and as a baseline for prompt-driven writers.
"""

from __future__ import annotations

import logging
import math
import re

from backend.src.core.entities.ad_package import (
    PLATFORM_CONSTRAINTS,
    AdBeat,
    AdBrief,
    AdPackage,
    AdScript,
    AdTone,
    AdVariant,
    Objective,
)

logger = logging.getLogger(__name__)

_TONES = list(AdTone)
_WHITESPACE = re.compile(r"\s+")

_HOOK_TEMPLATES = (
    "What if {product} could change everything?",
    "The secret {audience} doesn't want you to know",
    "This {product} hack will blow your mind",
    "Why {brand} is different from everyone else",
    "The one thing about {product} that surprised me",
)

_CTA_TEMPLATES = {
    Objective.AWARENESS: "Learn more about {brand}",
    Objective.TRAFFIC: "Visit {brand}.com today",
    Objective.CONVERSION: "Get {product} now - limited time",
}


def _round_tenth(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


class TemplateAdWriter:
    """Implements :class:`AdWriterPort` with fixed templates."""

    # -- Port interface --------------------------------------------------------

    async def write(self, brief: AdBrief, variant_count: int, context: str = "") -> AdPackage:
        return self.compose(brief, variant_count)

    # -- Composition -----------------------------------------------------------

    def compose(self, brief: AdBrief, variant_count: int) -> AdPackage:
        package = AdPackage(
            brief=brief,
            base_script=self.script(brief, hook_index=0),
            variants=[self.variant(brief, i) for i in range(variant_count)],
        )
        logger.info(
            "Composed ad package for %s (%d beats, %d variants)",
            brief.brand,
            len(package.base_script.beats),
            len(package.variants),
        )
        return package

    def script(self, brief: AdBrief, hook_index: int) -> AdScript:
        return AdScript(
            hook=self.hook(brief, hook_index),
            beats=self.beats(brief),
            cta=self.cta(brief),
            captions=self.captions(brief),
            hashtags=self.hashtags(brief),
            compliance_notes=self.compliance_notes(brief),
        )

    def variant(self, brief: AdBrief, index: int) -> AdVariant:
        tone = _TONES[index % len(_TONES)]
        hook = self.hook(brief, index + 1)
        return AdVariant(
            id=f"variant-{index + 1}",
            tone=tone,
            hook_rewrite=f"{tone.value.capitalize()} version: {hook}",
            cta_rewrite=f"{self.cta(brief)} ({tone.value} tone)",
            platform=brief.platform,
            script=self.script(brief, hook_index=index + 1),
        )

    @staticmethod
    def hook(brief: AdBrief, index: int) -> str:
        template = _HOOK_TEMPLATES[index % len(_HOOK_TEMPLATES)]
        return template.format(product=brief.product, audience=brief.audience, brand=brief.brand)

    @staticmethod
    def beats(brief: AdBrief) -> list[AdBeat]:
        duration = brief.duration_sec
        count = min(4, math.floor(duration / 3))
        span = duration / count
        beats: list[AdBeat] = []
        for i in range(count):
            beats.append(
                AdBeat(
                    t_start=_round_tenth(span * i),
                    t_end=_round_tenth(span * (i + 1)),
                    voiceover=f"Beat {i + 1}: Showcasing {brief.product}",
                    on_screen_text=f"{brief.brand} {brief.product}",
                    overlay=["sparkle", "brand_logo"] if i == 0 else [],
                    shot_notes=f"{'Opening shot' if i == 0 else 'Product demo'} - {brief.platform.value} style",
                )
            )
        return beats

    @staticmethod
    def cta(brief: AdBrief) -> str:
        return _CTA_TEMPLATES[brief.objective].format(brand=brief.brand, product=brief.product)

    def captions(self, brief: AdBrief) -> str:
        text = (
            f"Discover {brief.product} - {brief.value_prop}. "
            f"Perfect for {brief.audience}. {self.cta(brief)}"
        )
        limit = PLATFORM_CONSTRAINTS[brief.platform].max_caption_length
        if len(text) > limit:
            text = text[: limit - 1].rstrip() + "…"
        return text

    @staticmethod
    def hashtags(brief: AdBrief) -> list[str]:
        product_tag = _WHITESPACE.sub("", brief.product.lower())
        return [
            f"#{brief.brand.lower()}",
            f"#{product_tag}",
            f"#{brief.platform.value}",
            "#viral",
            "#trending",
        ]

    @staticmethod
    def compliance_notes(brief: AdBrief) -> list[str]:
        notes: list[str] = []
        if brief.sensitive_claims:
            notes.append("Review claims for compliance with platform guidelines")
        notes.append("Ensure brand logo placement follows platform safe area guidelines")
        notes.append("Music licensing required for background audio")
        return notes
