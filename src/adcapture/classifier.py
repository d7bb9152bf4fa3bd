"""Static-vs-animated decision over collected animation signals."""

from __future__ import annotations

from dataclasses import dataclass

from .signals import AnimationSignals

# Computed-style hits alone are noisy; this many animated elements is enough
# corroboration without any keyframe rule.
MANY_ANIMATED_ELEMENTS = 10


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    is_animated: bool
    signals: AnimationSignals
    rules: tuple[str, ...] = ()


def fired_rules(signals: AnimationSignals) -> tuple[str, ...]:
    """Names of every fusion rule satisfied by ``signals``."""

    fired: list[str] = []
    if signals.has_css_keyframe_animation or signals.has_meaningful_css_transition:
        fired.append("css")
    if signals.has_canvas_driven_animation:
        fired.append("canvas")
    if signals.has_svg_animation_elements:
        fired.append("svg")
    if signals.has_video_element:
        fired.append("video")
    if signals.has_known_js_animation_library or signals.has_known_animation_framework_marker:
        fired.append("library")
    if signals.has_computed_style_animation:
        if signals.animated_element_count > 0 and signals.keyframe_rule_count > 0:
            fired.append("computed_with_keyframes")
        if signals.animated_element_count >= MANY_ANIMATED_ELEMENTS:
            fired.append("computed_many_elements")
    return tuple(fired)


def is_animated(signals: AnimationSignals) -> bool:
    return bool(fired_rules(signals))


def classify(signals: AnimationSignals) -> ClassificationResult:
    rules = fired_rules(signals)
    return ClassificationResult(is_animated=bool(rules), signals=signals, rules=rules)


__all__ = ["ClassificationResult", "MANY_ANIMATED_ELEMENTS", "classify", "fired_rules", "is_animated"]
