"""Animation signal collection for a rendered creative.

Each sub-check runs as its own ``page.evaluate`` call and returns raw values
(style longhands, script text, element counts). The decisions about what is a
"meaningful" animation or transition are made here in Python by
:func:`build_signals`, so they can be exercised without a browser.

A failing sub-check is logged and contributes false/zero; it never aborts the
collection. Only a closed page or a blown collection deadline is fatal.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import asdict, dataclass
from typing import Any

from .config import DEFAULT_SIGNALS_TIMEOUT_MS
from .errors import ClassificationError, RendererUnavailable
from .logging import capturelog

# ============================
# Known markers
# ============================
ANIMATION_LIBRARY_GLOBALS = (
    "gsap",
    "TweenMax",
    "TweenLite",
    "TimelineMax",
    "TimelineLite",
    "anime",
    "Velocity",
    "lottie",
    "bodymovin",
)
AUTHORING_TOOL_GLOBALS = ("HYPE", "HYPE_778", "HYPE_778F", "HYPE_778T", "AdobeAn", "createjs", "gwd")
CANVAS_LIBRARY_GLOBALS = ("createjs", "PIXI", "THREE", "Phaser")

_LIBRARY_SCRIPT_RE = re.compile(
    r"\bgsap\b|\bTween(?:Max|Lite)\b|\bTimeline(?:Max|Lite)\b|\banime\s*\(|\blottie\b|\bbodymovin\b|\bVelocity\s*\("
)
_LIBRARY_SRC_RE = re.compile(r"gsap|tweenmax|tweenlite|timelinemax|anime(?:\.min)?\.js|lottie|bodymovin|velocity", re.I)
_AUTHORING_SCRIPT_RE = re.compile(r"\bAdobeAn\.|\bcreatejs\.Ticker\b|\bHYPE_\d+|\bgwd\.actions\b")
_AUTHORING_SRC_RE = re.compile(r"createjs|hype[-_]|hype_generated_script|gwdpage|gwd[-_]", re.I)
_CANVAS_LOOP_RE = re.compile(r"\brequestAnimationFrame\b|\bsetInterval\b|\bsetTimeout\b")
_CANVAS_LIBRARY_SCRIPT_RE = re.compile(r"\bcreatejs\.|\bAdobeAn\.|\bPIXI\.|\bTHREE\.|\bPhaser\.")
_CANVAS_LIBRARY_SRC_RE = re.compile(r"createjs|pixi|three(?:\.min)?\.js|phaser", re.I)

_TIME_RE = re.compile(r"(-?\d*\.?\d+)\s*(ms|s)\b", re.I)


@dataclass(frozen=True, slots=True)
class AnimationSignals:
    has_css_keyframe_animation: bool = False
    keyframe_rule_count: int = 0
    has_meaningful_css_transition: bool = False
    has_computed_style_animation: bool = False
    animated_element_count: int = 0
    has_known_js_animation_library: bool = False
    has_known_animation_framework_marker: bool = False
    has_canvas_driven_animation: bool = False
    has_svg_animation_elements: bool = False
    has_video_element: bool = False

    def __post_init__(self) -> None:
        if self.keyframe_rule_count < 0 or self.animated_element_count < 0:
            raise ValueError("signal counts must not be negative")

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================
# Pure style helpers
# ============================


def parse_durations(value: str | None) -> list[float]:
    """Return the first time value (seconds) of each comma-separated entry."""

    if not value:
        return []
    out: list[float] = []
    for part in value.split(","):
        m = _TIME_RE.search(part)
        if not m:
            continue
        amount = float(m.group(1))
        out.append(amount / 1000.0 if m.group(2).lower() == "ms" else amount)
    return out


def has_positive_duration(value: str | None) -> bool:
    return any(d > 0 for d in parse_durations(value))


def is_meaningful_animation(name: str | None, duration: str | None) -> bool:
    """A named (non-``none``) animation with a positive duration."""

    names = [n.strip() for n in (name or "").split(",")]
    if not any(n and n.lower() != "none" for n in names):
        return False
    return has_positive_duration(duration)


def is_meaningful_transition(prop: str | None, duration: str | None, selector: str | None = None) -> bool:
    """A transition that can actually play without user interaction."""

    if selector and ":hover" in selector:
        return False
    props = [p.strip() for p in (prop or "all").split(",")]
    if all(p.lower() == "none" for p in props):
        return False
    return has_positive_duration(duration)


# ============================
# In-page probes
# ============================

_STYLESHEET_SCAN_JS = """
() => {
    const out = { keyframes: 0, rules: [], inaccessible: [] };
    const visit = (rules) => {
        for (const rule of Array.from(rules || [])) {
            if (typeof CSSKeyframesRule !== 'undefined' && rule instanceof CSSKeyframesRule) {
                out.keyframes++;
                continue;
            }
            if (rule.style) {
                const s = rule.style;
                if (s.animationName || s.animationDuration || s.transitionDuration || s.transitionProperty) {
                    out.rules.push({
                        selector: rule.selectorText || '',
                        animationName: s.animationName || '',
                        animationDuration: s.animationDuration || '',
                        transitionProperty: s.transitionProperty || '',
                        transitionDuration: s.transitionDuration || '',
                    });
                }
            }
            if (rule.cssRules) visit(rule.cssRules);
        }
    };
    for (const sheet of Array.from(document.styleSheets)) {
        let rules = null;
        try {
            rules = sheet.cssRules;
        } catch (e) {
            out.inaccessible.push(sheet.href || '(inline)');
            continue;
        }
        visit(rules);
    }
    return out;
}
"""

_COMPUTED_STYLE_SCAN_JS = """
() => {
    const out = [];
    for (const el of Array.from(document.querySelectorAll('*'))) {
        const cs = window.getComputedStyle(el);
        if (cs.animationName === 'none' && cs.transitionDuration === '0s') continue;
        out.push({
            animationName: cs.animationName,
            animationDuration: cs.animationDuration,
            transitionProperty: cs.transitionProperty,
            transitionDuration: cs.transitionDuration,
        });
    }
    return out;
}
"""

_SCRIPT_SCAN_JS = """
(names) => {
    const scripts = Array.from(document.scripts);
    return {
        content: scripts.map(s => s.textContent || '').join('\\n'),
        sources: scripts.map(s => s.src || '').join('\\n'),
        globals: names.filter(n => typeof window[n] !== 'undefined'),
    };
}
"""

_ELEMENT_COUNT_JS = """
() => ({
    canvas: document.querySelectorAll('canvas').length,
    svgAnimations: document.querySelectorAll('animate, animateTransform, animateMotion').length,
    videos: document.querySelectorAll('video').length,
})
"""

_PROBED_GLOBALS = sorted(set(ANIMATION_LIBRARY_GLOBALS + AUTHORING_TOOL_GLOBALS + CANVAS_LIBRARY_GLOBALS))


def build_signals(
    stylesheets: dict[str, Any] | None,
    computed: list[dict[str, Any]] | None,
    scripts: dict[str, Any] | None,
    counts: dict[str, Any] | None,
) -> AnimationSignals:
    """Fold raw probe payloads into an :class:`AnimationSignals` record.

    ``None`` for any payload means that sub-check failed and contributes
    nothing.
    """

    keyframes = 0
    css_animation = False
    css_transition = False
    if stylesheets:
        keyframes = int(stylesheets.get("keyframes") or 0)
        for rule in stylesheets.get("rules") or []:
            if is_meaningful_animation(rule.get("animationName"), rule.get("animationDuration")):
                css_animation = True
            if rule.get("transitionDuration") and is_meaningful_transition(
                rule.get("transitionProperty"), rule.get("transitionDuration"), rule.get("selector")
            ):
                css_transition = True

    animated_elements = 0
    for style in computed or []:
        animated = is_meaningful_animation(style.get("animationName"), style.get("animationDuration"))
        transitioning = is_meaningful_transition(style.get("transitionProperty"), style.get("transitionDuration"))
        if animated or transitioning:
            animated_elements += 1

    content = sources = ""
    present: set[str] = set()
    if scripts:
        content = scripts.get("content") or ""
        sources = scripts.get("sources") or ""
        present = set(scripts.get("globals") or [])

    has_library = bool(
        present.intersection(ANIMATION_LIBRARY_GLOBALS)
        or _LIBRARY_SCRIPT_RE.search(content)
        or _LIBRARY_SRC_RE.search(sources)
    )
    has_marker = bool(
        present.intersection(AUTHORING_TOOL_GLOBALS)
        or _AUTHORING_SCRIPT_RE.search(content)
        or _AUTHORING_SRC_RE.search(sources)
    )

    counts = counts or {}
    has_canvas = False
    if int(counts.get("canvas") or 0) > 0:
        has_canvas = bool(
            _CANVAS_LOOP_RE.search(content)
            or _CANVAS_LIBRARY_SCRIPT_RE.search(content)
            or _CANVAS_LIBRARY_SRC_RE.search(sources)
            or present.intersection(CANVAS_LIBRARY_GLOBALS)
        )

    return AnimationSignals(
        has_css_keyframe_animation=keyframes > 0 or css_animation,
        keyframe_rule_count=keyframes,
        has_meaningful_css_transition=css_transition,
        has_computed_style_animation=animated_elements > 0,
        animated_element_count=animated_elements,
        has_known_js_animation_library=has_library,
        has_known_animation_framework_marker=has_marker,
        has_canvas_driven_animation=has_canvas,
        has_svg_animation_elements=int(counts.get("svgAnimations") or 0) > 0,
        has_video_element=int(counts.get("videos") or 0) > 0,
    )


async def _run_check(page, check: str, script: str, *, creative: str, arg: Any = None) -> Any:
    try:
        if arg is None:
            return await page.evaluate(script)
        return await page.evaluate(script, arg)
    except Exception as exc:
        capturelog("signal_check_failed", creative=creative, level="warning", check=check, error=str(exc))
        return None


async def _collect(page, creative: str) -> AnimationSignals:
    stylesheets = await _run_check(page, "stylesheets", _STYLESHEET_SCAN_JS, creative=creative)
    for href in (stylesheets or {}).get("inaccessible") or []:
        capturelog("stylesheet_inaccessible", creative=creative, level="warning", href=href)
    computed = await _run_check(page, "computed_styles", _COMPUTED_STYLE_SCAN_JS, creative=creative)
    scripts = await _run_check(page, "scripts", _SCRIPT_SCAN_JS, creative=creative, arg=_PROBED_GLOBALS)
    counts = await _run_check(page, "elements", _ELEMENT_COUNT_JS, creative=creative)
    return build_signals(stylesheets, computed, scripts, counts)


async def collect_signals(page, *, creative: str = "", timeout_ms: int = DEFAULT_SIGNALS_TIMEOUT_MS) -> AnimationSignals:
    """Read the rendered document and return its animation signals.

    Raises :class:`RendererUnavailable` if the page is already closed and
    :class:`ClassificationError` if collection does not finish in time.
    """

    if page is None or page.is_closed():
        raise RendererUnavailable("page is closed; cannot collect animation signals")
    try:
        signals = await asyncio.wait_for(_collect(page, creative), timeout=timeout_ms / 1000.0)
    except asyncio.TimeoutError as exc:
        raise ClassificationError(f"animation signals not collected within {timeout_ms}ms") from exc
    capturelog("signals_collected", creative=creative, **signals.as_dict())
    return signals


__all__ = [
    "ANIMATION_LIBRARY_GLOBALS",
    "AUTHORING_TOOL_GLOBALS",
    "AnimationSignals",
    "build_signals",
    "collect_signals",
    "has_positive_duration",
    "is_meaningful_animation",
    "is_meaningful_transition",
    "parse_durations",
]
