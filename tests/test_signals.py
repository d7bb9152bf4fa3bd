import asyncio

import pytest
from adcapture.errors import ClassificationError, RendererUnavailable
from adcapture.signals import (
    AnimationSignals,
    build_signals,
    collect_signals,
    has_positive_duration,
    is_meaningful_animation,
    is_meaningful_transition,
    parse_durations,
)


def test_parse_durations_handles_lists_and_units():
    assert parse_durations("0s, 0.5s") == [0.0, 0.5]
    assert parse_durations("200ms") == [0.2]
    assert parse_durations(".25s") == [0.25]
    assert parse_durations("") == []
    assert parse_durations(None) == []


def test_has_positive_duration():
    assert has_positive_duration("0s, 1s")
    assert not has_positive_duration("0s")
    assert not has_positive_duration("0ms, 0s")


def test_is_meaningful_animation_requires_name_and_duration():
    assert is_meaningful_animation("spin", "2s")
    assert not is_meaningful_animation("none", "2s")
    assert not is_meaningful_animation("spin", "0s")
    assert not is_meaningful_animation("", "1s")
    assert is_meaningful_animation("none, fade", "0s, 1s")


def test_is_meaningful_transition_filters_defaults_and_hover():
    assert is_meaningful_transition("opacity", "0.3s")
    assert not is_meaningful_transition("all", "0s")
    assert not is_meaningful_transition("none", "1s")
    assert not is_meaningful_transition("opacity", "0.3s", selector=".cta:hover")
    assert is_meaningful_transition("", "1s")


def test_build_signals_with_every_probe_failed_is_all_false():
    assert build_signals(None, None, None, None) == AnimationSignals()


def test_build_signals_keyframes_and_rules():
    stylesheets = {
        "keyframes": 2,
        "rules": [
            {"selector": ".a", "animationName": "spin", "animationDuration": "2s"},
            {"selector": ".b:hover", "transitionProperty": "opacity", "transitionDuration": "0.2s"},
        ],
        "inaccessible": [],
    }
    signals = build_signals(stylesheets, [], {}, {})
    assert signals.has_css_keyframe_animation
    assert signals.keyframe_rule_count == 2
    assert not signals.has_meaningful_css_transition


def test_build_signals_transition_rule_only():
    stylesheets = {
        "keyframes": 0,
        "rules": [{"selector": ".banner", "transitionProperty": "transform", "transitionDuration": "1s"}],
    }
    signals = build_signals(stylesheets, None, None, None)
    assert signals.has_meaningful_css_transition
    assert not signals.has_css_keyframe_animation


def test_build_signals_counts_computed_elements():
    computed = [
        {"animationName": "spin", "animationDuration": "1s", "transitionProperty": "all", "transitionDuration": "0s"},
        {"animationName": "none", "animationDuration": "0s", "transitionProperty": "opacity", "transitionDuration": "0.5s"},
        {"animationName": "none", "animationDuration": "0s", "transitionProperty": "all", "transitionDuration": "0s"},
    ]
    signals = build_signals(None, computed, None, None)
    assert signals.has_computed_style_animation
    assert signals.animated_element_count == 2


def test_build_signals_script_libraries_and_markers():
    lib = build_signals(None, None, {"content": "gsap.to('.x', {x: 10})", "sources": "", "globals": []}, None)
    assert lib.has_known_js_animation_library
    assert not lib.has_known_animation_framework_marker

    src = build_signals(None, None, {"content": "", "sources": "https://cdn/TweenMax.min.js", "globals": []}, None)
    assert src.has_known_js_animation_library

    hype = build_signals(None, None, {"content": "", "sources": "", "globals": ["HYPE_778"]}, None)
    assert hype.has_known_animation_framework_marker

    plain = build_signals(None, None, {"content": "console.log('hi'); setTimeout(f, 10)", "sources": ""}, None)
    assert not plain.has_known_js_animation_library
    assert not plain.has_known_animation_framework_marker


def test_canvas_requires_canvas_element_and_loop_or_library():
    loop_script = {"content": "function tick(){ requestAnimationFrame(tick) }", "sources": "", "globals": []}
    assert build_signals(None, None, loop_script, {"canvas": 1}).has_canvas_driven_animation
    assert not build_signals(None, None, loop_script, {"canvas": 0}).has_canvas_driven_animation
    idle = {"content": "ctx.fillRect(0, 0, 10, 10)", "sources": "", "globals": []}
    assert not build_signals(None, None, idle, {"canvas": 2}).has_canvas_driven_animation
    pixi = {"content": "", "sources": "", "globals": ["PIXI"]}
    assert build_signals(None, None, pixi, {"canvas": 1}).has_canvas_driven_animation


def test_svg_and_video_counts():
    signals = build_signals(None, None, None, {"canvas": 0, "svgAnimations": 3, "videos": 1})
    assert signals.has_svg_animation_elements
    assert signals.has_video_element


def test_negative_counts_rejected():
    with pytest.raises(ValueError):
        AnimationSignals(animated_element_count=-1)


class _ProbePage:
    def __init__(self, *, fail=(), closed=False, hang=False):
        self.fail = set(fail)
        self.closed = closed
        self.hang = hang

    def is_closed(self):
        return self.closed

    async def evaluate(self, script, arg=None):
        if self.hang:
            await asyncio.sleep(10)
        if "CSSKeyframesRule" in script:
            if "stylesheets" in self.fail:
                raise RuntimeError("SecurityError: cannot access rules")
            return {"keyframes": 1, "rules": [], "inaccessible": ["https://cdn.example/a.css"]}
        if "getComputedStyle" in script:
            if "computed_styles" in self.fail:
                raise RuntimeError("boom")
            return []
        if "document.scripts" in script:
            return {"content": "", "sources": "", "globals": []}
        return {"canvas": 0, "svgAnimations": 0, "videos": 1}


def test_collect_signals_tolerates_failed_sub_checks():
    signals = asyncio.run(collect_signals(_ProbePage(fail={"stylesheets", "computed_styles"})))
    assert signals.keyframe_rule_count == 0
    assert signals.has_video_element


def test_collect_signals_reads_every_probe():
    signals = asyncio.run(collect_signals(_ProbePage()))
    assert signals.keyframe_rule_count == 1
    assert signals.has_css_keyframe_animation


def test_collect_signals_closed_page_is_fatal():
    with pytest.raises(RendererUnavailable):
        asyncio.run(collect_signals(_ProbePage(closed=True)))


def test_collect_signals_timeout_is_classification_failure():
    with pytest.raises(ClassificationError):
        asyncio.run(collect_signals(_ProbePage(hang=True), timeout_ms=50))
