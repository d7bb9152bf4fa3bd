import itertools

from adcapture.classifier import MANY_ANIMATED_ELEMENTS, classify, fired_rules, is_animated
from adcapture.signals import AnimationSignals

TRIGGERS = [
    {"has_css_keyframe_animation": True},
    {"has_meaningful_css_transition": True},
    {"has_canvas_driven_animation": True},
    {"has_svg_animation_elements": True},
    {"has_video_element": True},
    {"has_known_js_animation_library": True},
    {"has_known_animation_framework_marker": True},
]

NOISE = [
    {},
    {"has_computed_style_animation": True, "animated_element_count": 3},
    {"keyframe_rule_count": 2},
    {"has_computed_style_animation": True, "animated_element_count": 50, "keyframe_rule_count": 4},
]


def test_empty_signals_are_static():
    result = classify(AnimationSignals())
    assert result.is_animated is False
    assert result.rules == ()


def test_any_direct_trigger_is_animated_regardless_of_other_fields():
    for trigger, noise in itertools.product(TRIGGERS, NOISE):
        assert is_animated(AnimationSignals(**{**noise, **trigger})), (trigger, noise)


def test_adding_a_trigger_never_flips_to_static():
    base = AnimationSignals(has_video_element=True)
    for trigger in TRIGGERS:
        assert is_animated(AnimationSignals(**{"has_video_element": True, **trigger}))
    assert is_animated(base)


def test_computed_style_alone_with_few_elements_is_static():
    signals = AnimationSignals(has_computed_style_animation=True, animated_element_count=5, keyframe_rule_count=0)
    assert is_animated(signals) is False


def test_computed_style_many_elements_boundary_is_inclusive():
    signals = AnimationSignals(
        has_computed_style_animation=True,
        animated_element_count=MANY_ANIMATED_ELEMENTS,
        keyframe_rule_count=0,
    )
    assert MANY_ANIMATED_ELEMENTS == 10
    assert is_animated(signals) is True
    assert fired_rules(signals) == ("computed_many_elements",)
    below = AnimationSignals(has_computed_style_animation=True, animated_element_count=9)
    assert is_animated(below) is False


def test_computed_style_with_keyframe_corroboration():
    signals = AnimationSignals(has_computed_style_animation=True, animated_element_count=1, keyframe_rule_count=1)
    assert fired_rules(signals) == ("computed_with_keyframes",)


def test_counts_without_computed_flag_do_not_trigger():
    signals = AnimationSignals(animated_element_count=25, keyframe_rule_count=0)
    assert is_animated(signals) is False


def test_classify_keeps_signals_and_rule_names():
    signals = AnimationSignals(has_svg_animation_elements=True, has_video_element=True)
    result = classify(signals)
    assert result.signals is signals
    assert result.rules == ("svg", "video")
