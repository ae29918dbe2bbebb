import pytest

from conftest import make_layout
from layout_framework.cleanup import CleanupConfig, LayoutCleaner
from layout_framework.errors import ConfigurationError
from layout_framework.layout_model import EMPTY, ActivateLayer, Disabled, Hold, Modifier, Tap
from layout_framework.reachability import analyze_layout, validate


def cluttered(small_layout):
    """Small layout plus unused taps and holds."""
    layout = small_layout.copy()
    layout.set_tap(1, 4, Tap('x'))
    layout.set_tap(1, 5, Tap('y'))
    layout.set_hold(0, Hold(Disabled()))
    layout.set_hold(3, Hold(Modifier('shift')))
    return layout


def test_certain_removal_keeps_only_used_keys(small_layout, small_keyboard, small_required, rng):
    layout = cluttered(small_layout)
    analysis = analyze_layout(layout, small_keyboard, small_required)
    cleaner = LayoutCleaner(CleanupConfig(1.0, 1.0, 0.0))

    cleaned, changed = cleaner.clean(layout, analysis, rng)

    assert changed
    assert cleaned.tap(1, 4) == EMPTY
    assert cleaned.tap(1, 5) == EMPTY
    assert cleaned.hold(0) == EMPTY
    assert cleaned.hold(2) == Hold(Modifier('shift'))
    assert cleaned.hold(5) == Hold(ActivateLayer(1))
    assert validate(cleaned, small_keyboard, small_required) == []
    # The input layout is left as it was
    assert layout.tap(1, 4) == Tap('x')


def test_cleanup_keeps_validity(small_layout, small_keyboard, small_required, rng):
    cleaner = LayoutCleaner(CleanupConfig(0.7, 0.5, 1.0))
    for _ in range(50):
        layout = cluttered(small_layout)
        cleaned, _ = cleaner.clean(layout, analyze_layout(layout, small_keyboard, small_required), rng)
        assert validate(cleaned, small_keyboard, small_required) == []


def test_zero_probabilities_change_nothing(small_layout, small_keyboard, small_required, rng):
    layout = cluttered(small_layout)
    cleaned, changed = LayoutCleaner(CleanupConfig(0.0, 0.0, 0.0)).clean(
        layout, analyze_layout(layout, small_keyboard, small_required), rng)
    assert not changed
    assert cleaned == layout
    assert not CleanupConfig(0.0, 0.0, 0.0).enabled


def test_empty_unused_layer_removed(small_keyboard, rng):
    holds = [EMPTY, EMPTY, EMPTY, Hold(ActivateLayer(2)), EMPTY, Hold(ActivateLayer(1))]
    layout = make_layout(holds, "abcde", "", "1")
    analysis = analyze_layout(layout, small_keyboard, "abcde1")

    cleaned, changed = LayoutCleaner(CleanupConfig(0.0, 0.0, 1.0)).clean(layout, analysis, rng)

    assert changed
    assert cleaned.layer_count == 2
    assert cleaned.tap(1, 0) == Tap('1')
    assert cleaned.hold(5) == EMPTY
    assert cleaned.hold(3) == Hold(ActivateLayer(1))
    assert validate(cleaned, small_keyboard, "abcde1") == []


def test_config_validation():
    with pytest.raises(ConfigurationError):
        CleanupConfig(tap_removal_probability=1.5)
    with pytest.raises(ConfigurationError):
        CleanupConfig(hold_removal_probability='often')
