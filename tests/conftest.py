"""Shared fixtures: small hand-built keyboards and layouts."""

import numpy as np
import pytest

from layout_framework.evaluation import EvaluationPipeline
from layout_framework.keyboard import Keyboard, Position
from layout_framework.layout_model import EMPTY, ActivateLayer, Hold, Layout, Modifier, Tap, parse_tap_string
from layout_framework.metrics import MetricEngine
from layout_framework.tables import FrequencyTable, WeightTable


def make_layout(holds, *layers, composition=None):
    """Build a layout from hold behaviors and one tap string per layer."""
    size = len(holds)
    return Layout(holds, [parse_tap_string(keys, size) for keys in layers], composition)


@pytest.fixture
def four_keyboard():
    """Four keys, each the home key of its own finger."""
    return Keyboard([
        Position(0, 0.0, 0.0, 'L', 2, True),
        Position(1, 20.0, 0.0, 'L', 1, True),
        Position(2, 60.0, 0.0, 'R', 1, True),
        Position(3, 80.0, 0.0, 'R', 2, True),
    ])


@pytest.fixture
def small_keyboard():
    """
    Six keys:
      0 L1 home, 1 L1 below it, 2 L2 home, 3 R1 home, 4 R1 below it, 5 L0 thumb home
    """
    return Keyboard([
        Position(0, 20.0, 0.0, 'L', 1, True),
        Position(1, 20.0, 10.0, 'L', 1, False),
        Position(2, 0.0, 0.0, 'L', 2, True),
        Position(3, 60.0, 0.0, 'R', 1, True),
        Position(4, 60.0, 10.0, 'R', 1, False),
        Position(5, 30.0, 30.0, 'L', 0, True),
    ])


@pytest.fixture
def small_layout():
    """
    Base layer 'abcde ', shift held on key 2, layer 1 held on the thumb.

    Layer 1 taps '1', '2' and '.' on keys 0, 1 and 3.
    """
    holds = [EMPTY, EMPTY, Hold(Modifier('shift')), EMPTY, EMPTY, Hold(ActivateLayer(1))]
    layout = make_layout(holds, "abcde", "12 .")
    layout.set_tap(0, 5, Tap(' '))
    return layout


@pytest.fixture
def small_required():
    return "abcde 12.A"


@pytest.fixture
def small_frequencies():
    return FrequencyTable(
        {'a': 0.2, 'b': 0.1, 'c': 0.1, 'd': 0.1, 'e': 0.2, ' ': 0.15, '1': 0.05, '2': 0.03, '.': 0.04, 'A': 0.02},
        {'ab': 0.05, 'ba': 0.02, 'a ': 0.04, 'e ': 0.06, ' a': 0.03, 'a1': 0.01, '1.': 0.02,
         'de': 0.03, 'ed': 0.02, 'Ab': 0.01, 'cd': 0.01},
    )


@pytest.fixture
def small_weights(small_keyboard):
    return WeightTable.from_keyboard(small_keyboard)


@pytest.fixture
def small_pipeline(small_keyboard, small_weights, small_frequencies, small_required):
    """Pipeline over all metrics with unit weights (uncalibrated)."""
    engine = MetricEngine(small_keyboard, small_weights, small_frequencies,
                          ['base', 'stretch', 'sfb', 'movement', 'staccato'])
    return EvaluationPipeline(
        small_keyboard,
        small_required,
        engine,
        metric_weights={'base': 1.0, 'stretch': 1.0, 'sfb': 1.0, 'movement': 1.0, 'staccato': 1.0},
    )


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
