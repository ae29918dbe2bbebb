#!/usr/bin/env python3
"""
Layout metrics and the metric engine.

Letter metrics:
  base      - effort of the pressed keys
  stretch   - distance of the pressed keys from their fingers' home keys
  stretch_x - horizontal part of the stretch
  stretch_y - vertical part of the stretch

Bigram metrics:
  sfb       - fingers pressing two different keys in a row
  shb       - same-hand finger pairs not reused on the same key
  movement  - finger travel between the two combos
  lateral   - horizontal part of the finger travel
  vertical  - vertical part of the finger travel
  staccato  - held layer or modifier keys that must be released and re-pressed
"""

from typing import Dict, List, Sequence

from layout_framework.base_metric import DEFAULT_CACHE_SIZE, BaseMetric, BigramMetric, LetterMetric
from layout_framework.keyboard import HANDS, Keyboard
from layout_framework.metric_factory import MetricFactory
from layout_framework.reachability import KeyCombo, ReachabilityMap
from layout_framework.tables import FrequencyTable, WeightTable

DEFAULT_METRICS = ['base', 'stretch', 'sfb', 'movement', 'staccato']


class BaseEffortMetric(LetterMetric):
    name = 'base'

    def combo_cost(self, combo: KeyCombo) -> float:
        return float(sum(self.weights.base_effort[index] for index in combo.keys()))


class StretchMetric(LetterMetric):
    name = 'stretch'

    def combo_cost(self, combo: KeyCombo) -> float:
        return float(sum(self.weights.stretch[index] for index in combo.keys()))


class HorizontalStretchMetric(LetterMetric):
    name = 'stretch_x'

    def combo_cost(self, combo: KeyCombo) -> float:
        return float(sum(abs(self.keyboard.position(index).x - self.keyboard.home_of(index).x)
                         for index in combo.keys()))


class VerticalStretchMetric(LetterMetric):
    name = 'stretch_y'

    def combo_cost(self, combo: KeyCombo) -> float:
        return float(sum(abs(self.keyboard.position(index).y - self.keyboard.home_of(index).y)
                         for index in combo.keys()))


class SameFingerBigramMetric(BigramMetric):
    name = 'sfb'

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        fingers1 = self.fingers(first)
        fingers2 = self.fingers(second)
        return float(sum(1 for finger, index in fingers1.items()
                         if finger in fingers2 and fingers2[finger] != index))


class SameHandBigramMetric(BigramMetric):
    """
    Count finger pairs shared between the two combos on each hand.

    Per hand, the smaller number of fingers used by either combo, minus the
    fingers that stay on the same key in both.
    """

    name = 'shb'

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        fingers1 = self.fingers(first)
        fingers2 = self.fingers(second)

        total = 0
        for hand in HANDS:
            count1 = sum(1 for finger in fingers1 if finger[0] == hand)
            count2 = sum(1 for finger in fingers2 if finger[0] == hand)
            held = sum(1 for finger, index in fingers1.items()
                       if finger[0] == hand and fingers2.get(finger) == index)
            total += min(count1, count2) - held
        return float(total)


class MovementMetric(BigramMetric):
    name = 'movement'

    def _deltas(self, first: KeyCombo, second: KeyCombo):
        fingers1 = self.fingers(first)
        fingers2 = self.fingers(second)
        for finger, index in fingers1.items():
            if finger in fingers2:
                pos1 = self.keyboard.position(index)
                pos2 = self.keyboard.position(fingers2[finger])
                yield finger, abs(pos2.x - pos1.x), abs(pos2.y - pos1.y)

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        return float(sum(self.weights.movement_factor(finger) * (dx * dx + dy * dy) ** 0.5
                         for finger, dx, dy in self._deltas(first, second)))


class LateralMovementMetric(MovementMetric):
    name = 'lateral'

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        return float(sum(self.weights.movement_factor(finger) * dx
                         for finger, dx, _ in self._deltas(first, second)))


class VerticalMovementMetric(MovementMetric):
    name = 'vertical'

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        return float(sum(self.weights.movement_factor(finger) * dy
                         for finger, _, dy in self._deltas(first, second)))


class StaccatoMetric(BigramMetric):
    """Cost of changing the held layer keys or modifier keys between presses."""

    name = 'staccato'

    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        cost = 0.0
        if first.activators != second.activators:
            cost += self.weights.staccato_cost['layer']
        if first.modifiers != second.modifiers:
            cost += self.weights.staccato_cost['modifier']
        return cost


class MetricEngine:
    """
    Compute raw metric scores for analysed layouts.

    Args:
        keyboard: Physical keyboard
        weights: Ergonomic weight table
        frequencies: Letter and bigram frequencies
        metric_names: Metrics to compute
        cache_size: Entries kept in each metric's cost cache
    """

    def __init__(self,
                 keyboard: Keyboard,
                 weights: WeightTable,
                 frequencies: FrequencyTable,
                 metric_names: Sequence[str] = DEFAULT_METRICS,
                 cache_size: int = DEFAULT_CACHE_SIZE):
        if len(weights) != len(keyboard):
            raise ValueError(f"Weight table has {len(weights)} positions, keyboard has {len(keyboard)}")

        self.keyboard = keyboard
        self.weights = weights
        self.frequencies = frequencies
        self.metrics: Dict[str, BaseMetric] = {
            name: MetricFactory.create_metric(name, keyboard, weights, cache_size) for name in metric_names
        }

    @property
    def metric_names(self) -> List[str]:
        return list(self.metrics.keys())

    def compute(self, analysis: ReachabilityMap) -> Dict[str, float]:
        """
        Calculate raw scores for every configured metric.

        Characters missing from the reachability map are skipped.
        """
        return {name: metric.score(analysis, self.frequencies) for name, metric in self.metrics.items()}
