#!/usr/bin/env python3
"""
Random pruning of unused keys after an accepted move.

Taps and holds that take part in no combo of a required character are
cleared with configured probabilities. Empty, unreachable layers can be
removed as well, though that step is off by default.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from layout_framework.errors import ConfigurationError
from layout_framework.layout_model import EMPTY, ActivateLayer, Hold, KeyLoc, Layout, Tap
from layout_framework.reachability import ReachabilityMap


@dataclass
class CleanupConfig:
    tap_removal_probability: float = 0.7
    hold_removal_probability: float = 0.5
    layer_removal_probability: float = 0.0

    def __post_init__(self):
        for name in ('tap_removal_probability', 'hold_removal_probability', 'layer_removal_probability'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"cleanup.{name} must be a number between 0 and 1, got {value!r}")

    @property
    def enabled(self) -> bool:
        return (self.tap_removal_probability > 0 or self.hold_removal_probability > 0
                or self.layer_removal_probability > 0)


class LayoutCleaner:
    """Clear unused taps, holds and layers of an analysed layout."""

    def __init__(self, config: CleanupConfig = None):
        self.config = config or CleanupConfig()

    def clean(self, layout: Layout, analysis: ReachabilityMap,
              rng: np.random.Generator) -> Tuple[Layout, bool]:
        """
        Prune a copy of `layout`.

        Args:
            layout: Layout to prune (left untouched)
            analysis: Reachability map of `layout`
            rng: Random generator

        Returns:
            Tuple of (pruned layout, whether anything changed)
        """
        cleaned = layout.copy()
        changed = False

        if self.config.hold_removal_probability > 0:
            for index in range(cleaned.size):
                if (isinstance(cleaned.hold(index), Hold) and index not in analysis.used_holds
                        and rng.random() < self.config.hold_removal_probability):
                    cleaned.set_hold(index, EMPTY)
                    changed = True

        if self.config.tap_removal_probability > 0:
            for layer_id in range(cleaned.layer_count):
                for index in range(cleaned.size):
                    if (isinstance(cleaned.tap(layer_id, index), Tap)
                            and KeyLoc(layer_id, index) not in analysis.used_taps
                            and rng.random() < self.config.tap_removal_probability):
                        cleaned.set_tap(layer_id, index, EMPTY)
                        changed = True

        if self.config.layer_removal_probability > 0:
            # Highest id first so removals do not shift the ids still to visit
            for layer_id in reversed(range(1, cleaned.layer_count)):
                if self._is_removable(cleaned, layer_id, analysis) \
                        and rng.random() < self.config.layer_removal_probability:
                    cleaned.remove_layer(layer_id)
                    changed = True

        return cleaned, changed

    @staticmethod
    def _is_removable(layout: Layout, layer_id: int, analysis: ReachabilityMap) -> bool:
        if not layout.layers[layer_id].is_empty():
            return False
        target = Hold(ActivateLayer(layer_id))
        return not any(layout.hold(index) == target for index in analysis.used_holds)
