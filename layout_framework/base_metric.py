#!/usr/bin/env python3
"""
Base classes for layout metrics.

Provides the metric interface and the result structure shared by the
evaluation pipeline and the annealer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional

from layout_framework.keyboard import Keyboard
from layout_framework.layout_model import KeyLoc
from layout_framework.reachability import KeyCombo, ReachabilityMap
from layout_framework.tables import FrequencyTable, WeightTable

# Entries kept per metric cost cache
DEFAULT_CACHE_SIZE = 100_000


@dataclass
class EvaluationResult:
    """
    Result of evaluating one layout.

    Lower scores are better: every metric is a cost.
    """

    raw: Dict[str, float] = field(default_factory=dict)
    """Raw metric scores"""

    weighted: float = 0.0
    """Sum of weight * percentage^2 over tracked metrics"""

    normalized: float = 0.0
    """Weighted score scaled so the starter layout scores 1,000,000"""

    percentages: Dict[str, float] = field(default_factory=dict)
    """Per-metric raw score as a percentage of the reference layout's"""

    metadata: Dict[str, Any] = field(default_factory=dict)

    execution_time: float = 0.0
    """Time taken to evaluate (seconds)"""

    def get_score(self, metric_name: Optional[str] = None) -> float:
        """
        Get a raw metric score or the normalized score.

        Args:
            metric_name: Name of metric to retrieve, or None for normalized

        Raises:
            KeyError: If metric_name is not in raw
        """
        if metric_name is None:
            return self.normalized

        if metric_name not in self.raw:
            available = list(self.raw.keys())
            raise KeyError(f"Metric '{metric_name}' not found. Available: {available}")

        return self.raw[metric_name]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert result to dictionary format.

        Returns:
            Flat dictionary suitable for CSV export
        """
        result = {
            'normalized': self.normalized,
            'weighted': self.weighted,
            'execution_time': self.execution_time,
        }

        for metric, score in self.raw.items():
            result[f'raw_{metric}'] = score

        for metric, pct in self.percentages.items():
            result[f'pct_{metric}'] = pct

        for key, value in self.metadata.items():
            if isinstance(value, (str, int, float, bool)):
                result[f'meta_{key}'] = value

        return result

    def summary(self) -> str:
        """Get a brief human-readable summary."""
        summary_lines = [
            f"Normalized score: {self.normalized:.2f}",
            f"Weighted score: {self.weighted:.2f}",
        ]

        if self.raw:
            summary_lines.append("Metrics:")
            for name, score in self.raw.items():
                line = f"  {name}: {score:.6f}"
                if name in self.percentages:
                    line += f" ({self.percentages[name]:.1f}%)"
                summary_lines.append(line)

        if self.execution_time > 0:
            summary_lines.append(f"Execution time: {self.execution_time:.3f}s")

        return "\n".join(summary_lines)


def position_key(combo: KeyCombo) -> KeyCombo:
    """The combo with its tap layer dropped; combo costs depend on pressed positions only."""
    return combo._replace(tap=KeyLoc(0, combo.tap.index))


class BaseMetric(ABC):
    """
    Abstract base class for layout metrics.

    A metric scores a valid layout through its reachability map. Costs are
    computed per combo (letters) or per combo pair (bigrams), and each
    character takes the minimum over its combos. Combo costs depend only on
    the pressed positions, so they are cached across layouts in bounded
    least-recently-used caches of `cache_size` entries.
    """

    name = ""

    def __init__(self, keyboard: Keyboard, weights: WeightTable, cache_size: int = DEFAULT_CACHE_SIZE):
        if not isinstance(cache_size, int) or isinstance(cache_size, bool) or cache_size < 1:
            raise ValueError(f"Metric cache size must be a positive integer, got {cache_size!r}")
        self.keyboard = keyboard
        self.weights = weights
        self.cache_size = cache_size
        self._fingers = lru_cache(maxsize=cache_size)(self._combo_fingers)
        self._cost = None

    def _combo_fingers(self, combo: KeyCombo) -> Dict[str, int]:
        return {self.keyboard.position(index).finger_id: index for index in combo.keys()}

    def fingers(self, combo: KeyCombo) -> Dict[str, int]:
        """Map each finger used by a combo to the position it presses."""
        return self._fingers(position_key(combo))

    def cache_info(self):
        """Statistics of the cost cache (functools cache_info)."""
        return self._cost.cache_info()

    def clear_cache(self) -> None:
        self._fingers.cache_clear()
        self._cost.cache_clear()

    @abstractmethod
    def score(self, analysis: ReachabilityMap, frequencies: FrequencyTable) -> float:
        """
        Calculate the raw score of a layout.

        Args:
            analysis: Reachability map of a valid layout
            frequencies: Letter and bigram frequencies

        Returns:
            Non-negative raw score
        """
        pass


class LetterMetric(BaseMetric):
    """Metric summed over single characters."""

    def __init__(self, keyboard: Keyboard, weights: WeightTable, cache_size: int = DEFAULT_CACHE_SIZE):
        super().__init__(keyboard, weights, cache_size)
        self._cost = lru_cache(maxsize=cache_size)(self.combo_cost)

    @abstractmethod
    def combo_cost(self, combo: KeyCombo) -> float:
        pass

    def letter_cost(self, analysis: ReachabilityMap, char: str) -> Optional[float]:
        """Minimum cost over the combos of `char`, or None if it has none."""
        combos = analysis.combos_for(char)
        if not combos:
            return None
        return min(self._cost(position_key(combo)) for combo in combos)

    def score(self, analysis: ReachabilityMap, frequencies: FrequencyTable) -> float:
        total = 0.0
        for char, freq in frequencies.letters.items():
            cost = self.letter_cost(analysis, char)
            if cost is not None:
                total += freq * cost
        return total


class BigramMetric(BaseMetric):
    """Metric summed over consecutive character pairs."""

    def __init__(self, keyboard: Keyboard, weights: WeightTable, cache_size: int = DEFAULT_CACHE_SIZE):
        super().__init__(keyboard, weights, cache_size)
        self._cost = lru_cache(maxsize=cache_size)(self.pair_cost)

    @abstractmethod
    def pair_cost(self, first: KeyCombo, second: KeyCombo) -> float:
        pass

    def bigram_cost(self, analysis: ReachabilityMap, bigram: str) -> Optional[float]:
        """Minimum cost over all combo pairs of `bigram`, or None if a character has no combos."""
        first_combos = analysis.combos_for(bigram[0])
        second_combos = analysis.combos_for(bigram[1])
        if not first_combos or not second_combos:
            return None

        firsts = [position_key(combo) for combo in first_combos]
        seconds = [position_key(combo) for combo in second_combos]
        return min(self._cost(first, second) for first in firsts for second in seconds)

    def score(self, analysis: ReachabilityMap, frequencies: FrequencyTable) -> float:
        total = 0.0
        for bigram, freq in frequencies.bigrams.items():
            cost = self.bigram_cost(analysis, bigram)
            if cost is not None:
                total += freq * cost
        return total
