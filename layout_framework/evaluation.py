#!/usr/bin/env python3
"""
Three-stage evaluation pipeline: raw, weighted, normalized.

  raw        - metric scores of a layout
  weighted   - sum over tracked metrics of weight * pct^2, where pct is the
               raw score as a percentage of the reference layout's raw score
  normalized - weighted score scaled so that the starter layout scores
               exactly 1,000,000

Lower scores are better.
"""

import time
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from layout_framework.base_metric import EvaluationResult
from layout_framework.errors import CalibrationError, ValidationFailure
from layout_framework.keyboard import Keyboard
from layout_framework.layout_model import Layout
from layout_framework.metrics import MetricEngine
from layout_framework.reachability import ReachabilityMap, analyze_layout, check_layout

NORMALIZED_STARTER_SCORE = 1_000_000.0

DEFAULT_METRIC_WEIGHTS = {
    'base': 1.0,
    'stretch': 3.0,
    'sfb': 5.0,
    'movement': 3.0,
    'staccato': 20.0,
}


def metric_percentages(raw: Mapping[str, float],
                       reference_raw: Mapping[str, float],
                       metrics: Iterable[str]) -> Dict[str, float]:
    """
    Express raw scores as percentages of the reference scores.

    Raises:
        CalibrationError: If a reference score is zero
    """
    percentages = {}
    for metric in metrics:
        reference = reference_raw[metric]
        if reference == 0:
            raise CalibrationError(f"Reference score for metric '{metric}' is zero")
        percentages[metric] = 100.0 * raw[metric] / reference
    return percentages


def weighted_score(raw: Mapping[str, float],
                   reference_raw: Mapping[str, float],
                   weights: Mapping[str, float]) -> float:
    """
    Calculate the weighted score: sum of weight * (100 * raw / reference)^2.

    Args:
        raw: Raw scores of the layout
        reference_raw: Raw scores of the reference layout
        weights: Metric name -> weight for each tracked metric

    Returns:
        Weighted score

    Raises:
        CalibrationError: If a tracked metric has a zero reference score
    """
    percentages = metric_percentages(raw, reference_raw, weights.keys())
    return sum(weight * percentages[metric] ** 2 for metric, weight in weights.items())


def normalized_score(weighted: float, starter_weighted: float) -> float:
    """
    Scale a weighted score so the starter layout scores 1,000,000.

    Raises:
        CalibrationError: If the starter weighted score is zero
    """
    if starter_weighted == 0:
        raise CalibrationError("Starter layout has a weighted score of zero")
    return weighted * NORMALIZED_STARTER_SCORE / starter_weighted


class EvaluationPipeline:
    """
    Evaluate layouts against a calibrated reference and starter.

    Args:
        keyboard: Physical keyboard
        required_chars: Characters every layout must produce
        metric_engine: Raw metric calculator
        metric_weights: Metric name -> weight; metrics with a non-zero weight are tracked
        constraints: Constraints checked before analysis
        modifier_map: Produced -> tapped character mapping per modifier name
        verbose: If True, print calibration scores
    """

    def __init__(self,
                 keyboard: Keyboard,
                 required_chars: Iterable[str],
                 metric_engine: MetricEngine,
                 metric_weights: Optional[Mapping[str, float]] = None,
                 constraints: Sequence = (),
                 modifier_map: Optional[Mapping[str, Mapping[str, str]]] = None,
                 verbose: bool = False):
        self.keyboard = keyboard
        self.required_chars = frozenset(required_chars)
        self.metric_engine = metric_engine
        self.constraints = list(constraints)
        self.modifier_map = modifier_map
        self.verbose = verbose

        weights = dict(DEFAULT_METRIC_WEIGHTS if metric_weights is None else metric_weights)
        unknown = [name for name in weights if name not in metric_engine.metrics]
        if unknown:
            raise ValueError(f"Weighted metrics not computed by the metric engine: {unknown}")
        self.weights = {name: float(weight) for name, weight in weights.items() if weight != 0}
        if not self.weights:
            raise ValueError("At least one metric needs a non-zero weight")

        self.reference_raw: Optional[Dict[str, float]] = None
        self.starter_weighted: Optional[float] = None

    @property
    def is_calibrated(self) -> bool:
        return self.reference_raw is not None and self.starter_weighted is not None

    def analyze(self, layout: Layout) -> ReachabilityMap:
        return analyze_layout(layout, self.keyboard, self.required_chars, self.modifier_map)

    def check(self, layout: Layout) -> ReachabilityMap:
        """Analyse a layout, raising its first validation failure."""
        return check_layout(layout, self.keyboard, self.required_chars, self.constraints, self.modifier_map)

    def raw(self, analysis: ReachabilityMap) -> Dict[str, float]:
        return self.metric_engine.compute(analysis)

    def _checked_raw(self, layout: Layout, role: str) -> Dict[str, float]:
        try:
            analysis = self.check(layout)
        except ValidationFailure as e:
            raise ValueError(f"{role} layout is not valid: {e}") from e
        return self.raw(analysis)

    def calibrate(self, reference_layout: Layout, starter_layout: Layout) -> Tuple[Dict[str, float], float]:
        """
        Compute and cache the reference raw scores and the starter weighted score.

        Returns:
            Tuple of (reference raw scores, starter weighted score)

        Raises:
            ValueError: If either layout is not valid
            CalibrationError: If a tracked reference score or the starter
                weighted score is zero
        """
        reference_raw = self._checked_raw(reference_layout, 'Reference')
        metric_percentages(reference_raw, reference_raw, self.weights)

        starter_raw = self._checked_raw(starter_layout, 'Starter')
        starter_weighted = weighted_score(starter_raw, reference_raw, self.weights)
        if starter_weighted == 0:
            raise CalibrationError("Starter layout has a weighted score of zero")

        self.reference_raw = reference_raw
        self.starter_weighted = starter_weighted

        if self.verbose:
            print("Calibration:")
            for name, score in reference_raw.items():
                print(f"  reference {name}: {score:.6f}")
            print(f"  starter weighted score: {starter_weighted:.2f}")

        return reference_raw, starter_weighted

    def evaluate(self, analysis: ReachabilityMap) -> EvaluationResult:
        """
        Evaluate an analysed layout.

        Raises:
            CalibrationError: If calibrate() has not been called
        """
        if not self.is_calibrated:
            raise CalibrationError("Evaluation pipeline is not calibrated")

        start_time = time.time()

        raw = self.raw(analysis)
        percentages = metric_percentages(raw, self.reference_raw, self.weights)
        weighted = sum(weight * percentages[name] ** 2 for name, weight in self.weights.items())

        return EvaluationResult(
            raw=raw,
            weighted=weighted,
            normalized=normalized_score(weighted, self.starter_weighted),
            percentages=percentages,
            metadata={'combos': sum(len(combos) for combos in analysis.combos.values())},
            execution_time=time.time() - start_time,
        )

    def evaluate_layout(self, layout: Layout) -> Tuple[ReachabilityMap, EvaluationResult]:
        """Check and evaluate a layout in one call."""
        analysis = self.check(layout)
        return analysis, self.evaluate(analysis)
