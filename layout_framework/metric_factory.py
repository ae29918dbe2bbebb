#!/usr/bin/env python3
"""
Factory for creating metric instances.
"""

from typing import List

from layout_framework.base_metric import DEFAULT_CACHE_SIZE, BaseMetric
from layout_framework.keyboard import Keyboard
from layout_framework.tables import WeightTable


class MetricFactory:
    """Factory for creating metric instances."""

    METRICS = {
        'base': 'layout_framework.metrics.BaseEffortMetric',
        'stretch': 'layout_framework.metrics.StretchMetric',
        'stretch_x': 'layout_framework.metrics.HorizontalStretchMetric',
        'stretch_y': 'layout_framework.metrics.VerticalStretchMetric',
        'sfb': 'layout_framework.metrics.SameFingerBigramMetric',
        'shb': 'layout_framework.metrics.SameHandBigramMetric',
        'movement': 'layout_framework.metrics.MovementMetric',
        'lateral': 'layout_framework.metrics.LateralMovementMetric',
        'vertical': 'layout_framework.metrics.VerticalMovementMetric',
        'staccato': 'layout_framework.metrics.StaccatoMetric',
    }

    @classmethod
    def create_metric(cls, metric_name: str, keyboard: Keyboard, weights: WeightTable,
                      cache_size: int = DEFAULT_CACHE_SIZE) -> BaseMetric:
        """
        Create a metric instance.

        Args:
            metric_name: Name of metric (see get_available_metrics)
            keyboard: Physical keyboard
            weights: Ergonomic weight table
            cache_size: Entries kept in the metric's cost cache

        Returns:
            Configured metric instance

        Raises:
            ValueError: If metric_name is not recognized
        """
        if metric_name not in cls.METRICS:
            available = list(cls.METRICS.keys())
            raise ValueError(f"Unknown metric '{metric_name}'. Available: {available}")

        # Dynamic import to avoid circular dependencies
        module_path, class_name = cls.METRICS[metric_name].rsplit('.', 1)
        module = __import__(module_path, fromlist=[class_name])
        metric_class = getattr(module, class_name)

        return metric_class(keyboard, weights, cache_size)

    @classmethod
    def get_available_metrics(cls) -> List[str]:
        """Get list of available metric names."""
        return list(cls.METRICS.keys())
