# layout_framework/__init__.py
"""
Layered Keyboard Layout Annealing Framework

Layered layout model, reachability checking, raw/weighted/normalized
evaluation and simulated annealing for keyboard layouts.
"""

__version__ = "1.0.0"

# Import main classes for easy access
from .annealing import Annealer, AnnealingConfig, AnnealingResult
from .base_metric import EvaluationResult
from .config_loader import ConfigLoader, get_config_loader
from .evaluation import EvaluationPipeline
from .keyboard import Keyboard
from .layout_model import Layout
from .metrics import MetricEngine
from .reachability import analyze_layout, check_layout, validate

__all__ = [
    'Annealer',
    'AnnealingConfig',
    'AnnealingResult',
    'EvaluationResult',
    'ConfigLoader',
    'get_config_loader',
    'EvaluationPipeline',
    'Keyboard',
    'Layout',
    'MetricEngine',
    'analyze_layout',
    'check_layout',
    'validate',
]
