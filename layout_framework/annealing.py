#!/usr/bin/env python3
"""
Simulated annealing over layered layouts.

Each step proposes moves until one yields a valid layout (at most
`max_retries` attempts), evaluates it, accepts it by the Metropolis rule,
commits it and prunes unused keys, then cools the temperature.
"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from layout_framework.base_metric import EvaluationResult
from layout_framework.cleanup import LayoutCleaner
from layout_framework.errors import ConfigurationError, EmptySearchSpace, UnreachableCharacter, ValidationFailure
from layout_framework.evaluation import EvaluationPipeline
from layout_framework.layout_model import Layout
from layout_framework.mutation import MutationEngine
from layout_framework.reachability import ReachabilityMap, collect_failures

COOLING_SCHEDULES = ('linear', 'geometric')


@dataclass
class AnnealingConfig:
    iterations: int = 10000
    initial_temperature: float = 30.0
    cooling: str = 'linear'
    cooling_rate: float = 0.999
    min_temperature: float = 0.0
    stop_at_min_temperature: bool = False
    patience: Optional[int] = None
    max_retries: int = 1000
    progress_interval: int = 100
    seed: Optional[int] = None

    def __post_init__(self):
        for name in ('iterations', 'max_retries', 'progress_interval'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigurationError(f"annealing.{name} must be a positive integer, got {value!r}")
        for name in ('initial_temperature', 'min_temperature'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f"annealing.{name} must be a non-negative number, got {value!r}")
        if self.min_temperature > self.initial_temperature:
            raise ConfigurationError("annealing.min_temperature cannot exceed initial_temperature")
        if self.cooling not in COOLING_SCHEDULES:
            raise ConfigurationError(f"Unknown cooling schedule '{self.cooling}'. Available: {list(COOLING_SCHEDULES)}")
        if not isinstance(self.cooling_rate, (int, float)) or not 0 < self.cooling_rate <= 1:
            raise ConfigurationError(f"annealing.cooling_rate must be in (0, 1], got {self.cooling_rate!r}")
        if self.patience is not None and (not isinstance(self.patience, int) or self.patience < 1):
            raise ConfigurationError(f"annealing.patience must be a positive integer or null, got {self.patience!r}")


#-----------------------------------------------------------------------------
# Cooling schedules
#-----------------------------------------------------------------------------
class CoolingSchedule(ABC):
    """Temperature as a non-increasing function of the step number."""

    def __init__(self, initial_temperature: float, min_temperature: float = 0.0):
        self.initial_temperature = initial_temperature
        self.min_temperature = min_temperature

    @abstractmethod
    def _raw_temperature(self, iteration: int) -> float:
        pass

    def temperature(self, iteration: int) -> float:
        return max(self.min_temperature, self._raw_temperature(iteration))


class LinearCooling(CoolingSchedule):
    """T_i = T0 * (1 - i / iterations)"""

    def __init__(self, initial_temperature: float, iterations: int, min_temperature: float = 0.0):
        super().__init__(initial_temperature, min_temperature)
        self.iterations = iterations

    def _raw_temperature(self, iteration: int) -> float:
        return self.initial_temperature * (1.0 - min(iteration, self.iterations) / self.iterations)


class GeometricCooling(CoolingSchedule):
    """T_i = T0 * rate^i"""

    def __init__(self, initial_temperature: float, rate: float, min_temperature: float = 0.0):
        super().__init__(initial_temperature, min_temperature)
        self.rate = rate

    def _raw_temperature(self, iteration: int) -> float:
        return self.initial_temperature * self.rate ** iteration


def create_schedule(config: AnnealingConfig) -> CoolingSchedule:
    if config.cooling == 'geometric':
        return GeometricCooling(config.initial_temperature, config.cooling_rate, config.min_temperature)
    return LinearCooling(config.initial_temperature, config.iterations, config.min_temperature)


#-----------------------------------------------------------------------------
# State and result
#-----------------------------------------------------------------------------
@dataclass
class AnnealingState:
    """Committed search state. `layout` is always valid and `evaluation` belongs to it."""

    layout: Layout
    analysis: ReachabilityMap
    evaluation: EvaluationResult
    temperature: float
    iteration: int = 0


@dataclass
class AnnealingResult:
    layout: Layout
    evaluation: EvaluationResult
    best_layout: Layout
    best_evaluation: EvaluationResult
    initial_score: float
    iterations: int = 0
    accepted: int = 0
    rejected: int = 0
    invalid_proposals: int = 0
    cleanups: int = 0
    discarded_cleanups: int = 0
    stop_reason: str = ""
    temperatures: List[float] = field(default_factory=list)
    history: List[Tuple[int, float, float]] = field(default_factory=list)
    """(iteration, current normalized score, temperature) every progress_interval steps"""
    execution_time: float = 0.0

    @property
    def acceptance_rate(self) -> float:
        total = self.accepted + self.rejected
        return self.accepted / total if total else 0.0

    @property
    def improvement(self) -> float:
        """Relative decrease of the normalized score from start to best."""
        if self.initial_score == 0:
            return 0.0
        return (self.initial_score - self.best_evaluation.normalized) / self.initial_score


#-----------------------------------------------------------------------------
# Annealer
#-----------------------------------------------------------------------------
class Annealer:
    """
    Simulated annealing controller.

    Args:
        pipeline: Calibrated evaluation pipeline (owns validity rules)
        mutation_engine: Move proposer
        config: Annealing parameters
        cleaner: Post-commit pruning; None disables cleanup
        rng: Random generator; created from config.seed if None
        quiet: If True, no progress bar
    """

    def __init__(self,
                 pipeline: EvaluationPipeline,
                 mutation_engine: MutationEngine,
                 config: Optional[AnnealingConfig] = None,
                 cleaner: Optional[LayoutCleaner] = None,
                 rng: Optional[np.random.Generator] = None,
                 quiet: bool = True):
        self.pipeline = pipeline
        self.mutation_engine = mutation_engine
        self.config = config or AnnealingConfig()
        self.cleaner = cleaner
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.schedule = create_schedule(self.config)
        self.quiet = quiet

        self.invalid_proposals = 0
        self.discarded_cleanups = 0

    def _first_failure(self, layout: Layout) -> Tuple[Optional[ReachabilityMap], Optional[ValidationFailure]]:
        failures = collect_failures(layout, None, self.pipeline.constraints)
        if failures:
            return None, failures[0]

        analysis = self.pipeline.analyze(layout)
        if analysis.missing:
            return None, UnreachableCharacter(analysis.missing[0])
        return analysis, None

    def initial_state(self, layout: Layout) -> AnnealingState:
        """
        Build the starting state.

        Raises:
            ValidationFailure: If the starting layout is not valid
        """
        analysis = self.pipeline.check(layout)
        return AnnealingState(
            layout=layout.copy(),
            analysis=analysis,
            evaluation=self.pipeline.evaluate(analysis),
            temperature=self.schedule.temperature(0),
        )

    def propose_valid(self, layout: Layout) -> Tuple[Layout, ReachabilityMap]:
        """
        Propose moves until one produces a valid layout.

        Raises:
            EmptySearchSpace: If max_retries proposals are all invalid
        """
        last_failure = None
        for _ in range(self.config.max_retries):
            candidate = self.mutation_engine.propose(layout, self.rng).apply(layout)
            analysis, failure = self._first_failure(candidate)
            if failure is None:
                return candidate, analysis
            self.invalid_proposals += 1
            last_failure = failure

        raise EmptySearchSpace(self.config.max_retries, last_failure)

    def accept(self, delta: float, temperature: float) -> bool:
        """Metropolis acceptance: always take improvements, worse moves with probability exp(-delta / T)."""
        if delta <= 0:
            return True
        if temperature <= 0:
            return False
        return bool(self.rng.random() < math.exp(-delta / temperature))

    def commit(self, state: AnnealingState, layout: Layout, analysis: ReachabilityMap,
               evaluation: EvaluationResult) -> bool:
        """
        Replace the current layout, then prune it.

        Returns:
            True if cleanup changed the committed layout
        """
        state.layout, state.analysis, state.evaluation = layout, analysis, evaluation

        if self.cleaner is None:
            return False

        cleaned, changed = self.cleaner.clean(state.layout, state.analysis, self.rng)
        if not changed:
            return False

        cleaned_analysis, failure = self._first_failure(cleaned)
        if failure is not None:
            self.discarded_cleanups += 1
            return False

        state.layout = cleaned
        state.analysis = cleaned_analysis
        state.evaluation = self.pipeline.evaluate(cleaned_analysis)
        return True

    def run(self, layout: Layout,
            callback: Optional[Callable[[AnnealingState], None]] = None) -> AnnealingResult:
        """
        Optimize a layout.

        Args:
            layout: Valid starting layout
            callback: Called with the state after every step

        Returns:
            AnnealingResult with the final and best layouts

        Raises:
            ValidationFailure: If the starting layout is not valid
            EmptySearchSpace: If a step cannot find a valid candidate
        """
        start_time = time.time()
        self.invalid_proposals = 0
        self.discarded_cleanups = 0

        state = self.initial_state(layout)
        result = AnnealingResult(
            layout=state.layout,
            evaluation=state.evaluation,
            best_layout=state.layout.copy(),
            best_evaluation=state.evaluation,
            initial_score=state.evaluation.normalized,
        )
        steps_since_best = 0
        result.stop_reason = 'iterations'

        with tqdm(total=self.config.iterations, desc='Annealing', unit='step', disable=self.quiet) as pbar:
            for iteration in range(self.config.iterations):
                state.iteration = iteration
                result.temperatures.append(state.temperature)

                candidate, analysis = self.propose_valid(state.layout)
                evaluation = self.pipeline.evaluate(analysis)
                delta = evaluation.normalized - state.evaluation.normalized

                if self.accept(delta, state.temperature):
                    result.accepted += 1
                    if self.commit(state, candidate, analysis, evaluation):
                        result.cleanups += 1
                else:
                    result.rejected += 1

                if state.evaluation.normalized < result.best_evaluation.normalized:
                    result.best_layout = state.layout.copy()
                    result.best_evaluation = state.evaluation
                    steps_since_best = 0
                else:
                    steps_since_best += 1

                if iteration % self.config.progress_interval == 0:
                    result.history.append((iteration, state.evaluation.normalized, state.temperature))
                    pbar.set_postfix(score=f"{state.evaluation.normalized:.0f}",
                                     best=f"{result.best_evaluation.normalized:.0f}",
                                     T=f"{state.temperature:.3f}")
                pbar.update(1)

                state.temperature = self.schedule.temperature(iteration + 1)
                result.iterations = iteration + 1

                if callback is not None:
                    callback(state)

                if self.config.stop_at_min_temperature and state.temperature <= self.config.min_temperature:
                    result.stop_reason = 'min_temperature'
                    break
                if self.config.patience is not None and steps_since_best >= self.config.patience:
                    result.stop_reason = 'patience'
                    break

        result.layout = state.layout
        result.evaluation = state.evaluation
        result.invalid_proposals = self.invalid_proposals
        result.discarded_cleanups = self.discarded_cleanups
        result.execution_time = time.time() - start_time
        return result
