import numpy as np
import pytest

from layout_framework.annealing import (Annealer, AnnealingConfig, CoolingSchedule, GeometricCooling,
                                        LinearCooling, create_schedule)
from layout_framework.cleanup import CleanupConfig, LayoutCleaner
from layout_framework.constraints import Constraint
from layout_framework.errors import ConfigurationError, ConstraintViolated, EmptySearchSpace, UnreachableCharacter
from layout_framework.evaluation import EvaluationPipeline
from layout_framework.layout_model import EMPTY
from layout_framework.metrics import MetricEngine
from layout_framework.mutation import MutationConfig, MutationEngine
from layout_framework.reachability import tap_alphabet, validate


@pytest.fixture
def calibrated(small_pipeline, small_layout):
    small_pipeline.calibrate(small_layout, small_layout)
    return small_pipeline


def make_annealer(pipeline, required, config, cleaner=None, mutation_config=None):
    engine = MutationEngine(tap_alphabet(required), config=mutation_config)
    return Annealer(pipeline, engine, config, cleaner=cleaner, rng=np.random.default_rng(config.seed))


def test_never_commits_invalid_layout(calibrated, small_layout, small_keyboard, small_required):
    config = AnnealingConfig(iterations=300, initial_temperature=5e5, seed=3)
    annealer = make_annealer(calibrated, small_required, config,
                             cleaner=LayoutCleaner(CleanupConfig(0.7, 0.5, 0.5)),
                             mutation_config=MutationConfig({'assign_tap': 1.0, 'assign_hold': 0.5}))

    states = []

    def record(state):
        assert validate(state.layout, small_keyboard, small_required) == []
        assert state.evaluation.normalized == pytest.approx(calibrated.evaluate(calibrated.analyze(state.layout)).normalized)
        states.append(state.iteration)

    result = annealer.run(small_layout, callback=record)

    assert states == list(range(300))
    assert result.iterations == 300
    assert result.stop_reason == 'iterations'
    assert result.accepted + result.rejected == 300
    assert validate(result.layout, small_keyboard, small_required) == []
    assert validate(result.best_layout, small_keyboard, small_required) == []
    assert result.best_evaluation.normalized <= result.initial_score
    assert result.initial_score == pytest.approx(1e6)


def test_metric_caches_stay_bounded(small_keyboard, small_weights, small_frequencies, small_layout, small_required):
    names = ['base', 'stretch', 'sfb', 'movement', 'staccato']
    weights = {name: 1.0 for name in names}
    engine = MetricEngine(small_keyboard, small_weights, small_frequencies, names, cache_size=8)
    pipeline = EvaluationPipeline(small_keyboard, small_required, engine, metric_weights=weights)
    pipeline.calibrate(small_layout, small_layout)

    config = AnnealingConfig(iterations=400, initial_temperature=5e5, seed=5)
    annealer = make_annealer(pipeline, small_required, config,
                             cleaner=LayoutCleaner(CleanupConfig(0.7, 0.5, 0.5)),
                             mutation_config=MutationConfig({'assign_tap': 1.0, 'assign_hold': 0.5}))
    result = annealer.run(small_layout)

    assert all(metric.cache_info().currsize <= 8 for metric in engine.metrics.values())

    # Evicted costs are recomputed to the same values
    fresh_engine = MetricEngine(small_keyboard, small_weights, small_frequencies, names)
    fresh = EvaluationPipeline(small_keyboard, small_required, fresh_engine, metric_weights=weights)
    fresh.calibrate(small_layout, small_layout)
    _, expected = fresh.evaluate_layout(result.layout)
    assert result.evaluation.raw == pytest.approx(expected.raw)
    assert result.evaluation.normalized == pytest.approx(expected.normalized)


def test_starting_layout_is_not_modified(calibrated, small_layout, small_required):
    before = small_layout.copy()
    make_annealer(calibrated, small_required, AnnealingConfig(iterations=50, seed=1)).run(small_layout)
    assert small_layout == before


def test_seed_reproducible(calibrated, small_layout, small_required):
    config = AnnealingConfig(iterations=100, seed=11)
    first = make_annealer(calibrated, small_required, config).run(small_layout)
    second = make_annealer(calibrated, small_required, config).run(small_layout)
    assert first.layout == second.layout
    assert first.history == second.history


@pytest.mark.parametrize('config', [
    AnnealingConfig(iterations=200, initial_temperature=30.0),
    AnnealingConfig(iterations=200, initial_temperature=30.0, cooling='geometric', cooling_rate=0.97,
                    min_temperature=0.5),
])
def test_temperature_non_increasing(config, calibrated, small_layout, small_required):
    result = make_annealer(calibrated, small_required, config).run(small_layout)
    temperatures = result.temperatures
    assert temperatures[0] == pytest.approx(30.0)
    assert all(later <= earlier for earlier, later in zip(temperatures, temperatures[1:]))
    assert min(temperatures) >= config.min_temperature


def test_schedules():
    linear = LinearCooling(30.0, 100)
    assert linear.temperature(0) == 30.0
    assert linear.temperature(50) == pytest.approx(15.0)
    assert linear.temperature(100) == 0.0
    assert linear.temperature(150) == 0.0

    geometric = GeometricCooling(10.0, 0.5, min_temperature=1.0)
    assert geometric.temperature(1) == pytest.approx(5.0)
    assert geometric.temperature(10) == 1.0

    assert isinstance(create_schedule(AnnealingConfig(cooling='geometric')), GeometricCooling)

    with pytest.raises(TypeError):
        CoolingSchedule(10.0)


def test_acceptance_rule(calibrated, small_required):
    annealer = make_annealer(calibrated, small_required, AnnealingConfig(seed=0))
    assert annealer.accept(-5.0, 0.0)
    assert annealer.accept(0.0, 0.0)
    assert not annealer.accept(1.0, 0.0)
    assert not annealer.accept(1e9, 1.0)
    accepted = sum(annealer.accept(1.0, 1.0) for _ in range(2000))
    assert 0.3 < accepted / 2000 < 0.45


def test_patience_and_min_temperature_stop(calibrated, small_layout, small_required):
    config = AnnealingConfig(iterations=500, initial_temperature=0.0, patience=5, seed=2)
    result = make_annealer(calibrated, small_required, config).run(small_layout)
    assert result.stop_reason == 'patience'
    assert result.iterations < 500

    config = AnnealingConfig(iterations=100, initial_temperature=10.0, cooling='geometric', cooling_rate=0.5,
                             min_temperature=1.0, stop_at_min_temperature=True, seed=2)
    result = make_annealer(calibrated, small_required, config).run(small_layout)
    assert result.stop_reason == 'min_temperature'
    assert result.iterations == 4


class SameAs(Constraint):
    """Only the given layout satisfies this constraint."""

    name = 'same_as'

    def __init__(self, layout):
        self.layout = layout

    def check(self, layout):
        return layout == self.layout


def test_empty_search_space(calibrated, small_layout, small_required):
    calibrated.constraints = [SameAs(small_layout)]
    config = AnnealingConfig(iterations=10, max_retries=5, seed=0)
    # Every assigned tap differs from the slot it replaces
    mutation_config = MutationConfig({'hold_swap': 0, 'tap_swap': 0, 'vertical_swap': 0, 'assign_tap': 1.0})
    annealer = make_annealer(calibrated, small_required, config, mutation_config=mutation_config)

    with pytest.raises(EmptySearchSpace) as excinfo:
        annealer.propose_valid(small_layout)
    assert excinfo.value.attempts == 5
    assert isinstance(excinfo.value.last_failure, ConstraintViolated)
    assert annealer.invalid_proposals == 5

    with pytest.raises(EmptySearchSpace):
        annealer.run(small_layout)


def test_invalid_starting_layout(calibrated, small_layout, small_required):
    layout = small_layout.copy()
    layout.set_tap(0, 0, EMPTY)
    annealer = make_annealer(calibrated, small_required, AnnealingConfig(iterations=10, seed=0))
    with pytest.raises(UnreachableCharacter):
        annealer.run(layout)


def test_config_validation():
    with pytest.raises(ConfigurationError):
        AnnealingConfig(iterations=0)
    with pytest.raises(ConfigurationError):
        AnnealingConfig(cooling='exponential')
    with pytest.raises(ConfigurationError):
        AnnealingConfig(initial_temperature=1.0, min_temperature=2.0)
    with pytest.raises(ConfigurationError):
        AnnealingConfig(cooling_rate=1.5)
    with pytest.raises(ConfigurationError):
        AnnealingConfig(patience=0)
