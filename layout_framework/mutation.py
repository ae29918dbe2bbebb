#!/usr/bin/env python3
"""
Mutation operators for layered layouts.

Each proposal is a Move value. Moves never modify the layout they are
applied to: apply() returns a new layout, and inverse() returns the move that
undoes it.

Operators:
  hold_swap      - swap the holds of two base positions
  tap_swap       - swap the taps of two positions on one layer
  vertical_swap  - swap the taps of one position between two layers
  assign_tap     - put a new tap (or nothing) on a (layer, position)
  assign_hold    - put a new hold (or nothing) on a base position
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from layout_framework.errors import ConfigurationError, EmptySearchSpace
from layout_framework.layout_model import (EMPTY, ActivateLayer, Behavior, Disabled, Hold, Layout,
                                           Modifier, Tap)

DEFAULT_OPERATOR_WEIGHTS = {
    'hold_swap': 1.0,
    'tap_swap': 1.0,
    'vertical_swap': 0.8,
    'assign_tap': 0.2,
    'assign_hold': 0.0,
}

SELECTION_MODES = ('weighted', 'uniform')


#-----------------------------------------------------------------------------
# Moves
#-----------------------------------------------------------------------------
class Move(ABC):
    """Base class for layout mutations."""

    operator = ""

    def apply(self, layout: Layout) -> Layout:
        candidate = layout.copy()
        self._apply_in_place(candidate)
        return candidate

    @abstractmethod
    def _apply_in_place(self, layout: Layout) -> None:
        pass

    @abstractmethod
    def inverse(self) -> 'Move':
        """Get the move that undoes this one."""
        pass


@dataclass(frozen=True)
class HoldSwap(Move):
    index1: int
    index2: int

    operator = 'hold_swap'

    def _apply_in_place(self, layout: Layout) -> None:
        hold1, hold2 = layout.hold(self.index1), layout.hold(self.index2)
        layout.set_hold(self.index1, hold2)
        layout.set_hold(self.index2, hold1)

    def inverse(self) -> 'HoldSwap':
        return self


@dataclass(frozen=True)
class TapSwap(Move):
    layer: int
    index1: int
    index2: int

    operator = 'tap_swap'

    def _apply_in_place(self, layout: Layout) -> None:
        tap1, tap2 = layout.tap(self.layer, self.index1), layout.tap(self.layer, self.index2)
        layout.set_tap(self.layer, self.index1, tap2)
        layout.set_tap(self.layer, self.index2, tap1)

    def inverse(self) -> 'TapSwap':
        return self


@dataclass(frozen=True)
class VerticalSwap(Move):
    index: int
    layer1: int
    layer2: int

    operator = 'vertical_swap'

    def _apply_in_place(self, layout: Layout) -> None:
        tap1, tap2 = layout.tap(self.layer1, self.index), layout.tap(self.layer2, self.index)
        layout.set_tap(self.layer1, self.index, tap2)
        layout.set_tap(self.layer2, self.index, tap1)

    def inverse(self) -> 'VerticalSwap':
        return self


@dataclass(frozen=True)
class AssignTap(Move):
    layer: int
    index: int
    new: Behavior
    old: Behavior

    operator = 'assign_tap'

    def _apply_in_place(self, layout: Layout) -> None:
        layout.set_tap(self.layer, self.index, self.new)

    def inverse(self) -> 'AssignTap':
        return AssignTap(self.layer, self.index, self.old, self.new)


@dataclass(frozen=True)
class AssignHold(Move):
    index: int
    new: Behavior
    old: Behavior

    operator = 'assign_hold'

    def _apply_in_place(self, layout: Layout) -> None:
        layout.set_hold(self.index, self.new)

    def inverse(self) -> 'AssignHold':
        return AssignHold(self.index, self.old, self.new)


#-----------------------------------------------------------------------------
# Engine
#-----------------------------------------------------------------------------
@dataclass
class MutationConfig:
    """Operator weights and selection mode."""

    operator_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_OPERATOR_WEIGHTS))
    selection: str = 'weighted'

    def __post_init__(self):
        unknown = [name for name in self.operator_weights if name not in DEFAULT_OPERATOR_WEIGHTS]
        if unknown:
            raise ConfigurationError(
                f"Unknown mutation operators: {unknown}. Available: {list(DEFAULT_OPERATOR_WEIGHTS)}"
            )
        for name, weight in self.operator_weights.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool) or weight < 0:
                raise ConfigurationError(f"Weight of mutation operator '{name}' must be a non-negative number")
        if self.selection not in SELECTION_MODES:
            raise ConfigurationError(f"Unknown selection mode '{self.selection}'. Available: {list(SELECTION_MODES)}")

        # Operators left out keep their default weight
        self.operator_weights = {**DEFAULT_OPERATOR_WEIGHTS, **self.operator_weights}

    @property
    def enabled_operators(self) -> List[str]:
        return [name for name, weight in self.operator_weights.items() if weight > 0]


class MutationEngine:
    """
    Propose random moves for a layout.

    Args:
        tap_alphabet: Characters that assign_tap may place
        modifiers: Modifier names that assign_hold may place
        config: Operator weights and selection mode
    """

    def __init__(self,
                 tap_alphabet: Sequence[str],
                 modifiers: Sequence[str] = ('shift',),
                 config: Optional[MutationConfig] = None):
        self.tap_choices: List[Behavior] = [Tap(char) for char in tap_alphabet] + [EMPTY]
        self.modifiers = list(modifiers)
        self.config = config or MutationConfig()

    def applicable_operators(self, layout: Layout) -> List[str]:
        """Enabled operators that can act on `layout`."""
        operators = []
        for name in self.config.enabled_operators:
            if name == 'hold_swap' and not _swappable(layout.holds):
                continue
            if name == 'tap_swap' and not _swappable_layers(layout):
                continue
            if name == 'vertical_swap' and layout.layer_count < 2:
                continue
            operators.append(name)
        return operators

    def select_operator(self, layout: Layout, rng: np.random.Generator) -> str:
        """
        Choose an operator for the next proposal.

        Raises:
            EmptySearchSpace: If no enabled operator applies to the layout
        """
        operators = self.applicable_operators(layout)
        if not operators:
            raise EmptySearchSpace(0, "no enabled mutation operator applies to the layout")

        if self.config.selection == 'uniform':
            return operators[int(rng.integers(len(operators)))]

        weights = np.array([self.config.operator_weights[name] for name in operators], dtype=float)
        return operators[int(rng.choice(len(operators), p=weights / weights.sum()))]

    def propose(self, layout: Layout, rng: np.random.Generator) -> Move:
        """Create a random move for `layout` without applying it."""
        operator = self.select_operator(layout, rng)
        return getattr(self, f'_propose_{operator}')(layout, rng)

    def _two_positions(self, slots: Sequence[Behavior], rng: np.random.Generator) -> Tuple[int, int]:
        """Draw a filled slot and a slot holding something else."""
        firsts = _swappable(slots)
        index1 = firsts[int(rng.integers(len(firsts)))]
        seconds = [index for index, behavior in enumerate(slots) if behavior != slots[index1]]
        index2 = seconds[int(rng.integers(len(seconds)))]
        return index1, index2

    def _propose_hold_swap(self, layout: Layout, rng: np.random.Generator) -> Move:
        return HoldSwap(*self._two_positions(layout.holds, rng))

    def _propose_tap_swap(self, layout: Layout, rng: np.random.Generator) -> Move:
        layers = _swappable_layers(layout)
        layer = layers[int(rng.integers(len(layers)))]
        return TapSwap(layer, *self._two_positions(layout.layers[layer].taps, rng))

    def _propose_vertical_swap(self, layout: Layout, rng: np.random.Generator) -> Move:
        layer1, layer2 = rng.choice(layout.layer_count, size=2, replace=False)
        index = int(rng.integers(layout.size))
        return VerticalSwap(index, int(layer1), int(layer2))

    def _propose_assign_tap(self, layout: Layout, rng: np.random.Generator) -> Move:
        layer = int(rng.integers(layout.layer_count))
        index = int(rng.integers(layout.size))
        old = layout.tap(layer, index)
        choices = [behavior for behavior in self.tap_choices if behavior != old]
        return AssignTap(layer, index, choices[int(rng.integers(len(choices)))], old)

    def _propose_assign_hold(self, layout: Layout, rng: np.random.Generator) -> Move:
        index = int(rng.integers(layout.size))
        old = layout.hold(index)
        choices: List[Behavior] = [Hold(ActivateLayer(layer)) for layer in range(1, layout.layer_count)]
        choices += [Hold(Modifier(name)) for name in self.modifiers]
        choices += [Hold(Disabled()), EMPTY]
        choices = [behavior for behavior in choices if behavior != old]
        return AssignHold(index, choices[int(rng.integers(len(choices)))], old)


def _swappable(slots: Sequence[Behavior]) -> List[int]:
    """Filled slots that differ from at least one other slot."""
    return [index for index, behavior in enumerate(slots)
            if behavior != EMPTY and any(other != behavior for other in slots)]


def _swappable_layers(layout: Layout) -> List[int]:
    return [layer_id for layer_id, layer in enumerate(layout.layers) if _swappable(layer.taps)]
