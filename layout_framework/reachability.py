#!/usr/bin/env python3
"""
Reachability and validity checking for layered layouts.

A character is produced by a key combo: one tapped key, plus the layer keys
held to reach the tapped key's layer, plus any modifier keys held to turn the
tapped character into the produced one (e.g. shift + 'a' gives 'A').

A combo is pressable when
  - the held layer ids resolve to the tapped layer through Layout.resolve_layer,
  - the layer keys can be pressed one after another with each key empty on
    the layer already active (a key on an active layer hides the hold below it),
  - every held modifier key is empty on the tapped layer (unless it is layer 0),
  - all keys are distinct and pressed by distinct fingers.
"""

from dataclasses import dataclass, field
from itertools import combinations, permutations, product
from string import ascii_lowercase
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Set, Tuple

from layout_framework.errors import (ConstraintViolated, LayoutError, UnreachableCharacter,
                                     ValidationFailure)
from layout_framework.keyboard import Keyboard
from layout_framework.layout_model import EMPTY, KeyLoc, Layout, Modifier, Tap

# Produced character -> tapped character, per modifier
DEFAULT_MODIFIER_MAP: Dict[str, Dict[str, str]] = {
    'shift': {**{char.upper(): char for char in ascii_lowercase}, '?': '/'},
}


class KeyCombo(NamedTuple):
    """Keys pressed together to produce one character."""
    tap: KeyLoc
    activators: Tuple[int, ...] = ()
    modifiers: Tuple[int, ...] = ()

    def keys(self) -> Tuple[int, ...]:
        """All physical positions pressed, tapped key first."""
        return (self.tap.index,) + self.activators + self.modifiers


@dataclass
class ReachabilityMap:
    """Result of analysing a layout against a required character set."""

    combos: Dict[str, List[KeyCombo]] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    used_taps: Set[KeyLoc] = field(default_factory=set)
    used_holds: Set[int] = field(default_factory=set)

    @property
    def is_complete(self) -> bool:
        return not self.missing

    def combos_for(self, char: str) -> List[KeyCombo]:
        return self.combos.get(char, [])


def _can_hold_in_order(layout: Layout, layer_ids: Sequence[int], positions: Sequence[int]) -> bool:
    """Check that the layer keys can be pressed one by one in some order."""
    for order in permutations(range(len(layer_ids))):
        held: Set[int] = set()
        pressable = True
        for step in order:
            active = layout.resolve_layer(frozenset(held))
            if active is None or (active != 0 and layout.tap(active, positions[step]) != EMPTY):
                pressable = False
                break
            held.add(layer_ids[step])
        if pressable:
            return True
    return False


def activator_sets(layout: Layout) -> Dict[int, List[Tuple[int, ...]]]:
    """
    Enumerate pressable sets of layer keys.

    Returns:
        Dict mapping each reachable layer id to the sorted position tuples
        that reach it (layer 0 is reached by the empty tuple)
    """
    activators = layout.active_activators()
    layer_ids = sorted(activators)
    result: Dict[int, List[Tuple[int, ...]]] = {0: [()]}

    for count in range(1, layout.max_held_activators() + 1):
        for held_ids in combinations(layer_ids, count):
            target = layout.resolve_layer(frozenset(held_ids))
            if target is None:
                continue
            for positions in product(*(activators[layer_id] for layer_id in held_ids)):
                if _can_hold_in_order(layout, held_ids, positions):
                    result.setdefault(target, []).append(tuple(sorted(positions)))

    return result


def _is_pressable(combo: KeyCombo, layout: Layout, keyboard: Keyboard) -> bool:
    keys = combo.keys()
    if len(set(keys)) != len(keys):
        return False

    fingers = [keyboard.position(index).finger_id for index in keys]
    if len(set(fingers)) != len(fingers):
        return False

    if combo.tap.layer != 0:
        for index in combo.modifiers:
            if layout.tap(combo.tap.layer, index) != EMPTY:
                return False

    return True


def analyze_layout(layout: Layout,
                   keyboard: Keyboard,
                   required_chars: Iterable[str],
                   modifier_map: Optional[Mapping[str, Mapping[str, str]]] = None) -> ReachabilityMap:
    """
    Find every pressable combo for each required character.

    Args:
        layout: Layout to analyse
        keyboard: Physical keyboard the layout is placed on
        required_chars: Characters the layout must produce
        modifier_map: Produced -> tapped character mapping per modifier name

    Returns:
        ReachabilityMap with combos, missing characters and used keys

    Raises:
        LayoutError: If layout and keyboard sizes differ
    """
    if layout.size != len(keyboard):
        raise LayoutError(f"Layout has {layout.size} positions, keyboard has {len(keyboard)}")

    if modifier_map is None:
        modifier_map = DEFAULT_MODIFIER_MAP

    tap_index: Dict[str, List[KeyLoc]] = {}
    for layer_id, layer in enumerate(layout.layers):
        for index, behavior in enumerate(layer.taps):
            if isinstance(behavior, Tap):
                tap_index.setdefault(behavior.char, []).append(KeyLoc(layer_id, index))

    reachable_layers = activator_sets(layout)
    modifier_keys = {name: layout.find_holds(Modifier(name)) for name in modifier_map}

    analysis = ReachabilityMap()
    for char in sorted(set(required_chars)):
        # (tapped character, modifier options) routes to this character
        routes: List[Tuple[str, List[Tuple[int, ...]]]] = [(char, [()])]
        for name, mapping in modifier_map.items():
            if char in mapping:
                routes.append((mapping[char], [(index,) for index in modifier_keys[name]]))

        combos = []
        for tapped, modifier_options in routes:
            for loc in tap_index.get(tapped, []):
                for held in reachable_layers.get(loc.layer, []):
                    for modifiers in modifier_options:
                        combo = KeyCombo(loc, held, modifiers)
                        if _is_pressable(combo, layout, keyboard):
                            combos.append(combo)

        if not combos:
            analysis.missing.append(char)
            continue

        analysis.combos[char] = combos
        for combo in combos:
            analysis.used_taps.add(combo.tap)
            analysis.used_holds.update(combo.activators)
            analysis.used_holds.update(combo.modifiers)

    return analysis


def collect_failures(layout: Layout,
                     analysis: Optional[ReachabilityMap],
                     constraints: Sequence = (),
                     fail_fast: bool = True) -> List[ValidationFailure]:
    """
    Gather validation failures from constraints and an existing analysis.

    Constraints are checked first; `analysis` may be None when only the
    constraints should be checked.
    """
    failures: List[ValidationFailure] = []

    for constraint in constraints:
        if not constraint.check(layout):
            failures.append(ConstraintViolated(constraint.name))
            if fail_fast:
                return failures

    if analysis is not None:
        for char in analysis.missing:
            failures.append(UnreachableCharacter(char))
            if fail_fast:
                return failures

    return failures


def validate(layout: Layout,
             keyboard: Keyboard,
             required_chars: Iterable[str],
             constraints: Sequence = (),
             modifier_map: Optional[Mapping[str, Mapping[str, str]]] = None,
             fail_fast: bool = True) -> List[ValidationFailure]:
    """
    Validate a layout for reachability and constraints.

    Args:
        layout: Layout to validate
        keyboard: Physical keyboard
        required_chars: Characters that must be reachable
        constraints: Constraint objects with `name` and `check(layout)`
        modifier_map: Produced -> tapped character mapping per modifier name
        fail_fast: If True, stop at the first failure

    Returns:
        List of failures (UnreachableCharacter / ConstraintViolated), empty if valid
    """
    failures = collect_failures(layout, None, constraints, fail_fast)
    if failures and fail_fast:
        return failures

    analysis = analyze_layout(layout, keyboard, required_chars, modifier_map)
    return failures + collect_failures(layout, analysis, (), fail_fast)


def check_layout(layout: Layout,
                 keyboard: Keyboard,
                 required_chars: Iterable[str],
                 constraints: Sequence = (),
                 modifier_map: Optional[Mapping[str, Mapping[str, str]]] = None) -> ReachabilityMap:
    """
    Analyse a layout and raise the first validation failure.

    Returns:
        ReachabilityMap of the valid layout

    Raises:
        UnreachableCharacter: If a required character cannot be produced
        ConstraintViolated: If a constraint does not hold
    """
    failures = collect_failures(layout, None, constraints)
    if failures:
        raise failures[0]

    analysis = analyze_layout(layout, keyboard, required_chars, modifier_map)
    failures = collect_failures(layout, analysis)
    if failures:
        raise failures[0]
    return analysis


def tap_alphabet(required_chars: Iterable[str],
                 modifier_map: Optional[Mapping[str, Mapping[str, str]]] = None) -> List[str]:
    """Characters that must be placed on keys: required ones, with modifier-produced ones replaced by their tapped form."""
    if modifier_map is None:
        modifier_map = DEFAULT_MODIFIER_MAP

    alphabet = set()
    for char in required_chars:
        tapped = char
        for mapping in modifier_map.values():
            if char in mapping:
                tapped = mapping[char]
                break
        alphabet.add(tapped)
    return sorted(alphabet)
