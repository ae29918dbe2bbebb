#!/usr/bin/env python3
"""
Layered layout data model.

A layout is an ordered list of layers (layer 0 is the base layer). Every layer
has exactly one tap-plane behavior per key position: a Tap or Empty. Layer 0
additionally owns the hold plane: one Hold or Empty per position, so a base
key can be tapped for a character and held for a layer or modifier.

Which layer a set of concurrently held layer keys produces is decided by the
layout's composition table (see Layout.resolve_layer).
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Union

from layout_framework.errors import LayoutError


#-----------------------------------------------------------------------------
# Behaviors
#-----------------------------------------------------------------------------
@dataclass(frozen=True)
class ActivateLayer:
    layer: int


@dataclass(frozen=True)
class Modifier:
    name: str = 'shift'


@dataclass(frozen=True)
class Disabled:
    pass


HoldEffect = Union[ActivateLayer, Modifier, Disabled]


@dataclass(frozen=True)
class Tap:
    char: str


@dataclass(frozen=True)
class Hold:
    effect: HoldEffect


@dataclass(frozen=True)
class Empty:
    pass


Behavior = Union[Tap, Hold, Empty]

EMPTY = Empty()


class KeyLoc(NamedTuple):
    """A (layer, position index) pair."""
    layer: int
    index: int


#-----------------------------------------------------------------------------
# Layers and layouts
#-----------------------------------------------------------------------------
class Layer:
    """Tap plane of one layer: one Tap or Empty per position."""

    def __init__(self, taps: Iterable[Behavior]):
        self.taps: List[Behavior] = list(taps)
        for index, behavior in enumerate(self.taps):
            if not isinstance(behavior, (Tap, Empty)):
                raise LayoutError(f"Layer slot {index} must hold a Tap or Empty, got {behavior!r}")

    def __len__(self) -> int:
        return len(self.taps)

    def __getitem__(self, index: int) -> Behavior:
        return self.taps[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Layer):
            return NotImplemented
        return self.taps == other.taps

    def is_empty(self) -> bool:
        return all(isinstance(behavior, Empty) for behavior in self.taps)

    def characters(self) -> List[str]:
        return [behavior.char for behavior in self.taps if isinstance(behavior, Tap)]


class Layout:
    """
    Layered keyboard layout.

    Args:
        holds: Hold plane of layer 0 (Hold or Empty per position)
        layers: Tap planes, layer 0 first
        composition: Maps sets of two or more held layer ids to the resulting layer

    Raises:
        LayoutError: If layers are partial, behaviors are misplaced, or the
            composition table refers to unknown layers
    """

    def __init__(self, holds: Iterable[Behavior], layers: Iterable[Layer],
                 composition: Optional[Dict[FrozenSet[int], int]] = None):
        self.holds: List[Behavior] = list(holds)
        self.layers: List[Layer] = [Layer(layer.taps if isinstance(layer, Layer) else layer) for layer in layers]
        self.composition: Dict[FrozenSet[int], int] = {
            frozenset(held): target for held, target in (composition or {}).items()
        }
        self._validate()

    def _validate(self) -> None:
        if not self.layers:
            raise LayoutError("Layout needs at least the base layer")

        size = len(self.holds)
        for layer_id, layer in enumerate(self.layers):
            if len(layer) != size:
                raise LayoutError(f"Layer {layer_id} has {len(layer)} positions, expected {size}")

        for index, behavior in enumerate(self.holds):
            if not isinstance(behavior, (Hold, Empty)):
                raise LayoutError(f"Hold slot {index} must hold a Hold or Empty, got {behavior!r}")

        for held, target in self.composition.items():
            if len(held) < 2:
                raise LayoutError(f"Composition entry {sorted(held)} needs at least two layers")
            for layer_id in list(held) + [target]:
                if not 1 <= layer_id < len(self.layers):
                    raise LayoutError(f"Composition entry {sorted(held)} -> {target} refers to unknown layer {layer_id}")

    # Accessors
    @property
    def size(self) -> int:
        return len(self.holds)

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def tap(self, layer: int, index: int) -> Behavior:
        return self.layers[layer].taps[index]

    def set_tap(self, layer: int, index: int, behavior: Behavior) -> None:
        if not isinstance(behavior, (Tap, Empty)):
            raise LayoutError(f"Cannot place {behavior!r} on the tap plane")
        self.layers[layer].taps[index] = behavior

    def hold(self, index: int) -> Behavior:
        return self.holds[index]

    def set_hold(self, index: int, behavior: Behavior) -> None:
        if not isinstance(behavior, (Hold, Empty)):
            raise LayoutError(f"Cannot place {behavior!r} on the hold plane")
        self.holds[index] = behavior

    def copy(self) -> 'Layout':
        return Layout(self.holds, self.layers, self.composition)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Layout):
            return NotImplemented
        return (self.holds == other.holds and self.layers == other.layers
                and self.composition == other.composition)

    def __repr__(self) -> str:
        return f"Layout(size={self.size}, layers={self.layer_count})"

    # Queries
    def find_taps(self, char: str) -> List[KeyLoc]:
        """Get all (layer, index) locations that tap `char`."""
        target = Tap(char)
        return [KeyLoc(layer_id, index)
                for layer_id, layer in enumerate(self.layers)
                for index, behavior in enumerate(layer.taps)
                if behavior == target]

    def find_holds(self, effect: HoldEffect) -> List[int]:
        """Get all base positions whose hold behavior has `effect`."""
        target = Hold(effect)
        return [index for index, behavior in enumerate(self.holds) if behavior == target]

    def active_activators(self) -> Dict[int, List[int]]:
        """Map each existing non-base layer id to the positions that activate it."""
        activators: Dict[int, List[int]] = {}
        for index, behavior in enumerate(self.holds):
            if isinstance(behavior, Hold) and isinstance(behavior.effect, ActivateLayer):
                layer_id = behavior.effect.layer
                if 1 <= layer_id < self.layer_count:
                    activators.setdefault(layer_id, []).append(index)
        return activators

    def resolve_layer(self, held_layers: FrozenSet[int]) -> Optional[int]:
        """
        Get the layer produced by holding activators for `held_layers`.

        No held layer gives the base layer, a single layer gives itself, and
        larger sets are looked up in the composition table. Unlisted sets
        resolve to None.
        """
        if not held_layers:
            return 0
        if len(held_layers) == 1:
            return next(iter(held_layers))
        return self.composition.get(frozenset(held_layers))

    def max_held_activators(self) -> int:
        return max([1] + [len(held) for held in self.composition])

    def tap_characters(self) -> List[str]:
        return sorted({char for layer in self.layers for char in layer.characters()})

    # Structural edits
    def remove_layer(self, layer_id: int) -> None:
        """
        Delete a non-base layer.

        Holds activating the removed layer are cleared, higher layer ids are
        renumbered, and composition entries involving the layer are dropped.
        """
        if not 1 <= layer_id < self.layer_count:
            raise LayoutError(f"Cannot remove layer {layer_id}")

        del self.layers[layer_id]

        def renumber(old: int) -> int:
            return old - 1 if old > layer_id else old

        for index, behavior in enumerate(self.holds):
            if isinstance(behavior, Hold) and isinstance(behavior.effect, ActivateLayer):
                target = behavior.effect.layer
                if target == layer_id:
                    self.holds[index] = EMPTY
                elif target > layer_id:
                    self.holds[index] = Hold(ActivateLayer(renumber(target)))

        composition = {}
        for held, target in self.composition.items():
            if layer_id in held or target == layer_id:
                continue
            composition[frozenset(renumber(old) for old in held)] = renumber(target)
        self.composition = composition


#-----------------------------------------------------------------------------
# String helpers
#-----------------------------------------------------------------------------
def parse_tap_string(keys: str, size: Optional[int] = None) -> Layer:
    """
    Create a layer from a string with one character per position.

    Spaces are empty positions. The layer is padded with empty positions up
    to `size`.

    Raises:
        LayoutError: If the string is longer than `size`
    """
    if size is not None and len(keys) > size:
        raise LayoutError(f"Layer string has {len(keys)} keys, layout size is {size}")

    taps: List[Behavior] = [EMPTY if key == ' ' else Tap(key) for key in keys]
    if size is not None:
        taps.extend([EMPTY] * (size - len(taps)))
    return Layer(taps)


def parse_hold_string(mods: str) -> List[Behavior]:
    """
    Create a hold plane from a string with one character per position.

    'S' is a shift modifier, a digit activates that layer, 'X' is a disabled
    hold, and a space is empty.
    """
    holds: List[Behavior] = []
    for index, mod in enumerate(mods):
        if mod == ' ':
            holds.append(EMPTY)
        elif mod == 'S':
            holds.append(Hold(Modifier('shift')))
        elif mod == 'X':
            holds.append(Hold(Disabled()))
        elif mod.isdigit() and mod != '0':
            holds.append(Hold(ActivateLayer(int(mod))))
        else:
            raise LayoutError(f"Unknown hold code {mod!r} at position {index}")
    return holds


def get_layout_statistics(layout: Layout) -> Dict[str, object]:
    """
    Get statistics about a layout.

    Returns:
        Dictionary with layer, key and hold counts
    """
    taps_per_layer = [len(layer.characters()) for layer in layout.layers]
    holds = [behavior for behavior in layout.holds if isinstance(behavior, Hold)]

    return {
        'layers': layout.layer_count,
        'positions': layout.size,
        'taps_per_layer': taps_per_layer,
        'total_taps': sum(taps_per_layer),
        'unique_characters': len(layout.tap_characters()),
        'layer_holds': sum(1 for hold in holds if isinstance(hold.effect, ActivateLayer)),
        'modifier_holds': sum(1 for hold in holds if isinstance(hold.effect, Modifier)),
        'empty_layers': sum(1 for layer in layout.layers[1:] if layer.is_empty()),
    }
