#!/usr/bin/env python3
"""
Frequency and ergonomic weight tables used by the metric engine.

Both tables are validated at construction; any malformed entry raises
MalformedTable so that bad input data stops the run before a search starts.
"""

from typing import Dict, Iterable, Mapping, Optional, Sequence

import numpy as np

from layout_framework.errors import MalformedTable
from layout_framework.keyboard import Keyboard

STACCATO_KEYS = ('layer', 'modifier')

# Scale applied to stretch distance when deriving default base effort
DEFAULT_EFFORT_SCALE = 17.0


def _check_value(table: str, key: object, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise MalformedTable(f"{table}: value for {key!r} is not a number: {value!r}")
    if not np.isfinite(value) or value < 0:
        raise MalformedTable(f"{table}: value for {key!r} must be finite and non-negative, got {value}")
    return value


class FrequencyTable:
    """
    Letter and bigram frequencies.

    Args:
        letters: Character -> frequency
        bigrams: Two-character string -> frequency

    Raises:
        MalformedTable: If a key has the wrong length or a frequency is
            negative or not a number
    """

    def __init__(self, letters: Mapping[str, float], bigrams: Optional[Mapping[str, float]] = None):
        self.letters: Dict[str, float] = {}
        self.bigrams: Dict[str, float] = {}

        for char, freq in letters.items():
            if not isinstance(char, str) or len(char) != 1:
                raise MalformedTable(f"Letter frequencies: invalid character {char!r}")
            self.letters[char] = _check_value('Letter frequencies', char, freq)

        for bigram, freq in (bigrams or {}).items():
            if not isinstance(bigram, str) or len(bigram) != 2:
                raise MalformedTable(f"Bigram frequencies: invalid bigram {bigram!r}")
            self.bigrams[bigram] = _check_value('Bigram frequencies', bigram, freq)

    def letter(self, char: str) -> float:
        return self.letters.get(char, 0.0)

    def bigram(self, bigram: str) -> float:
        return self.bigrams.get(bigram, 0.0)

    def restricted_to(self, chars: Iterable[str]) -> 'FrequencyTable':
        """Get a table with only letters and bigrams made of `chars`."""
        allowed = set(chars)
        return FrequencyTable(
            {char: freq for char, freq in self.letters.items() if char in allowed},
            {bigram: freq for bigram, freq in self.bigrams.items()
             if bigram[0] in allowed and bigram[1] in allowed},
        )

    def __repr__(self) -> str:
        return f"FrequencyTable(letters={len(self.letters)}, bigrams={len(self.bigrams)})"


class WeightTable:
    """
    Per-position and per-finger ergonomic costs.

    Args:
        base_effort: Effort of pressing each position
        stretch: Distance of each position from its finger's home position
        finger_movement: Finger id (e.g. 'L1') -> movement cost factor
        staccato_cost: Cost of re-pressing held keys, keys 'layer' and 'modifier'

    Raises:
        MalformedTable: If arrays differ in length, values are negative,
            or staccato costs are missing
    """

    def __init__(self,
                 base_effort: Sequence[float],
                 stretch: Sequence[float],
                 finger_movement: Mapping[str, float],
                 staccato_cost: Mapping[str, float]):
        if len(base_effort) != len(stretch):
            raise MalformedTable(
                f"Weight table: {len(base_effort)} base effort values for {len(stretch)} positions"
            )

        self.base_effort = np.array(
            [_check_value('Base effort', index, value) for index, value in enumerate(base_effort)],
            dtype=float)
        self.stretch = np.array(
            [_check_value('Stretch distance', index, value) for index, value in enumerate(stretch)],
            dtype=float)

        self.finger_movement = {
            finger: _check_value('Finger movement', finger, value)
            for finger, value in finger_movement.items()
        }

        missing = [key for key in STACCATO_KEYS if key not in staccato_cost]
        if missing:
            raise MalformedTable(f"Staccato cost table missing keys: {missing}")
        self.staccato_cost = {
            key: _check_value('Staccato cost', key, staccato_cost[key]) for key in STACCATO_KEYS
        }

    def __len__(self) -> int:
        return len(self.base_effort)

    def movement_factor(self, finger_id: str) -> float:
        if finger_id not in self.finger_movement:
            raise MalformedTable(f"No movement cost for finger '{finger_id}'")
        return self.finger_movement[finger_id]

    @classmethod
    def from_keyboard(cls,
                      keyboard: Keyboard,
                      base_effort: Optional[Sequence[float]] = None,
                      finger_movement: Optional[Mapping[str, float]] = None,
                      staccato_cost: Optional[Mapping[str, float]] = None) -> 'WeightTable':
        """
        Build a weight table for a keyboard, deriving what is not supplied.

        Stretch distances always come from the keyboard geometry. Missing base
        effort defaults to 1 + stretch / 17, missing movement factors to 1.0
        per finger, and missing staccato costs to 1.0 each.

        Raises:
            MalformedTable: If supplied values do not match the keyboard
        """
        stretch = [keyboard.stretch_distance(index) for index in range(len(keyboard))]

        if base_effort is None:
            base_effort = [1.0 + distance / DEFAULT_EFFORT_SCALE for distance in stretch]
        elif len(base_effort) != len(keyboard):
            raise MalformedTable(
                f"Weight table: {len(base_effort)} base effort values, keyboard has {len(keyboard)} positions"
            )

        fingers = sorted({pos.finger_id for pos in keyboard.positions})
        if finger_movement is None:
            finger_movement = {finger: 1.0 for finger in fingers}
        else:
            missing = [finger for finger in fingers if finger not in finger_movement]
            if missing:
                raise MalformedTable(f"Finger movement table missing fingers: {missing}")

        if staccato_cost is None:
            staccato_cost = {key: 1.0 for key in STACCATO_KEYS}

        return cls(base_effort, stretch, finger_movement, staccato_cost)

    def __repr__(self) -> str:
        return f"WeightTable(positions={len(self)}, fingers={len(self.finger_movement)})"
