#!/usr/bin/env python3
"""
Physical keyboard description for layered layout scoring.

A keyboard is a static list of positions. Each position knows its physical
coordinate (mm), the hand and finger that presses it, and whether it is the
resting (home) key of that finger. Positions are layout-independent.
"""

from dataclasses import dataclass
from math import sqrt
from typing import Dict, List, Tuple

from layout_framework.errors import MalformedTable

# Finger numbers (thumb plus the usual 1=index .. 4=pinky)
THUMB = 0
INDEX = 1
MIDDLE = 2
RING = 3
PINKY = 4

HANDS = ('L', 'R')


def calculate_euclidean_distance(pos1: Tuple[float, float], pos2: Tuple[float, float]) -> float:
    """Calculate Euclidean distance between two positions in mm."""
    dx = pos2[0] - pos1[0]
    dy = pos2[1] - pos1[1]
    return sqrt(dx * dx + dy * dy)


@dataclass(frozen=True)
class Position:
    """A physical key slot."""

    index: int
    x: float
    y: float
    hand: str
    finger: int
    is_home: bool = False

    @property
    def finger_id(self) -> str:
        """Unique finger identifier combining hand and finger number (e.g. 'L1')."""
        return f"{self.hand}{self.finger}"

    @property
    def coordinate(self) -> Tuple[float, float]:
        return (self.x, self.y)


class Keyboard:
    """
    Static set of key positions with per-finger resting coordinates.

    Raises:
        MalformedTable: If positions are not indexed 0..n-1, a hand or finger
            is unknown, or a finger does not have exactly one home key
    """

    def __init__(self, positions: List[Position]):
        self.positions = list(positions)
        self._validate()

        self.home_positions: Dict[str, Position] = {
            pos.finger_id: pos for pos in self.positions if pos.is_home
        }

    def _validate(self) -> None:
        if not self.positions:
            raise MalformedTable("Keyboard must have at least one position")

        indices = [pos.index for pos in self.positions]
        if indices != list(range(len(self.positions))):
            raise MalformedTable(f"Keyboard positions must be indexed 0..{len(self.positions) - 1} in order")

        homes: Dict[str, int] = {}
        fingers = set()
        for pos in self.positions:
            if pos.hand not in HANDS:
                raise MalformedTable(f"Position {pos.index}: unknown hand '{pos.hand}'")
            if not THUMB <= pos.finger <= PINKY:
                raise MalformedTable(f"Position {pos.index}: unknown finger {pos.finger}")
            fingers.add(pos.finger_id)
            if pos.is_home:
                homes[pos.finger_id] = homes.get(pos.finger_id, 0) + 1

        missing = sorted(finger for finger in fingers if finger not in homes)
        if missing:
            raise MalformedTable(f"Fingers without a home position: {missing}")
        duplicated = sorted(finger for finger, count in homes.items() if count > 1)
        if duplicated:
            raise MalformedTable(f"Fingers with more than one home position: {duplicated}")

    def __len__(self) -> int:
        return len(self.positions)

    def position(self, index: int) -> Position:
        return self.positions[index]

    def home_of(self, index: int) -> Position:
        """Get the resting position of the finger that presses position `index`."""
        return self.home_positions[self.positions[index].finger_id]

    def distance(self, index1: int, index2: int) -> float:
        return calculate_euclidean_distance(self.positions[index1].coordinate,
                                            self.positions[index2].coordinate)

    def stretch_distance(self, index: int) -> float:
        """Distance from a position to the resting position of its finger."""
        return calculate_euclidean_distance(self.positions[index].coordinate,
                                            self.home_of(index).coordinate)

    @classmethod
    def ferris_sweep(cls) -> 'Keyboard':
        """
        Build the 34-key Ferris Sweep split keyboard.

        Ten columns of three keys (index = column * 3 + row) followed by four
        thumb keys (indices 30-33). Inner index columns have no home key.
        """
        x_spacing = 18.0
        y_spacing = 17.0
        y_stagger = [19.0, 7.0, 0.0, 5.5, 8.0]
        column_fingers = [PINKY, RING, MIDDLE, INDEX, INDEX]

        positions = []
        for column in range(10):
            x = column * x_spacing
            if column < 5:
                finger_index, hand = column, 'L'
            else:
                finger_index, hand = 9 - column, 'R'
            for row in range(3):
                positions.append(Position(
                    index=len(positions),
                    x=x,
                    y=y_stagger[finger_index] + row * y_spacing,
                    hand=hand,
                    finger=column_fingers[finger_index],
                    is_home=(row == 1 and column not in (4, 5)),
                ))

        for thumb in range(4):
            positions.append(Position(
                index=len(positions),
                x=(thumb + 3) * x_spacing,
                y=y_stagger[4] + 3 * y_spacing,
                hand='L' if thumb < 2 else 'R',
                finger=THUMB,
                is_home=thumb in (1, 2),
            ))

        return cls(positions)
