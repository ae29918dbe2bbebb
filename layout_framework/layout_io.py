#!/usr/bin/env python3
"""
YAML files for layered layouts.

File format:

    holds: ["", "S", "", "L1", ...]
    layers:
      - ["q", "a", "z", ..., "SPC", "SPC", ""]
      - [...]
    composition:
      - held: [1, 2]
        layer: 3

Tap tokens are the character itself, SPC (space), TAB, RET (newline), or ""
for an empty slot. Hold tokens are L<k> (activate layer k), S (shift),
M:<name> (other modifiers), X (disabled), or "" for an empty slot.
"""

from pathlib import Path
from typing import Any, Dict, List

import yaml

from layout_framework.errors import LayoutError
from layout_framework.layout_model import (EMPTY, ActivateLayer, Behavior, Disabled, Empty, Hold, Layer,
                                           Layout, Modifier, Tap)

TAP_TOKENS = {' ': 'SPC', '\t': 'TAB', '\n': 'RET'}
TOKEN_TAPS = {token: char for char, token in TAP_TOKENS.items()}


def tap_to_token(behavior: Behavior) -> str:
    if isinstance(behavior, Empty):
        return ""
    return TAP_TOKENS.get(behavior.char, behavior.char)


def token_to_tap(token: Any) -> Behavior:
    """
    Raises:
        LayoutError: If the token is not a single character or a known name
    """
    if token is None or token == "":
        return EMPTY
    token = str(token)
    if token in TOKEN_TAPS:
        return Tap(TOKEN_TAPS[token])
    if len(token) != 1:
        raise LayoutError(f"Invalid tap token {token!r}")
    return Tap(token)


def hold_to_token(behavior: Behavior) -> str:
    if isinstance(behavior, Empty):
        return ""
    effect = behavior.effect
    if isinstance(effect, ActivateLayer):
        return f"L{effect.layer}"
    if isinstance(effect, Modifier):
        return "S" if effect.name == 'shift' else f"M:{effect.name}"
    return "X"


def token_to_hold(token: Any) -> Behavior:
    """
    Raises:
        LayoutError: If the token is not a known hold
    """
    if token is None or token == "":
        return EMPTY
    token = str(token)
    if token == "S":
        return Hold(Modifier('shift'))
    if token == "X":
        return Hold(Disabled())
    if token.startswith("M:") and len(token) > 2:
        return Hold(Modifier(token[2:]))
    if token.startswith("L") and token[1:].isdigit() and int(token[1:]) > 0:
        return Hold(ActivateLayer(int(token[1:])))
    raise LayoutError(f"Invalid hold token {token!r}")


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        'holds': [hold_to_token(behavior) for behavior in layout.holds],
        'layers': [[tap_to_token(behavior) for behavior in layer.taps] for layer in layout.layers],
    }
    if layout.composition:
        data['composition'] = [
            {'held': sorted(held), 'layer': target}
            for held, target in sorted(layout.composition.items(), key=lambda item: sorted(item[0]))
        ]
    return data


def layout_from_dict(data: Any) -> Layout:
    """
    Build a layout from parsed YAML data.

    Raises:
        LayoutError: If the data does not describe a valid layout
    """
    if not isinstance(data, dict):
        raise LayoutError("Layout data must be a mapping")

    holds = data.get('holds')
    layers = data.get('layers')
    if not isinstance(holds, list) or not isinstance(layers, list) or not layers:
        raise LayoutError("Layout data needs a 'holds' list and a non-empty 'layers' list")
    if not all(isinstance(layer, list) for layer in layers):
        raise LayoutError("Each layer must be a list of tap tokens")

    composition = {}
    for entry in data.get('composition') or []:
        if not isinstance(entry, dict) or 'held' not in entry or 'layer' not in entry:
            raise LayoutError(f"Invalid composition entry: {entry!r}")
        try:
            composition[frozenset(int(layer) for layer in entry['held'])] = int(entry['layer'])
        except (TypeError, ValueError):
            raise LayoutError(f"Invalid composition entry: {entry!r}")

    return Layout(
        [token_to_hold(token) for token in holds],
        [Layer([token_to_tap(token) for token in layer]) for layer in layers],
        composition,
    )


def load_layout(filepath: str) -> Layout:
    """
    Load a layout from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        LayoutError: If the file does not describe a valid layout
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Layout file not found: {filepath}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LayoutError(f"Error parsing layout file {filepath}: {e}")

    return layout_from_dict(data)


def save_layout(layout: Layout, filepath: str) -> None:
    """Write a layout to a YAML file, creating parent directories."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(layout_to_dict(layout), f, default_flow_style=None, allow_unicode=True, sort_keys=False)


def layout_rows(layout: Layout) -> List[str]:
    """One line per layer with the tap tokens joined by spaces, for summaries."""
    return [' '.join(tap_to_token(behavior) or '_' for behavior in layer.taps) for layer in layout.layers]
