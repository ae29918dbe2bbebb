#!/usr/bin/env python3
"""
Preset layouts for the 34-key Ferris Sweep.

All presets share the same hold plane and upper layers and differ only in
their 30 base letters:
  layer 1 - symbols (held with the left index home key)
  layer 2 - brackets and punctuation (held with the right index home key)
  layer 3 - navigation-like extras: tab, newline (held with the outer thumbs)
  layer 4 - digits (held with the inner thumbs, which tap space)
Shift is held on either pinky home key.
"""

from typing import Callable, Dict, List

from layout_framework.constraints import Constraint, DigitsOnOneLayer, LettersOnBase
from layout_framework.layout_model import Layout, Tap, parse_hold_string, parse_tap_string

FERRIS_SIZE = 34

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789 \t\n\\\"<>(){}[]:!;.,/?=+&*^%@#_|'`$-~"

HOLDS = " S        1        2        S 3443"
SYMBOL_LAYER = " ^  *  &        # _~-|/\\'\"` $ "
BRACKET_LAYER = " { :}!<([>)];@        =, +. % "
EXTRA_LAYER = "    % :/  \n!                  "
DIGIT_LAYER = "1  2  3  4  5  6  7  8  9  0  "

BASE_KEYS = {
    'qwerty': "qazwsxedcrfvtgbyhnujmik,ol.p;/",
    'colemak_dh': "qazwrxfscptdbgvjmklnhue,yi.;o/",
    'canary': "wcqlrjysvptdbgkzmxfnhoe/ui,;a.",
}


def layout_from_base(base_keys: str) -> Layout:
    """
    Build a Ferris Sweep layout from 30 base keys in column order.

    Both inner thumb keys tap space on the base layer, and the left inner
    thumb taps tab on layer 3.
    """
    if len(base_keys) != 30:
        raise ValueError(f"Base keys must have 30 characters, got {len(base_keys)}")

    base = parse_tap_string(base_keys, FERRIS_SIZE)
    base.taps[31] = Tap(' ')
    base.taps[32] = Tap(' ')

    extra = parse_tap_string(EXTRA_LAYER, FERRIS_SIZE)
    extra.taps[31] = Tap('\t')

    return Layout(parse_hold_string(HOLDS), [
        base,
        parse_tap_string(SYMBOL_LAYER, FERRIS_SIZE),
        parse_tap_string(BRACKET_LAYER, FERRIS_SIZE),
        extra,
        parse_tap_string(DIGIT_LAYER, FERRIS_SIZE),
    ])


def qwerty() -> Layout:
    return layout_from_base(BASE_KEYS['qwerty'])


def colemak_dh() -> Layout:
    return layout_from_base(BASE_KEYS['colemak_dh'])


def canary() -> Layout:
    return layout_from_base(BASE_KEYS['canary'])


PRESETS: Dict[str, Callable[[], Layout]] = {
    'qwerty': qwerty,
    'colemak_dh': colemak_dh,
    'canary': canary,
}


def get_preset(name: str) -> Layout:
    """
    Get a preset layout by name.

    Raises:
        ValueError: If name is not recognized
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset layout '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def default_constraints() -> List[Constraint]:
    return [LettersOnBase(), DigitsOnOneLayer()]
