import pytest

from conftest import make_layout
from layout_framework.errors import LayoutError
from layout_framework.layout_model import (EMPTY, ActivateLayer, Disabled, Hold, KeyLoc, Layer, Layout, Modifier,
                                           Tap, get_layout_statistics, parse_hold_string, parse_tap_string)


def test_partial_layer_rejected():
    with pytest.raises(LayoutError):
        Layout([EMPTY] * 3, [Layer([Tap('a'), EMPTY])])


def test_hold_on_tap_plane_rejected():
    with pytest.raises(LayoutError):
        Layer([Tap('a'), Hold(Modifier('shift'))])
    with pytest.raises(LayoutError):
        Layout([Tap('a'), EMPTY], [Layer([EMPTY, EMPTY])])


def test_composition_must_name_existing_layers():
    with pytest.raises(LayoutError):
        make_layout([EMPTY] * 2, "ab", "cd", composition={frozenset({1, 2}): 1})
    with pytest.raises(LayoutError):
        make_layout([EMPTY] * 2, "ab", "cd", composition={frozenset({1}): 1})


def test_copy_is_independent(small_layout):
    copy = small_layout.copy()
    assert copy == small_layout

    copy.set_tap(0, 0, Tap('z'))
    copy.set_hold(0, Hold(Disabled()))
    assert small_layout.tap(0, 0) == Tap('a')
    assert small_layout.hold(0) == EMPTY
    assert copy != small_layout


def test_find_taps_and_holds(small_layout):
    assert small_layout.find_taps('a') == [KeyLoc(0, 0)]
    assert small_layout.find_taps('.') == [KeyLoc(1, 3)]
    assert small_layout.find_taps('q') == []
    assert small_layout.find_holds(Modifier('shift')) == [2]
    assert small_layout.active_activators() == {1: [5]}


def test_resolve_layer():
    layout = make_layout([EMPTY] * 2, "ab", "c ", " d", "e ", composition={frozenset({1, 2}): 3})
    assert layout.resolve_layer(frozenset()) == 0
    assert layout.resolve_layer(frozenset({2})) == 2
    assert layout.resolve_layer(frozenset({1, 2})) == 3
    assert layout.resolve_layer(frozenset({1, 3})) is None
    assert layout.max_held_activators() == 2


def test_inert_activator_ignored():
    holds = [Hold(ActivateLayer(4)), EMPTY]
    layout = make_layout(holds, "ab", "cd")
    assert layout.active_activators() == {}


def test_remove_layer_renumbers():
    holds = [Hold(ActivateLayer(1)), Hold(ActivateLayer(2)), Hold(ActivateLayer(3))]
    layout = make_layout(holds, "abc", "d  ", "e  ", "f  ",
                         composition={frozenset({1, 3}): 2, frozenset({2, 3}): 1})
    layout.remove_layer(2)

    assert layout.layer_count == 3
    assert layout.holds == [Hold(ActivateLayer(1)), EMPTY, Hold(ActivateLayer(2))]
    assert layout.composition == {}
    assert layout.tap(2, 0) == Tap('f')

    with pytest.raises(LayoutError):
        layout.remove_layer(0)


def test_parse_strings():
    layer = parse_tap_string("a b", 5)
    assert layer.taps == [Tap('a'), EMPTY, Tap('b'), EMPTY, EMPTY]

    holds = parse_hold_string(" S2X")
    assert holds == [EMPTY, Hold(Modifier('shift')), Hold(ActivateLayer(2)), Hold(Disabled())]

    with pytest.raises(LayoutError):
        parse_tap_string("abcdef", 3)
    with pytest.raises(LayoutError):
        parse_hold_string("0")


def test_layout_statistics(small_layout):
    stats = get_layout_statistics(small_layout)
    assert stats['layers'] == 2
    assert stats['taps_per_layer'] == [6, 3]
    assert stats['layer_holds'] == 1
    assert stats['modifier_holds'] == 1
    assert stats['empty_layers'] == 0
