import pytest
import yaml

from conftest import make_layout
from layout_framework.errors import LayoutError
from layout_framework.layout_io import (layout_from_dict, layout_rows, layout_to_dict, load_layout, save_layout,
                                        token_to_hold, token_to_tap)
from layout_framework.layout_model import EMPTY, ActivateLayer, Disabled, Hold, Modifier, Tap
from layout_framework.presets import qwerty


def test_tokens():
    assert token_to_tap("SPC") == Tap(' ')
    assert token_to_tap("RET") == Tap('\n')
    assert token_to_tap("") == EMPTY
    assert token_to_tap(None) == EMPTY
    assert token_to_tap(7) == Tap('7')
    assert token_to_hold("L3") == Hold(ActivateLayer(3))
    assert token_to_hold("S") == Hold(Modifier('shift'))
    assert token_to_hold("M:ctrl") == Hold(Modifier('ctrl'))
    assert token_to_hold("X") == Hold(Disabled())

    for token in ("L0", "Lx", "Q"):
        with pytest.raises(LayoutError):
            token_to_hold(token)
    with pytest.raises(LayoutError):
        token_to_tap("ab")


def test_dict_format(small_layout):
    data = layout_to_dict(small_layout)
    assert data['holds'] == ["", "", "S", "", "", "L1"]
    assert data['layers'][0] == ["a", "b", "c", "d", "e", "SPC"]
    assert 'composition' not in data


def test_file_round_trip(tmp_path):
    holds = [Hold(ActivateLayer(1)), Hold(ActivateLayer(2)), Hold(Modifier('alt')), EMPTY]
    layout = make_layout(holds, "ab", "c", "d", "e", composition={frozenset({1, 2}): 3})
    layout.set_tap(0, 3, Tap('\t'))
    path = tmp_path / 'layouts' / 'layout.yaml'

    save_layout(layout, str(path))
    assert load_layout(str(path)) == layout

    data = yaml.safe_load(path.read_text(encoding='utf-8'))
    assert data['composition'] == [{'held': [1, 2], 'layer': 3}]


def test_preset_round_trip(tmp_path):
    path = tmp_path / 'qwerty.yaml'
    save_layout(qwerty(), str(path))
    assert load_layout(str(path)) == qwerty()


@pytest.mark.parametrize('data', [
    [],
    {'holds': ["", ""]},
    {'holds': ["", ""], 'layers': [["a"]]},
    {'holds': ["", ""], 'layers': [["a", "b"]], 'composition': [{'held': [1, 2]}]},
    {'holds': ["", ""], 'layers': ["ab"]},
])
def test_invalid_data(data):
    with pytest.raises(LayoutError):
        layout_from_dict(data)


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_layout(str(tmp_path / 'missing.yaml'))

    path = tmp_path / 'broken.yaml'
    path.write_text("holds: [", encoding='utf-8')
    with pytest.raises(LayoutError):
        load_layout(str(path))


def test_layout_rows(small_layout):
    assert layout_rows(small_layout) == ["a b c d e SPC", "1 2 _ . _ _"]
