from pathlib import Path

import pytest

from layout_framework.data_utils import (decode_characters, encode_characters, load_frequency_table, load_keyboard,
                                         load_weight_table, save_frequency_table)
from layout_framework.errors import MalformedTable
from layout_framework.presets import ALPHABET
from layout_framework.tables import FrequencyTable

INPUT_DIR = Path(__file__).resolve().parent.parent / 'input'

KEYBOARD_CSV = """index,x,y,hand,finger,home
0,20,0,L,1,yes
1,20,10,L,1,
2,0,0,L,2,1
3,60,0,R,1,true
"""


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_escapes():
    assert decode_characters(r"\s") == ' '
    assert decode_characters(r"\t\n") == '\t\n'
    assert decode_characters("\\\\n") == '\\n'
    assert decode_characters("ab") == 'ab'
    with pytest.raises(MalformedTable):
        decode_characters(r"\q")
    with pytest.raises(MalformedTable):
        decode_characters("a\\")
    assert encode_characters(' \t\\') == r"\s\t\\"


def test_load_frequencies_with_column_detection(tmp_path):
    letters = write(tmp_path, 'letters.csv', 'char,count\na,3\n\\s,1\n",",2\n')
    bigrams = write(tmp_path, 'bigrams.csv', 'pair,freq\na\\s,0.5\n"\\s,",0.25\n')

    table = load_frequency_table(letters, bigrams)
    assert table.letters == {'a': 3.0, ' ': 1.0, ',': 2.0}
    assert table.bigrams == {'a ': 0.5, ' ,': 0.25}


def test_bundled_frequency_tables_cover_alphabet():
    table = load_frequency_table(str(INPUT_DIR / 'letter_frequencies.csv'),
                                 str(INPUT_DIR / 'bigram_frequencies.csv'))
    assert set(table.letters) == set(ALPHABET)
    assert all(set(bigram) <= set(ALPHABET) for bigram in table.bigrams)


@pytest.mark.parametrize('content', [
    'letter,frequency\nab,1\n',
    'letter,frequency\na,1\na,2\n',
    'letter,frequency\na,often\n',
    'letter,frequency\na,-1\n',
    'symbol,amount\na,1\n',
    'letter,frequency\n',
])
def test_malformed_frequencies(tmp_path, content):
    with pytest.raises(MalformedTable):
        load_frequency_table(write(tmp_path, 'letters.csv', content))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_frequency_table(str(tmp_path / 'missing.csv'))


def test_save_and_reload_frequencies(tmp_path):
    table = FrequencyTable({' ': 0.5, 'a': 0.3, '"': 0.2}, {'a ': 0.4, '\n\t': 0.1})
    letters = str(tmp_path / 'out' / 'letters.csv')
    bigrams = str(tmp_path / 'out' / 'bigrams.csv')
    save_frequency_table(table, letters, bigrams)

    reloaded = load_frequency_table(letters, bigrams)
    assert reloaded.letters == table.letters
    assert reloaded.bigrams == table.bigrams


def test_load_keyboard(tmp_path):
    keyboard = load_keyboard(write(tmp_path, 'keyboard.csv', KEYBOARD_CSV))
    assert len(keyboard) == 4
    assert keyboard.position(1).finger_id == 'L1'
    assert keyboard.home_of(1).index == 0
    assert keyboard.stretch_distance(1) == pytest.approx(10.0)


def test_load_keyboard_errors(tmp_path):
    # Second left index home key
    with pytest.raises(MalformedTable):
        load_keyboard(write(tmp_path, 'keyboard.csv', KEYBOARD_CSV.replace('20,10,L,1,', '20,10,L,1,yes')))
    with pytest.raises(MalformedTable):
        load_keyboard(write(tmp_path, 'keyboard.csv', KEYBOARD_CSV.replace('R,1', 'X,1')))
    with pytest.raises(MalformedTable):
        load_keyboard(write(tmp_path, 'keyboard.csv', 'index,x,y,hand\n0,0,0,L\n'))


def test_load_weight_table(tmp_path):
    keyboard = load_keyboard(write(tmp_path, 'keyboard.csv', KEYBOARD_CSV))
    efforts = write(tmp_path, 'effort.csv', 'position,base_effort\n3,4\n0,1\n1,2\n2,3\n')

    weights = load_weight_table(efforts, keyboard, staccato_cost={'layer': 2.0, 'modifier': 1.0})
    assert list(weights.base_effort) == [1.0, 2.0, 3.0, 4.0]
    assert list(weights.stretch) == pytest.approx([0.0, 10.0, 0.0, 0.0])
    assert weights.staccato_cost == {'layer': 2.0, 'modifier': 1.0}
    assert weights.movement_factor('R1') == 1.0

    with pytest.raises(MalformedTable):
        load_weight_table(write(tmp_path, 'short.csv', 'position,effort\n0,1\n1,1\n'), keyboard)
    with pytest.raises(MalformedTable):
        load_weight_table(write(tmp_path, 'extra.csv', 'position,effort\n0,1\n1,1\n2,1\n3,1\n9,1\n'), keyboard)
