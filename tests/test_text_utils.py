from collections import Counter

import pytest

from layout_framework.text_utils import count_corpus, count_text, frequencies_from_counts


def test_counts_letters_and_bigrams():
    letters, bigrams = count_text("abab")
    assert letters == Counter({'a': 2, 'b': 2})
    assert bigrams == Counter({'ab': 2, 'ba': 1})


def test_indentation_typed_as_tabs():
    letters, bigrams = count_text("a:\n          b", indent_width=4)
    assert letters['\t'] == 2
    assert letters[' '] == 2
    assert bigrams['\n\t'] == 1
    assert bigrams['\t\t'] == 1
    assert bigrams['\t '] == 1
    assert bigrams[' b'] == 1


def test_carriage_returns_ignored():
    letters, bigrams = count_text("a\r\nb")
    assert '\r' not in letters
    assert bigrams == Counter({'a\n': 1, '\nb': 1})


def test_unknown_characters_break_the_chain():
    letters, bigrams = count_text("aéb", alphabet="ab")
    assert letters == Counter({'a': 1, 'b': 1})
    assert bigrams == Counter()


def test_count_corpus(tmp_path):
    (tmp_path / 'src').mkdir()
    (tmp_path / 'src' / 'main.py').write_text("ab", encoding='utf-8')
    (tmp_path / 'src' / 'notes.txt').write_text("zz", encoding='utf-8')
    (tmp_path / 'target').mkdir()
    (tmp_path / 'target' / 'gen.rs').write_text("cc", encoding='utf-8')
    (tmp_path / 'lib.rs').write_text("ba", encoding='utf-8')

    letters, bigrams = count_corpus(str(tmp_path), extensions=['py', '.rs'])
    assert letters == Counter({'a': 2, 'b': 2})
    assert bigrams == Counter({'ab': 1, 'ba': 1})

    with pytest.raises(FileNotFoundError):
        count_corpus(str(tmp_path / 'missing'))


def test_frequencies_from_counts():
    table = frequencies_from_counts(Counter({'a': 3, 'b': 1}), Counter({'ab': 1}))
    assert table.letters == {'a': 0.75, 'b': 0.25}
    assert table.bigrams == {'ab': 1.0}

    empty = frequencies_from_counts(Counter(), Counter())
    assert empty.letters == {}
    assert empty.bigrams == {}
