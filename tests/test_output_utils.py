import pandas as pd
import pytest

from layout_framework.annealing import AnnealingResult
from layout_framework.base_metric import EvaluationResult
from layout_framework.output_utils import (create_summary_table, format_annealing_summary, format_csv_output,
                                           format_layout_summary, format_result, format_score_only_output,
                                           save_history_csv, save_results_csv)


def make_result(normalized=1e6, weighted=300.0):
    return EvaluationResult(
        raw={'base': 2.5, 'sfb': 0.125},
        weighted=weighted,
        normalized=normalized,
        percentages={'base': 100.0, 'sfb': 50.0},
        metadata={'layout': 'qwerty', 'skipped': [1, 2]},
    )


def test_csv_output():
    header, row = format_csv_output(make_result(), {'precision': 2}).split('\n')
    assert header.split(',') == ['normalized', 'weighted', 'execution_time', 'raw_base', 'raw_sfb',
                                 'pct_base', 'pct_sfb', 'meta_layout']
    assert row.split(',')[:2] == ['1000000.00', '300.00']
    assert row.endswith('qwerty')

    assert 'meta_layout' not in format_csv_output(make_result(), include_metadata=False)


def test_score_only_output():
    assert format_score_only_output(make_result(), {'precision': 1}) == "1000000.0"
    assert format_score_only_output(make_result(), {'precision': 3}, include_metrics=True) == "1000000.000 2.500 0.125"


def test_detailed_output():
    text = format_result(make_result(), 'detailed', {'show_metadata': True})
    assert "Normalized score:" in text
    assert "50.0%" in text
    assert "layout: qwerty" in text

    with pytest.raises(ValueError):
        format_result(make_result(), 'xml')


def test_summary_table_sorted():
    table = create_summary_table({'worse': make_result(2e6), 'better': make_result(5e5)})
    lines = table.strip().split('\n')
    assert lines[4].split()[:2] == ['#1', 'better']
    assert lines[5].split()[:2] == ['#2', 'worse']
    assert create_summary_table({}) == "No results to summarize"


def test_layout_summary(small_layout):
    text = format_layout_summary(small_layout)
    assert "Layers: 2" in text
    assert "  0: a b c d e SPC" in text


def test_annealing_outputs(small_layout, tmp_path):
    result = AnnealingResult(
        layout=small_layout,
        evaluation=make_result(9e5),
        best_layout=small_layout,
        best_evaluation=make_result(8e5),
        initial_score=1e6,
        iterations=200,
        accepted=50,
        rejected=150,
        stop_reason='iterations',
        history=[(0, 1e6, 30.0), (100, 9e5, 15.0)],
    )

    text = format_annealing_summary(result)
    assert "Acceptance rate: 25.0%" in text
    assert "20.0% better than start" in text

    path = tmp_path / 'out' / 'history.csv'
    save_history_csv(result, str(path))
    df = pd.read_csv(path)
    assert list(df.columns) == ['iteration', 'normalized', 'temperature']
    assert df['iteration'].tolist() == [0, 100]


def test_save_results_keeps_every_layout(tmp_path):
    path = tmp_path / 'out' / 'scores.csv'
    save_results_csv({'qwerty': make_result(1e6), 'best': make_result(7.5e5, weighted=225.0)}, str(path))

    df = pd.read_csv(path)
    assert df['layout'].tolist() == ['qwerty', 'best']
    assert df['normalized'].tolist() == [1e6, 7.5e5]
    assert df['weighted'].tolist() == [300.0, 225.0]
    assert list(df.columns[:4]) == ['layout', 'normalized', 'weighted', 'execution_time']
