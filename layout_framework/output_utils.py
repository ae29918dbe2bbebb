#!/usr/bin/env python3
"""
Output utilities for layout evaluation and annealing results.

Common functions for formatting and displaying results in various formats.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from layout_framework.annealing import AnnealingResult
from layout_framework.base_metric import EvaluationResult
from layout_framework.layout_io import layout_rows
from layout_framework.layout_model import Layout, get_layout_statistics

OUTPUT_FORMATS = ('detailed', 'csv', 'score_only')


def format_csv_output(result: EvaluationResult,
                      config: Optional[Dict[str, Any]] = None,
                      include_metadata: bool = True) -> str:
    """
    Format an evaluation as CSV output (header line plus one data line).

    Args:
        result: EvaluationResult to format
        config: Output format configuration (delimiter, precision, include_headers)
        include_metadata: Whether to include metadata fields
    """
    if config is None:
        config = {}

    delimiter = config.get('delimiter', ',')
    precision = config.get('precision', 6)
    include_headers = config.get('include_headers', True)

    row = result.to_dict()
    if not include_metadata:
        row = {key: value for key, value in row.items() if not key.startswith('meta_')}

    lines = []
    if include_headers:
        lines.append(delimiter.join(row.keys()))

    values = []
    for value in row.values():
        if isinstance(value, float):
            values.append(f"{value:.{precision}f}")
        else:
            values.append(str(value))
    lines.append(delimiter.join(values))

    return '\n'.join(lines)


def format_score_only_output(result: EvaluationResult,
                             config: Optional[Dict[str, Any]] = None,
                             include_metrics: bool = False) -> str:
    """
    Format an evaluation as the normalized score, optionally followed by raw metrics.
    """
    if config is None:
        config = {}

    precision = config.get('precision', 6)
    separator = config.get('separator', ' ')

    scores = [f"{result.normalized:.{precision}f}"]
    if include_metrics:
        for metric in sorted(result.raw.keys()):
            scores.append(f"{result.raw[metric]:.{precision}f}")

    return separator.join(scores)


def format_detailed_output(result: EvaluationResult,
                           config: Optional[Dict[str, Any]] = None) -> str:
    """
    Format an evaluation as detailed human-readable output.
    """
    if config is None:
        config = {}

    show_metadata = config.get('show_metadata', False)

    lines = [
        f"Normalized score: {result.normalized:12.2f}",
        f"Weighted score:   {result.weighted:12.2f}",
    ]

    if result.raw:
        lines.append("")
        lines.append(f"  {'Metric':<12} {'Raw':>14} {'% of reference':>16}")
        for metric, score in result.raw.items():
            pct = result.percentages.get(metric)
            pct_text = f"{pct:15.1f}%" if pct is not None else f"{'-':>16}"
            lines.append(f"  {metric:<12} {score:14.6f} {pct_text}")

    if show_metadata and result.metadata:
        lines.append("")
        lines.append("Metadata:")
        for key, value in result.metadata.items():
            lines.append(f"  {key}: {value}")

    if result.execution_time > 0:
        lines.append("")
        lines.append(f"Execution time: {result.execution_time:.3f}s")

    return '\n'.join(lines)


def format_result(result: EvaluationResult,
                  output_format: str = "detailed",
                  config: Optional[Dict[str, Any]] = None) -> str:
    if output_format == "csv":
        return format_csv_output(result, config)
    elif output_format == "score_only":
        return format_score_only_output(result, config)
    elif output_format == "detailed":
        return format_detailed_output(result, config)
    raise ValueError(f"Unknown output format: {output_format}")


def print_results(result: EvaluationResult,
                  output_format: str = "detailed",
                  config: Optional[Dict[str, Any]] = None,
                  file=None) -> None:
    """
    Print evaluation results in the specified format.

    Args:
        result: EvaluationResult to print
        output_format: Format type ('detailed', 'csv', 'score_only')
        config: Output format configuration
        file: File object to write to (defaults to stdout)
    """
    if file is None:
        file = sys.stdout
    print(format_result(result, output_format, config), file=file)


def save_results_csv(results: Dict[str, EvaluationResult], filepath: str) -> None:
    """Write one CSV row per evaluated layout, in evaluation order."""
    df = pd.DataFrame([{'layout': name, **result.to_dict()} for name, result in results.items()])
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(filepath, index=False)


def format_layout_summary(layout: Layout) -> str:
    """Layer rows and counts of a layout as plain text."""
    stats = get_layout_statistics(layout)
    lines = [f"Layers: {stats['layers']}, taps: {stats['total_taps']}, "
             f"layer holds: {stats['layer_holds']}, modifier holds: {stats['modifier_holds']}"]
    for layer_id, row in enumerate(layout_rows(layout)):
        lines.append(f"  {layer_id}: {row}")
    return '\n'.join(lines)


def format_annealing_summary(result: AnnealingResult) -> str:
    """Format the outcome of an annealing run."""
    title = "Annealing summary"
    lines = [
        title,
        "=" * len(title),
        f"Stopped after {result.iterations} steps ({result.stop_reason})",
        f"Accepted: {result.accepted}  Rejected: {result.rejected}  "
        f"Acceptance rate: {result.acceptance_rate:.1%}",
        f"Invalid proposals: {result.invalid_proposals}",
        f"Cleanups: {result.cleanups}  Discarded cleanups: {result.discarded_cleanups}",
        f"Initial score: {result.initial_score:.2f}",
        f"Final score:   {result.evaluation.normalized:.2f}",
        f"Best score:    {result.best_evaluation.normalized:.2f} ({result.improvement:.1%} better than start)",
        f"Execution time: {result.execution_time:.1f}s",
    ]
    return '\n'.join(lines)


def create_summary_table(results: Dict[str, EvaluationResult],
                         title: str = "Layout Evaluation Summary") -> str:
    """
    Create a summary table of several layouts, best (lowest) score first.
    """
    if not results:
        return "No results to summarize"

    lines = [f"\n{title}", "=" * len(title)]

    sorted_results = sorted(results.items(), key=lambda item: item[1].normalized)

    lines.append(f"{'Rank':<6} {'Layout':<20} {'Normalized':>14} {'Weighted':>14}")
    lines.append("-" * 58)

    for i, (name, result) in enumerate(sorted_results):
        rank = f"#{i+1}"
        lines.append(f"{rank:<6} {name:<20} {result.normalized:>14.2f} {result.weighted:>14.2f}")

    return '\n'.join(lines)


def save_history_csv(result: AnnealingResult, filepath: str) -> None:
    """Write the sampled score history of an annealing run to CSV."""
    df = pd.DataFrame(result.history, columns=['iteration', 'normalized', 'temperature'])
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(filepath, index=False)
