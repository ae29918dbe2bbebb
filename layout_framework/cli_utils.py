#!/usr/bin/env python3
"""
CLI utilities for the layout annealer scripts.

Common functions for command-line argument parsing, error handling and
configuration summaries shared by anneal_layout.py, score_layout.py and
prep_frequencies.py.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from layout_framework.config_loader import ConfigLoader
from layout_framework.errors import EmptySearchSpace
from layout_framework.layout_io import load_layout
from layout_framework.layout_model import Layout
from layout_framework.output_utils import OUTPUT_FORMATS
from layout_framework.presets import PRESETS, get_preset


def create_parser(description: str, epilog: str = "") -> argparse.ArgumentParser:
    """
    Create an argument parser with the standard input and output options.

    Args:
        description: Text shown at the top of --help
        epilog: Usage examples shown at the bottom of --help

    Returns:
        Parser with 'Input Options' and 'Output Options' groups
    """
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )

    input_group = parser.add_argument_group('Input Options')
    input_group.add_argument(
        '--config',
        dest='config',
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )

    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument(
        '--output-format',
        dest='output_format',
        choices=list(OUTPUT_FORMATS),
        default=None,
        help="Output format (default: from config, else detailed)"
    )
    output_group.add_argument(
        '--csv',
        dest='csv',
        action='store_true',
        help="Output in CSV format (same as --output-format csv)"
    )
    output_group.add_argument(
        '--detailed',
        dest='detailed',
        action='store_true',
        help="Show detailed breakdown (same as --output-format detailed)"
    )
    output_group.add_argument(
        '--score-only',
        dest='score_only',
        action='store_true',
        help="Output only scores (same as --output-format score_only)"
    )
    output_group.add_argument(
        '--quiet',
        dest='quiet',
        action='store_true',
        help="Suppress progress and configuration output"
    )
    output_group.add_argument(
        '--verbose',
        dest='verbose',
        action='store_true',
        help="Print data loading and calibration details"
    )

    return parser


def handle_common_errors(func):
    """
    Decorator to handle common CLI errors gracefully.

    Args:
        func: Function to wrap (typically main())

    Returns:
        Wrapped function with error handling
    """
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            print("\nOperation cancelled by user.", file=sys.stderr)
            return 130
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except PermissionError as e:
            print(f"Permission error: {e}", file=sys.stderr)
            return 1
        except ValueError as e:
            # Layout, table, configuration, calibration and validation errors
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except EmptySearchSpace as e:
            print(f"Search stopped: {e}", file=sys.stderr)
            return 2
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            return 1

    return wrapper


def determine_output_mode(args: argparse.Namespace, default: str = 'detailed') -> str:
    """
    Determine the output mode from parsed arguments.

    Flags win over --output-format, which wins over `default`.
    """
    if getattr(args, 'csv', False):
        return 'csv'
    elif getattr(args, 'score_only', False):
        return 'score_only'
    elif getattr(args, 'detailed', False):
        return 'detailed'

    if getattr(args, 'output_format', None):
        return args.output_format

    return default


def print_configuration_summary(loader: ConfigLoader, title: str, quiet: bool = False) -> None:
    """
    Print a summary of the current configuration.

    Args:
        loader: Configuration loader
        title: Heading line
        quiet: If True, suppress output
    """
    if quiet:
        return

    print(title)
    print("=" * 50)
    print(f"Configuration: {loader.config_path}")

    layouts = loader.get_section('layouts') or {}
    for role in ('reference', 'starter'):
        entry = layouts.get(role, {})
        if isinstance(entry, dict) and entry:
            source, value = next(iter(entry.items()))
            print(f"  {role}: {source} {value}")

    print(f"  required characters: {len(loader.get_required_characters())}")
    print(f"  constraints: {', '.join(c.name for c in loader.get_constraints()) or 'none'}")

    weights = loader.get_metric_weights()
    print(f"  metric weights: {', '.join(f'{name}={weight:g}' for name, weight in weights.items())}")

    data_files = loader.get_tables_config()['data_files']
    if data_files:
        print("\nData files:")
        for file_key, filepath in data_files.items():
            if filepath:
                status = "ok" if Path(filepath).exists() else "missing"
                print(f"  [{status}] {file_key}: {filepath}")

    print()


def report_issues(issues: List[str], stream=None) -> None:
    """Print configuration issues, one per line."""
    if stream is None:
        stream = sys.stderr
    print("Configuration issues:", file=stream)
    for issue in issues:
        print(f"  {issue}", file=stream)


def parse_seed(value: Optional[str]) -> Optional[int]:
    """argparse type for --seed: an integer or 'none'."""
    if value is None or value.lower() == 'none':
        return None
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Seed must be an integer or 'none', got {value!r}")


def load_layout_argument(value: str) -> Layout:
    """
    Load a layout given on the command line as a preset name or a YAML file.

    Raises:
        FileNotFoundError: If `value` is neither a preset nor an existing file
    """
    if value in PRESETS:
        return get_preset(value)
    return load_layout(value)
