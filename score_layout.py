#!/usr/bin/env python3
"""
Score layered keyboard layouts.

Calibrates the evaluation pipeline on the configured reference and starter
layouts, then reports raw, weighted and normalized scores for each layout
given on the command line (preset names or YAML files). Layouts that are
not valid are reported with the first reason and skipped.

# Score the presets
python score_layout.py qwerty colemak_dh canary

# Score an annealed layout against the presets, CSV output
python score_layout.py output/best_layout.yaml qwerty --csv

"""

import sys
from typing import Dict

from layout_framework.base_metric import EvaluationResult
from layout_framework.cli_utils import (create_parser, determine_output_mode, handle_common_errors,
                                        load_layout_argument, print_configuration_summary, report_issues)
from layout_framework.config_loader import get_config_loader
from layout_framework.errors import ValidationFailure
from layout_framework.output_utils import create_summary_table, print_results, save_results_csv


def create_cli_parser():
    parser = create_parser(
        description="Score layered keyboard layouts (starter layout = 1,000,000, lower is better)",
        epilog="""
Examples:

  # Score the configured reference and starter layouts
  python score_layout.py

  # Compare presets
  python score_layout.py qwerty colemak_dh canary

  # Save the scores as CSV, one row per layout
  python score_layout.py qwerty output/best_layout.yaml --save output/scores.csv
        """
    )

    parser.add_argument(
        'layouts',
        nargs='*',
        help="Preset names or YAML layout files (default: reference and starter from config)"
    )
    parser.add_argument(
        '--save',
        dest='save',
        help="Save the scores of all evaluated layouts to a CSV file, one row per layout"
    )

    return parser


@handle_common_errors
def main() -> int:
    parser = create_cli_parser()
    args = parser.parse_args()

    loader = get_config_loader(args.config)
    issues = loader.validate_config()
    if issues:
        report_issues(issues)
        return 1

    verbose = (args.verbose or loader.is_verbose()) and not args.quiet
    output_config = loader.get_output_config()
    output_format = determine_output_mode(args, output_config.get('format', 'detailed'))

    print_configuration_summary(loader, "Layered layout scorer", quiet=args.quiet)

    keyboard = loader.load_keyboard()
    pipeline = loader.build_pipeline(keyboard, verbose=verbose)
    pipeline.calibrate(loader.load_layout('reference'), loader.load_layout('starter'))

    if args.layouts:
        layouts = {name: load_layout_argument(name) for name in args.layouts}
    else:
        layouts = {'reference': loader.load_layout('reference'), 'starter': loader.load_layout('starter')}

    results: Dict[str, EvaluationResult] = {}
    invalid = 0
    for name, layout in layouts.items():
        try:
            _, result = pipeline.evaluate_layout(layout)
        except ValidationFailure as e:
            print(f"{name}: not valid ({e})", file=sys.stderr)
            invalid += 1
            continue

        results[name] = result
        if output_format == 'detailed' and not args.quiet:
            print(f"\n{name}")
            print("-" * len(name))
        print_results(result, output_format, output_config)

    if len(results) > 1 and output_format == 'detailed' and not args.quiet:
        print(create_summary_table(results))

    if args.save and results:
        save_results_csv(results, args.save)
        if not args.quiet:
            print(f"\nScores of {len(results)} layouts saved to {args.save}")

    return 1 if invalid else 0


if __name__ == "__main__":
    sys.exit(main())
